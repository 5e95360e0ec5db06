"""Command line interface for senja."""
