"""Web API for senja."""
