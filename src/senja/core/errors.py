"""Exceptions raised by the senja core."""


class SenjaError(Exception):
    """Base error for the senja data layer."""

    pass


class StorageError(SenjaError):
    """Durable local storage could not be read or written."""

    pass


class UnknownTableError(SenjaError):
    """No table with the requested name exists."""

    pass
