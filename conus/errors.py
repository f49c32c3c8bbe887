"""Exception types raised by the simulation and output layers."""

from typing import Optional


class ConusError(Exception):
    """Base class for all errors reported to the user."""


class ConfigurationError(ConusError, ValueError):
    """Invalid rule, step count or output option."""

    def __init__(self, message: str, value=None):
        super().__init__(message)
        self.value = value


class CapacityError(ConusError):
    """The requested row width cannot be addressed or allocated."""


class SinkError(ConusError):
    """Writing a row to the output destination failed."""

    def __init__(self, message: str, row_index: Optional[int] = None):
        super().__init__(message)
        self.row_index = row_index


class EngineStateError(ConusError, RuntimeError):
    """Engine operations called in the wrong order."""
