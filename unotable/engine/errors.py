"""Engine exceptions.

Illegal player actions never raise; mutators return False instead. These
exceptions signal misuse of the API or a broken internal invariant.
"""


class UnoEngineError(Exception):
    """Base class for engine errors."""


class ConfigurationError(UnoEngineError, ValueError):
    """Raised when a game is constructed with an unusable setup."""


class InvariantViolation(UnoEngineError, AssertionError):
    """Raised in debug mode when card conservation no longer holds."""
