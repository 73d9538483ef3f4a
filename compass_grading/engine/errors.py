"""Exceptions raised by the grading engine."""


class GradingError(Exception):
    """Base class for all grading engine errors."""


class InvalidInputError(GradingError, ValueError):
    """Raised when an engine function receives malformed data.

    Callers use this to tell "bad data" apart from "no data", which the
    engine reports as ``None`` instead.
    """


class IllegalTransitionError(GradingError):
    """Raised when a submission status change is outside the state machine."""

    def __init__(self, current, target, action: str = "set_status"):
        self.current = current
        self.target = target
        self.action = action
        super().__init__(
            f"Cannot {action}: transition {current.value!r} -> {target.value!r} is not allowed"
        )


class ConfigurationError(GradingError):
    """Raised when configuration names an unknown threshold table."""
