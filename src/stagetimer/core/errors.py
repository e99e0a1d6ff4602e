"""Exception types shared by the timer core, the terminal layer and the CLI."""


class StageTimerError(Exception):
    """Base class for every fatal condition the program reports."""


class ArgumentError(StageTimerError, ValueError):
    """Raised when command-line input cannot form a valid stage list."""


class InvalidDuration(StageTimerError, ValueError):
    """Raised when a stage is constructed with a non-positive duration."""


class TerminalIOError(StageTimerError):
    """Raised when the terminal cannot be configured, drawn to, or read from."""
