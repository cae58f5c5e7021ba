"""Error taxonomy shared across Chime components."""


class ChimeError(Exception):
    """Base class for all Chime errors."""


class DuplicateTimerError(ChimeError):
    """A timer with the same name is already registered."""

    def __init__(self, name: str):
        super().__init__(f"Timer already registered: {name!r}")
        self.name = name


class UnknownTimerError(ChimeError):
    """Handler subscribed to a timer name that was never registered."""

    def __init__(self, name: str):
        super().__init__(f"No timer registered with name: {name!r}")
        self.name = name


class InvalidScheduleError(ChimeError, ValueError):
    """Cron expression could not be parsed."""

    def __init__(self, schedule: str, reason: str = ""):
        message = f"Invalid cron expression: {schedule!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)
        self.schedule = schedule


class PersistenceError(ChimeError):
    """Base class for storage failures."""


class PersistenceQueryError(PersistenceError):
    """Reading events from the store failed."""


class PersistenceWriteError(PersistenceError):
    """Writing an event to the store failed."""


class NotInitializedError(ChimeError):
    """Fan-out attempted before the transport was attached."""


class CommandError(ChimeError):
    """A client command was malformed or failed validation."""
