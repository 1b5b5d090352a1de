class PayTrackError(Exception):
    """Base class for errors the workflow recovers from locally."""


class InvalidInput(PayTrackError):
    def __init__(self, message: str, field_errors: dict[str, str] | None = None) -> None:
        super().__init__(message)
        self.field_errors = field_errors or {}


class ExtractionFailed(PayTrackError):
    pass


class SyncFailed(PayTrackError):
    pass


class InvalidTransition(PayTrackError):
    pass


class AssistantUnavailable(PayTrackError):
    pass


class StorageFailed(PayTrackError):
    pass
