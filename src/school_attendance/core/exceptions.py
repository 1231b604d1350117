class DomainError(Exception):
    """Base exception for attendance rule violations."""


class ValidationError(DomainError):
    """Raised when caller input is invalid (empty topic, empty batch, no acting user...)."""


class InvalidStatusError(ValidationError):
    """Raised when a status token is outside the closed attendance status set."""

    def __init__(self, message: str, *, invalid: dict | None = None):
        super().__init__(message)
        self.invalid = dict(invalid or {})


class DuplicateSessionError(DomainError):
    """Raised when a session already exists for the (course, date) pair."""


class NotFoundError(DomainError):
    """Raised when an operation requires a row that does not exist."""


class EmptyBatchError(DomainError):
    """Raised when no valid record remains after filtering a submitted batch."""


class NoRecordsError(DomainError):
    """Raised when an export is requested for a course without records."""


class StoreUnavailableError(DomainError):
    """Raised when the underlying store cannot be reached or rejects the call."""
