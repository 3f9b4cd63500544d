"""Errors raised by the booking core.

Callers only ever see these four kinds; repository-specific exceptions are
translated before they leave the service layer.
"""


class BookingError(Exception):
    message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(BookingError):
    """Rejected before anything is written to storage."""

    message = "Please fill in all required fields."

    def __init__(self, message: str | None = None, reason: str = "invalid") -> None:
        super().__init__(message)
        self.reason = reason


class QuotaExceededError(ValidationError):
    message = "You already have the maximum number of upcoming appointments."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, reason="quota_exceeded")


class MalformedTimeError(ValidationError):
    message = "The selected time is not valid."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message, reason="malformed_time")


class ConflictError(BookingError):
    message = "This time is no longer available. Please choose another."


class NotFoundError(BookingError):
    message = "Appointment not found."


class RepositoryError(BookingError):
    message = "The booking service is temporarily unavailable. Please try again."
