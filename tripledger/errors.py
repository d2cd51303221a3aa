from typing import List, Optional


class BookingError(Exception):
    """Base class for errors raised by the booking store and dashboard."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(BookingError):
    status_code = 404


class ForbiddenError(BookingError):
    status_code = 403


class PersistenceError(BookingError):
    """A storage operation failed. `validation_errors` carries constraint detail when the store reports it."""

    status_code = 500

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []
