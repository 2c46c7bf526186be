class BookingError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    status_code = 400


class ConflictError(BookingError):
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class AuthError(BookingError):
    status_code = 401
