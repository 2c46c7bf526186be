from scheduling.errors import AuthError, BookingError, ConflictError, NotFoundError, ValidationError
