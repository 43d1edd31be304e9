class CustomBaseError(Exception):
    """Base class for service errors; carries the HTTP status the API layer reports."""

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class StorageError(CustomBaseError):
    """Store unreachable, statement failed or commit failed. Always raised after rollback."""

    def __init__(self, message: str, status_code: int = 503) -> None:
        super().__init__(message, status_code)


class LockTimeoutError(StorageError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 503)
