class DomainError(Exception):
    """Base class for failures that map onto a client-facing error response."""

    status_code = 400
    code = "error"

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class ValidationError(DomainError):
    status_code = 400
    code = "invalid_input"


class AuthenticationError(DomainError):
    status_code = 401
    code = "unauthenticated"


class AuthorizationError(DomainError):
    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


class ConflictError(DomainError):
    status_code = 409
    code = "conflict"
