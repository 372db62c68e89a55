"""Typed domain errors. No HTTP awareness here; the API layer maps kinds to status codes."""


class AppError(Exception):
    """Base class for every error the core reports to callers."""

    default_message = "internal server error"

    def __init__(self, message: str | None = None, details: str | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationFailedError(AppError):
    default_message = "validation failed"


class UnauthorizedError(AppError):
    default_message = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    """Unknown username and wrong password both raise this, with the same message."""

    default_message = "invalid username or password"


class TokenError(UnauthorizedError):
    default_message = "invalid token"


class TokenExpiredError(TokenError):
    default_message = "token has expired"


class TokenMalformedError(TokenError):
    default_message = "malformed token"


class TokenSignatureError(TokenError):
    default_message = "invalid token signature"


class ForbiddenError(AppError):
    default_message = "forbidden"


class PermissionDeniedError(ForbiddenError):
    default_message = "permission denied"


class PolicyDeniedError(ForbiddenError):
    default_message = "you are not authorized to access this resource"


class NotFoundError(AppError):
    default_message = "resource not found"


class ConflictError(AppError):
    default_message = "resource already exists"


class UserExistsError(ConflictError):
    default_message = "user already exists"


class RateLimitedError(AppError):
    default_message = "too many requests"


class InternalError(AppError):
    default_message = "internal server error"


class PolicyEvaluationError(InternalError):
    """The policy engine failed; distinct from a clean deny."""

    default_message = "error occurred when authorizing request"


class PasswordHashError(InternalError):
    default_message = "password hashing failed"


class DeadlineExceededError(InternalError):
    """The request outlived server.request_timeout_seconds; its unit of work is rolled back."""

    default_message = "request deadline exceeded"
