"""
Application exceptions.

Every error the panel reports to a client is an ApplicationError with a
machine-readable ``code``. The HTTP status comes from
exception_handlers.EXCEPTION_STATUS_MAP, where a subclass inherits its
parent's status: CommandNotAllowedError is a 403 because it is an
AuthorizationError.
"""


class ApplicationError(Exception):
    code = "SYS_INTERNAL_ERROR"
    default_message = "Internal error"

    def __init__(self, message: str | None = None, code: str | None = None) -> None:
        self.message = message or self.default_message
        if code is not None:
            self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    code = "RES_NOT_FOUND"
    default_message = "Resource not found"


class ValidationError(ApplicationError):
    """Input that parsed but makes no sense: a port of 0, a script outside the script directories."""

    code = "VAL_VALIDATION_ERROR"
    default_message = "Validation failed"

    def __init__(self, message: str | None = None, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(ApplicationError):
    code = "AUTH_UNAUTHORIZED"
    default_message = "Authentication required"


class AuthorizationError(ApplicationError):
    code = "AUTHZ_FORBIDDEN"
    default_message = "Permission denied"


class ConflictError(ApplicationError):
    code = "RES_CONFLICT"
    default_message = "Resource conflict"


class ExternalServiceError(ApplicationError):
    code = "SYS_EXTERNAL_SERVICE_ERROR"
    default_message = "External service error"


class RateLimitError(ApplicationError):
    code = "RATE_LIMITED"
    default_message = "Rate limit exceeded"

    def __init__(self, message: str | None = None, retry_after_seconds: int = 0) -> None:
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message)


class DatabaseError(ApplicationError):
    code = "SYS_DATABASE_ERROR"
    default_message = "Database error"


class ServiceUnavailableError(ApplicationError):
    """An optional component is switched off or not configured, e.g. the Telegram bot."""

    code = "SYS_UNAVAILABLE"
    default_message = "Service unavailable"


# Managed host


class RemoteConnectionError(ExternalServiceError):
    """SSH connect, login or host key check failed."""

    code = "REMOTE_CONNECTION_FAILED"
    default_message = "Managed host unreachable"


class RemoteConfigurationError(ExternalServiceError):
    code = "REMOTE_NOT_CONFIGURED"
    default_message = "No SSH credentials configured"


class CommandNotAllowedError(AuthorizationError):
    code = "CMD_NOT_ALLOWED"

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f"Command not allowed: {command}")


# Login


class SignatureVerificationError(AuthenticationError):
    """An SSH signature, or the challenge it signs, did not verify."""

    default_message = "SSH signature is invalid"
