"""Application exception hierarchy.

Every error that reaches the HTTP boundary is an ``AppError``. The boundary
renders ``public_message`` and ``code`` only; ``str(exc)`` carries the internal
detail and goes to the logs.
"""

from typing import Optional


class AppError(Exception):
    """Base exception for all application errors."""

    status_code = 500
    code = "INTERNAL_ERROR"
    public_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, public_message: Optional[str] = None):
        if public_message is not None:
            self.public_message = public_message
        super().__init__(message or self.public_message)


# =============================================================================
# NOT FOUND
# =============================================================================

class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    public_message = "Not found"


class SchemaNotFoundError(NotFoundError):
    """No schema document exists for the requested screen and version."""

    code = "SCHEMA_NOT_FOUND"
    public_message = "Schema not found"


class SchemaMalformedError(SchemaNotFoundError):
    """Schema file exists but is not a JSON object.

    Rendered exactly like a missing schema so clients learn nothing about
    the filesystem.
    """


class VersionNotFoundError(NotFoundError):
    code = "VERSION_NOT_FOUND"
    public_message = "Version not found"


class ContentNotFoundError(NotFoundError):
    public_message = "Item not found"


class UserNotFoundError(NotFoundError):
    public_message = "User not found"


# =============================================================================
# INVALID INPUT
# =============================================================================

class InvalidInputError(AppError):
    status_code = 400
    code = "INVALID_INPUT"
    public_message = "Invalid request"


class MissingParameterError(InvalidInputError):
    code = "MISSING_PARAMETER"


class InvalidParameterError(InvalidInputError):
    code = "INVALID_PARAMETER"


class InvalidImageTypeError(InvalidInputError):
    code = "INVALID_FILE_TYPE"
    public_message = "Invalid file type. Only jpg, jpeg, png, gif, webp allowed"


class FileTooLargeError(InvalidInputError):
    code = "FILE_TOO_LARGE"
    public_message = "File too large"


# =============================================================================
# AUTH
# =============================================================================

class UnauthorizedError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    public_message = "Not authenticated"


class InvalidCredentialsError(UnauthorizedError):
    code = "INVALID_CREDENTIALS"
    public_message = "Invalid credentials"


class InvalidTokenError(UnauthorizedError):
    code = "INVALID_TOKEN"
    public_message = "Invalid or expired session"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    public_message = "Admin access required"


# =============================================================================
# INTERNAL
# =============================================================================

class InternalError(AppError):
    """Unexpected failure inside the service."""


class UploadIOError(InternalError):
    code = "UPLOAD_FAILED"
    public_message = "Failed to save file"
