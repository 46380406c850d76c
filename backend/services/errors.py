"""
Application error taxonomy.

Every error carries the HTTP status it maps to and a human-readable message;
server.py renders all of them as {"message": ...}.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed request fields"""
    status_code = 400
    default_message = "Invalid request"


class AuthError(AppError):
    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(AppError):
    """Row does not exist or is not owned by the caller"""
    status_code = 404
    default_message = "Not found"


class GenerationError(AppError):
    """Upstream model call failed, timed out, or returned unusable content"""
    status_code = 500
    default_message = "Failed to generate content"


class PersistenceError(AppError):
    status_code = 500
    default_message = "Database operation failed"


class PaymentsNotConfiguredError(AppError):
    status_code = 503
    default_message = "Payments are temporarily disabled."
