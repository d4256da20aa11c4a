from __future__ import annotations


class AppError(Exception):
    """
    Base for every failure the API maps to an `{"error": ...}` response.

    Components raise these at their own boundary; raw provider exceptions
    (httpx, JSON decoding, SQLAlchemy) never reach the transport layer.
    """

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class Unauthorized(AppError):
    status_code = 401
    default_message = "Unauthorized"


class InvalidInput(AppError):
    status_code = 400
    default_message = "Invalid input"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class AnalysisError(AppError):
    default_message = "Failed to analyze image"


class GenerationError(AppError):
    default_message = "Failed to generate content"


class StorageError(AppError):
    default_message = "Storage operation failed"


class InternalError(AppError):
    pass
