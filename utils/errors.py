from typing import Any, Optional


class AppError(Exception):
    """Error carrying the HTTP status it should be answered with.

    Raised from services and route handlers; ``app.py`` turns it into
    ``{"error": message, "details": ...}``.
    """

    def __init__(self, status_code: int, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details

    @classmethod
    def bad_request(cls, message: str, details: Optional[Any] = None) -> "AppError":
        return cls(400, message, details)

    @classmethod
    def unauthorized(cls, message: str = "Authentication required") -> "AppError":
        return cls(401, message)

    @classmethod
    def forbidden(cls, message: str = "Insufficient permissions") -> "AppError":
        return cls(403, message)

    @classmethod
    def not_found(cls, message: str = "Resource not found") -> "AppError":
        return cls(404, message)

    @classmethod
    def conflict(cls, message: str) -> "AppError":
        return cls(409, message)

    def __repr__(self) -> str:
        return f"<AppError {self.status_code}: {self.message}>"
