"""Custom exception classes"""
from typing import Any, Optional


class AppException(Exception):
    """Base exception for application errors"""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_type: str = "AppError",
        details: Optional[Any] = None
    ):
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details
        super().__init__(self.message)


class ValidationError(AppException):
    """Validation error exception"""

    def __init__(
        self,
        message: str,
        details: Optional[Any] = None,
        error_type: str = "ValidationError"
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_type=error_type,
            details=details
        )


class InvalidCategory(ValidationError):
    """Category outside the fixed set of spending categories"""

    def __init__(self, category: Any, details: Optional[Any] = None):
        self.category = category
        super().__init__(
            message=f"Invalid category: {category}",
            details=details,
            error_type="InvalidCategory"
        )


class NotFoundError(AppException):
    """Resource not found exception"""

    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=404,
            error_type="NotFoundError",
            details=details
        )


class AuthenticationError(AppException):
    """Authentication failure exception"""

    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=401,
            error_type="AuthenticationError",
            details=details
        )


class AccessDeniedError(AppException):
    """Caller is not allowed to perform the operation on the trip"""

    def __init__(self, message: str = "Access denied", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=403,
            error_type="AccessDeniedError",
            details=details
        )


class EmptyRosterError(AppException):
    """Equal split attempted with no participants"""

    def __init__(
        self,
        message: str = "Cannot split an expense across an empty roster",
        details: Optional[Any] = None
    ):
        super().__init__(
            message=message,
            status_code=422,
            error_type="EmptyRosterError",
            details=details
        )


class ConflictError(AppException):
    """Resource conflict exception (e.g., a trip that already has a budget)"""

    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__(
            message=message,
            status_code=409,
            error_type="ConflictError",
            details=details
        )
