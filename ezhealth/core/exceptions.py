"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ValidationException(AppException):
    """Malformed input exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class ConflictException(AppException):
    """Slot already taken exception."""

    def __init__(self, message: str = "Time slot already booked."):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class InvalidStateException(AppException):
    """Illegal lifecycle transition exception."""

    def __init__(self, message: str = "Invalid state transition"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class SignatureException(AppException):
    """Payment signature verification failure."""

    def __init__(self, message: str = "Payment verification failed"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class GatewayException(AppException):
    """Third-party payment gateway failure."""

    def __init__(self, message: str = "Payment gateway error"):
        """Initialize with 500 status code."""
        super().__init__(message, status_code=500)
