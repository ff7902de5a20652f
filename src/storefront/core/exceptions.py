from typing import Optional, Dict, Any, List
import traceback
import sys


class BaseAPIException(Exception):
    def __init__( self,
        message: str,
        status_code: int = 500,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        internal_message: Optional[str] = None):
        self.message = message  # User-facing message
        self.internal_message = internal_message or message  # Internal/debug message
        self.status_code = status_code
        self.error_code = error_code or self.__class__.__name__.replace('Error', '').upper()
        self.details = details or {}

        # Capture stack trace for debugging
        self.traceback = traceback.format_exc() if sys.exc_info()[0] else None

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response"""
        return {
            "success": False,
            "error": {
                "code": self.error_code,
                "message": self.message,
                "details": self.details
            }
        }


class ValidationError(BaseAPIException):
    """Raised when request validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, 400, "VALIDATION_ERROR", details)


class NotFoundError(BaseAPIException):
    """Raised when a requested resource is not found"""

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message += f" with ID: {resource_id}"
        details = {"resource": resource, "resource_id": resource_id} if resource_id else {"resource": resource}
        super().__init__(message, 404, "NOT_FOUND", details)


class GoneError(BaseAPIException):
    """Raised when a resource existed but its validity window has lapsed"""

    def __init__(self, resource: str = "Resource", resource_id: Optional[str] = None):
        message = f"{resource} has expired"
        details = {"resource": resource, "resource_id": resource_id} if resource_id else {"resource": resource}
        super().__init__(message, 410, "GONE", details)


class MethodNotAllowedError(BaseAPIException):
    """Raised when an endpoint is called with an unsupported HTTP method"""

    def __init__(self, method: str, allowed: Optional[List[str]] = None):
        details = {"allowed_methods": allowed} if allowed else {}
        super().__init__(f"Method {method} not allowed", 405, "METHOD_NOT_ALLOWED", details)


class InsufficientStockError(BaseAPIException):
    """Raised when a stock hold cannot be satisfied by available inventory"""

    def __init__(self, product_id: Any, variant_id: Any, quantity: int):
        message = f"Insufficient stock to reserve {quantity} unit(s) of variant {variant_id}"
        details = {"product_id": product_id, "variant_id": variant_id, "quantity": quantity}
        super().__init__(message, 409, "INSUFFICIENT_STOCK", details)


class ConfigurationError(BaseAPIException):
    """Raised when a required setting is missing; fatal for the whole request"""

    def __init__(self, setting: str, message: Optional[str] = None):
        message = message or f"{setting} is not configured. Please set the {setting} environment variable."
        super().__init__(message, 500, "CONFIGURATION_ERROR", {"setting": setting})


class DeliveryError(BaseAPIException):
    """Raised when the notification sink fails to deliver a message"""

    def __init__(self, recipient: str, message: str = "Failed to send email", status_code: Optional[int] = None):
        details = {"recipient": recipient}
        if status_code:
            details["upstream_status"] = status_code
        super().__init__(message, 502, "DELIVERY_ERROR", details)
