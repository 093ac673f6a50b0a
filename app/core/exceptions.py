from typing import Optional, Any

class PrintQuoteError(Exception):
    """
    Base exception for the PrintQuote application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ValidationError(PrintQuoteError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class InvalidGatewayError(ValidationError):
    def __init__(self, message: str = "Invalid payment gateway", details: Optional[Any] = None):
        super().__init__(message, details=details)

class InvalidStatusError(ValidationError):
    def __init__(self, message: str = "Invalid status", details: Optional[Any] = None):
        super().__init__(message, details=details)

class AuthenticationError(PrintQuoteError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Not authorized to access this route", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class InvalidCredentialsError(AuthenticationError):
    def __init__(self, message: str = "Invalid credentials", details: Optional[Any] = None):
        super().__init__(message, details=details)

class EmailNotVerifiedError(AuthenticationError):
    def __init__(self, message: str = "Please verify your email first", details: Optional[Any] = None):
        super().__init__(message, details=details)

class ForbiddenError(PrintQuoteError):
    """
    Raised when an authenticated user is not allowed to perform an action.
    """
    def __init__(self, message: str = "Not allowed to access this route", details: Optional[Any] = None):
        super().__init__(message, code="FORBIDDEN", status_code=403, details=details)

class ResourceNotFoundError(PrintQuoteError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class BusinessRuleError(PrintQuoteError):
    """
    Raised when a request is well-formed but breaks a workflow or accounting rule.
    """
    def __init__(self, message: str = "Business rule violation", code: str = "BUSINESS_RULE_VIOLATION", details: Optional[Any] = None):
        super().__init__(message, code=code, status_code=400, details=details)

class InsufficientHoursError(BusinessRuleError):
    def __init__(self, message: str = "Not enough hours", details: Optional[Any] = None):
        super().__init__(message, code="INSUFFICIENT_HOURS", details=details)

class InvalidTransitionError(BusinessRuleError):
    def __init__(self, message: str = "Invalid status transition", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_TRANSITION", details=details)

class CannotDeleteLastActiveError(BusinessRuleError):
    def __init__(self, message: str = "Cannot delete the last active rate configuration", details: Optional[Any] = None):
        super().__init__(message, code="LAST_ACTIVE_RATE", details=details)

class InvalidOrExpiredTokenError(BusinessRuleError):
    def __init__(self, message: str = "Invalid or expired token", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_OR_EXPIRED_TOKEN", details=details)

class InvalidSignatureError(BusinessRuleError):
    def __init__(self, message: str = "Invalid signature", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_SIGNATURE", details=details)

class PaymentIncompleteError(BusinessRuleError):
    def __init__(self, message: str = "Payment not completed", details: Optional[Any] = None):
        super().__init__(message, code="PAYMENT_INCOMPLETE", details=details)

class DuplicatePaymentError(BusinessRuleError):
    def __init__(self, message: str = "Payment has already been verified", details: Optional[Any] = None):
        super().__init__(message, code="DUPLICATE_PAYMENT", details=details)

class ExternalServiceError(PrintQuoteError):
    """
    Raised when an external service (email provider, payment gateway) fails.
    """
    def __init__(self, message: str = "External service error", details: Optional[Any] = None):
        super().__init__(message, code="UPSTREAM_FAILURE", status_code=500, details=details)
