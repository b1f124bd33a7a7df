from typing import Optional, Any

class WorkIsReadyError(Exception):
    """
    Base exception for the WorkisReady application.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

class ResourceNotFoundError(WorkIsReadyError):
    """
    Raised when a requested resource is not found.
    """
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__(message, code="NOT_FOUND", status_code=404, details=details)

class AuthenticationError(WorkIsReadyError):
    """
    Raised when authentication fails.
    """
    def __init__(self, message: str = "Authentication failed", details: Optional[Any] = None):
        super().__init__(message, code="AUTHENTICATION_FAILED", status_code=401, details=details)

class PermissionDeniedError(WorkIsReadyError):
    """
    Raised when the caller is not the owner of a resource or not an admin.
    """
    def __init__(self, message: str = "Not authorized", details: Optional[Any] = None):
        super().__init__(message, code="FORBIDDEN", status_code=403, details=details)

class ValidationError(WorkIsReadyError):
    """
    Raised when input validation fails.
    """
    def __init__(self, message: str = "Validation error", details: Optional[Any] = None):
        super().__init__(message, code="VALIDATION_ERROR", status_code=400, details=details)

class AccountNotVerifiedError(WorkIsReadyError):
    """
    Raised on login when neither the email is verified nor the account approved.
    """
    def __init__(self, message: str = "Please verify your email. Check your inbox for verification link.", details: Optional[Any] = None):
        super().__init__(message, code="ACCOUNT_NOT_VERIFIED", status_code=403, details=details)

class MediaUploadError(ValidationError):
    """
    Raised when an uploaded file is rejected (type or size).
    """
    def __init__(self, message: str = "Invalid upload", details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.code = "INVALID_UPLOAD"

class UpdateApplyError(WorkIsReadyError):
    """
    Raised when an approved update request cannot be applied to its provider.
    """
    def __init__(self, message: str = "Failed to apply update request", details: Optional[Any] = None):
        super().__init__(message, code="UPDATE_APPLY_FAILED", status_code=500, details=details)
