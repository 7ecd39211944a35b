class SaasAdminException(Exception):
    """Base exception for the SaaS Admin package"""
    pass


class ConfigurationError(SaasAdminException):
    """Raised when package is not properly configured"""
    pass


class SupabaseAPIError(SaasAdminException):
    """Raised when Supabase API call fails"""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationError(SupabaseAPIError):
    """Raised when Supabase rejects the credentials or the access token"""
    pass


class RecordValidationError(SaasAdminException):
    """Raised when a row returned by Supabase does not match its schema"""
    pass


class RecordNotFound(SaasAdminException):
    pass


class RequestCancelled(SaasAdminException):
    """Raised when a response arrives after its page was disposed"""
    pass
