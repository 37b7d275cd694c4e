"""Custom exception classes for the application."""


class BaseAppException(Exception):
    """Base exception class for all application exceptions."""

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class SupabaseAPIError(BaseAppException):
    """Raised when the Supabase REST API encounters an error."""
    pass


class RecordNotFoundError(BaseAppException):
    """Raised when a record id does not exist in the backend."""
    pass


class AuthenticationError(BaseAppException):
    """Raised when the backend rejects the API key."""
    pass


class ConfigurationError(BaseAppException):
    """Raised when there's a configuration error."""
    pass


class RateLimitError(BaseAppException):
    """Raised when API rate limit is exceeded."""
    pass


class InventoryValidationError(BaseAppException):
    """Raised when stock, sale or expense input is invalid."""
    pass


class InvalidTransitionError(BaseAppException):
    """Raised when a status change is not allowed from the item's state."""
    pass


class DeletionNotAllowedError(BaseAppException):
    """Raised when deleting an item is refused by the deletion policy."""
    pass
