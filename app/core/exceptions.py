"""Application error hierarchy.

Each error carries the HTTP status the API layer maps it to. The service layer
raises these; route handlers never build error responses by hand.
"""

from app.core.config import settings


class AppError(Exception):
    """Base class for all expected application errors."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def public_message(self) -> str:
        """Message safe to return to API clients."""
        return self.message


class ValidationError(AppError):
    """Invalid request input. Raised before any provider or storage call."""

    status_code = 400


class NotFoundError(AppError):
    """A run or brand looked up by id does not exist."""

    status_code = 404


class ProviderConfigError(AppError):
    """A provider adapter was constructed without a usable credential."""

    status_code = 500


class ProviderUnavailable(AppError):
    """The requested provider is unknown or not configured."""

    status_code = 503

    def __init__(self, provider: str):
        super().__init__(f"Provider {provider} is not configured or available. Please check your API keys.")
        self.provider = provider


class ProviderError(AppError):
    """Transport, auth or quota failure while querying a provider."""

    status_code = 502

    def __init__(self, provider: str, message: str, status: int = 0):
        super().__init__(f"{provider} API error: {message}")
        self.provider = provider
        self.detail = message
        self.status = status

    def public_message(self) -> str:
        # Vendor error bodies may echo request data; only show them in development
        if settings.is_production:
            return f"{self.provider} request failed"
        return self.message


class StorageError(AppError):
    """Failure while reading or writing runs, brands or mentions."""

    status_code = 500
