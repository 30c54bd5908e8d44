from .base import BackendUnavailableError, MarketplaceBackend
from .client import MarketplaceClient
from .service import MarketplaceService

__all__ = ["BackendUnavailableError", "MarketplaceBackend", "MarketplaceClient", "MarketplaceService"]
