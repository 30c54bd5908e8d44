from abc import ABC, abstractmethod
from typing import Any

from fixer.models.connection import Connection, ConnectionRequest, RequestOutcome
from fixer.models.professional import Viewer


class BackendUnavailableError(Exception):
    """The marketplace backend could not be reached or answered with an error."""


class MarketplaceBackend(ABC):
    """
    Operations the discovery core consumes from the marketplace backend.

    Fetches raise BackendUnavailableError on failure. Writes return a RequestOutcome for
    answers the backend gave and raise BackendUnavailableError when it could not be reached.
    """

    @abstractmethod
    async def fetch_viewer(self) -> Viewer | None:
        pass

    @abstractmethod
    async def fetch_candidates(self, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def fetch_pending_requests(self, viewer_id: str) -> list[ConnectionRequest]:
        pass

    @abstractmethod
    async def fetch_connections(self, viewer_id: str) -> list[Connection]:
        pass

    @abstractmethod
    async def fetch_candidate_detail(self, candidate_id: str) -> dict[str, Any] | None:
        pass

    @abstractmethod
    async def create_connection_request(self, professional_id: str) -> RequestOutcome:
        pass

    @abstractmethod
    async def cancel_connection_request(self, professional_id: str) -> RequestOutcome:
        pass

    @abstractmethod
    async def remove_connection(self, connection_id: str) -> RequestOutcome:
        pass

    async def close(self) -> None:
        pass
