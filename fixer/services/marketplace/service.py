from typing import Any

import httpx
from async_lru import alru_cache
from loguru import logger

from fixer.core.config import settings
from fixer.core.constants import ALREADY_REQUESTED_MARKER
from fixer.models.connection import Connection, ConnectionRequest, RequestOutcome
from fixer.models.professional import Viewer
from fixer.services.marketplace.base import BackendUnavailableError, MarketplaceBackend
from fixer.services.marketplace.client import MarketplaceClient


def _records(data: Any, *keys: str) -> list[Any]:
    """Pull the record list out of the envelopes the backend uses (`data`, `professionals`, `data.requests`)."""
    if isinstance(data, list):
        return data
    if not isinstance(data, dict):
        return []
    for key in keys:
        value = data.get(key)
        if isinstance(value, list):
            return value
        if isinstance(value, dict):
            nested = _records(value, *keys)
            if nested:
                return nested
    return []


def _message(data: Any) -> str:
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or "")
    return ""


def _error_message(response: httpx.Response) -> str:
    try:
        return _message(response.json())
    except ValueError:
        return response.text or ""


class MarketplaceService(MarketplaceBackend):
    """
    Marketplace backend over HTTP.

    Maps the backend's envelopes onto the discovery models and its error replies onto
    RequestOutcome / BackendUnavailableError.
    """

    def __init__(self, token: str | None = None, client: MarketplaceClient | None = None):
        self.client = client or MarketplaceClient(token=token)
        # Per-instance cache so an expired session releases its entries with it
        self._detail = alru_cache(maxsize=500, ttl=settings.DETAIL_CACHE_TTL_SECONDS)(self._load_detail)

    async def close(self) -> None:
        """Close the underlying HTTP client and drop cached details."""
        self._detail.cache_clear()
        await self.client.close()

    async def _fetch(self, description: str, call) -> Any:
        try:
            return await call()
        except httpx.HTTPError as e:
            logger.warning(f"Failed to fetch {description}: {e}")
            raise BackendUnavailableError(f"Unable to fetch {description}") from e
        except ValueError as e:
            logger.warning(f"Unreadable reply for {description}: {e}")
            raise BackendUnavailableError(f"Unable to read {description}") from e

    async def fetch_viewer(self) -> Viewer | None:
        data = await self._fetch("viewer profile", self.client.get_me)
        if isinstance(data, dict):
            data = data.get("data") or data.get("user") or data
        return Viewer.from_payload(data)

    async def fetch_candidates(self, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        params = {"limit": settings.CANDIDATE_FETCH_LIMIT}
        params.update({k: v for k, v in (filters or {}).items() if v not in (None, "")})
        data = await self._fetch("professionals", lambda: self.client.get_professionals(params))
        records = [r for r in _records(data, "professionals", "data") if isinstance(r, dict)]
        logger.info(f"Fetched {len(records)} professional(s)")
        return records

    async def fetch_pending_requests(self, viewer_id: str) -> list[ConnectionRequest]:
        data = await self._fetch("connection requests", self.client.get_connection_requests)
        requests = [ConnectionRequest.from_payload(r) for r in _records(data, "data", "requests")]
        requests = [r for r in requests if r is not None]
        logger.debug(f"Viewer {viewer_id}: {len(requests)} connection request(s)")
        return requests

    async def fetch_connections(self, viewer_id: str) -> list[Connection]:
        data = await self._fetch("connections", self.client.get_connections)
        connections = [Connection.from_payload(c) for c in _records(data, "data", "connections")]
        connections = [c for c in connections if c is not None]
        logger.debug(f"Viewer {viewer_id}: {len(connections)} connection(s)")
        return connections

    async def fetch_candidate_detail(self, candidate_id: str) -> dict[str, Any] | None:
        return await self._detail(candidate_id)

    async def _load_detail(self, candidate_id: str) -> dict[str, Any] | None:
        data = await self._fetch(f"professional {candidate_id}", lambda: self.client.get_professional(candidate_id))
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            return data["data"]
        return data if isinstance(data, dict) and data else None

    async def _write(self, description: str, call, allow_duplicate: bool = False) -> RequestOutcome:
        try:
            data = await call()
        except httpx.HTTPStatusError as e:
            message = _error_message(e.response)
            if allow_duplicate and ALREADY_REQUESTED_MARKER in message.lower():
                return RequestOutcome.ALREADY_REQUESTED
            logger.warning(f"{description} rejected ({e.response.status_code}): {message or e}")
            return RequestOutcome.FAILURE
        except httpx.RequestError as e:
            logger.warning(f"{description} failed: {e}")
            raise BackendUnavailableError(f"{description} failed: {e}") from e
        except ValueError as e:
            logger.warning(f"{description} returned an unreadable reply: {e}")
            raise BackendUnavailableError(f"{description} returned an unreadable reply") from e

        if isinstance(data, dict) and data.get("success") is False:
            message = _message(data)
            if allow_duplicate and ALREADY_REQUESTED_MARKER in message.lower():
                return RequestOutcome.ALREADY_REQUESTED
            logger.warning(f"{description} rejected: {message or 'no reason given'}")
            return RequestOutcome.FAILURE
        return RequestOutcome.SUCCESS

    async def create_connection_request(self, professional_id: str) -> RequestOutcome:
        return await self._write(
            f"Connection request to {professional_id}",
            lambda: self.client.post_connection_request(professional_id),
            allow_duplicate=True,
        )

    async def cancel_connection_request(self, professional_id: str) -> RequestOutcome:
        return await self._write(
            f"Cancelling request to {professional_id}",
            lambda: self.client.delete_connection_request(professional_id),
        )

    async def remove_connection(self, connection_id: str) -> RequestOutcome:
        return await self._write(
            f"Removing connection {connection_id}",
            lambda: self.client.delete_connection(connection_id),
        )
