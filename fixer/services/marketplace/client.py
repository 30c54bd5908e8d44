from typing import Any

from fixer.core.base_client import BaseClient
from fixer.core.config import settings
from fixer.core.version import __version__


class MarketplaceClient(BaseClient):
    """
    Client for the marketplace REST backend, authenticated with the viewer's bearer token.
    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
    ):
        headers = {
            "User-Agent": f"Fixer-Discovery/{__version__}",
            "Accept": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        super().__init__(
            base_url=base_url or settings.BACKEND_API_URL,
            timeout=timeout or settings.BACKEND_TIMEOUT_SECONDS,
            max_retries=max_retries or settings.BACKEND_MAX_RETRIES,
            headers=headers,
        )

    async def get_professionals(self, params: dict[str, Any]) -> Any:
        return await self.get("/api/professionals", params=params)

    async def get_professional(self, professional_id: str) -> Any:
        return await self.get(f"/api/professionals/{professional_id}")

    async def get_me(self) -> Any:
        return await self.get("/api/auth/me")

    async def get_connection_requests(self) -> Any:
        return await self.get("/api/connections/requests")

    async def get_connections(self) -> Any:
        return await self.get("/api/connections")

    async def post_connection_request(self, professional_id: str) -> Any:
        return await self.post("/api/connections/requests", json={"professionalId": professional_id})

    async def delete_connection_request(self, professional_id: str) -> Any:
        return await self.delete(f"/api/connections/requests/{professional_id}")

    async def delete_connection(self, connection_id: str) -> Any:
        return await self.delete(f"/api/connections/{connection_id}")
