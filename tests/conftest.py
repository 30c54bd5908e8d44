import asyncio
from typing import Any

import pytest

from fixer.models.connection import Connection, ConnectionRequest, RequestOutcome
from fixer.models.professional import Locality, Viewer
from fixer.services.marketplace.base import BackendUnavailableError, MarketplaceBackend

LAGOS = {"lat": 6.5244, "lng": 3.3792}


def professional(pid: str, city: str | None = "Lagos", region: str | None = "Lagos", coords=None, **extra) -> dict:
    record: dict[str, Any] = {"_id": pid, "name": f"Pro {pid}", "category": "Electrician"}
    location: dict[str, Any] = {"city": city, "state": region}
    if coords is not None:
        location["coordinates"] = [coords[1], coords[0]]
    record["location"] = location
    record.update(extra)
    return record


class FakeBackend(MarketplaceBackend):
    """In-memory marketplace backend with switchable failures and an optional gate on candidate fetches."""

    def __init__(self, viewer: Viewer | None = None):
        self.viewer = viewer
        self.candidates: list[dict] = []
        self.requests: list[dict] = []
        self.connections: list[dict] = []
        self.details: dict[str, dict] = {}
        self.fail: set[str] = set()
        self.outcomes: dict[str, RequestOutcome] = {}
        self.gate: asyncio.Event | None = None
        self.blocked = asyncio.Event()
        self.writes: list[tuple[str, str]] = []
        self.closed = False

    def _check(self, name: str) -> None:
        if name in self.fail:
            raise BackendUnavailableError(f"{name} unavailable")

    async def fetch_viewer(self) -> Viewer | None:
        self._check("viewer")
        return self.viewer

    async def fetch_candidates(self, filters: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        records, gate = list(self.candidates), self.gate
        if gate is not None:
            self.blocked.set()
            await gate.wait()
        self._check("candidates")
        return records

    async def fetch_pending_requests(self, viewer_id: str) -> list[ConnectionRequest]:
        self._check("requests")
        return [r for r in (ConnectionRequest.from_payload(p) for p in self.requests) if r]

    async def fetch_connections(self, viewer_id: str) -> list[Connection]:
        self._check("connections")
        return [c for c in (Connection.from_payload(p) for p in self.connections) if c]

    async def fetch_candidate_detail(self, candidate_id: str) -> dict[str, Any] | None:
        self._check("detail")
        return self.details.get(candidate_id)

    async def _write(self, kind: str, target: str) -> RequestOutcome:
        self._check(kind)
        self.writes.append((kind, target))
        return self.outcomes.get(kind, RequestOutcome.SUCCESS)

    async def create_connection_request(self, professional_id: str) -> RequestOutcome:
        return await self._write("send", professional_id)

    async def cancel_connection_request(self, professional_id: str) -> RequestOutcome:
        return await self._write("cancel", professional_id)

    async def remove_connection(self, connection_id: str) -> RequestOutcome:
        return await self._write("remove", connection_id)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def viewer() -> Viewer:
    return Viewer(id="v1", locality=Locality(city="Lagos", region="Lagos"))


@pytest.fixture
def backend(viewer) -> FakeBackend:
    return FakeBackend(viewer)
