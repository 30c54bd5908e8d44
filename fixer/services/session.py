import asyncio
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from fixer.core.config import settings
from fixer.models.connection import ConnectionAction, RelationshipState
from fixer.models.professional import Candidate, Coordinates, Viewer, VerificationState
from fixer.models.service import MatchResult
from fixer.services.connections import ConnectionActionError, ConnectionStateMachine
from fixer.services.filters import DiscoveryFilters, FilterEngine, SortMode, filter_engine
from fixer.services.geo import GeoRanker, format_distance, geo_ranker
from fixer.services.location import LocationProvider, LocationResult, default_origin
from fixer.services.marketplace.base import BackendUnavailableError, MarketplaceBackend
from fixer.services.matcher import ServiceMatcher, service_matcher
from fixer.services.verification import VerificationResolver, verification_resolver


class RefreshStatus(Enum):
    OK = "ok"
    PARTIAL = "partial"
    FAILED = "failed"
    SUPERSEDED = "superseded"


class RefreshResult(BaseModel):
    status: RefreshStatus
    reason: str
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status is RefreshStatus.OK


class DiscoveryItem(BaseModel):
    """What the viewer sees for one professional: ranking, badge, relationship and actions."""

    candidate: Candidate
    distance_label: str
    verification: VerificationState
    relationship: RelationshipState
    actions: list[ConnectionAction]
    awaiting_confirmation: bool = False


class DiscoverySession:
    """
    One viewer's discovery state: search box, origin, candidate list and relationships.

    Every refresh trigger (viewer identified, origin moved, app foregrounded, manual refresh)
    re-fetches candidates plus both connection snapshots. Only the most recently started
    refresh may commit, and only while the viewer it started for is still current; older ones
    finish as SUPERSEDED. Relationship states are reconciled only from a complete pair of
    snapshots, otherwise the previous states are kept.
    """

    def __init__(
        self,
        backend: MarketplaceBackend,
        location_provider: LocationProvider | None = None,
        matcher: ServiceMatcher | None = None,
        ranker: GeoRanker | None = None,
        filters: FilterEngine | None = None,
        resolver: VerificationResolver | None = None,
    ):
        self.backend = backend
        self.location_provider = location_provider or LocationProvider()
        self.matcher = matcher or service_matcher
        self.ranker = ranker or geo_ranker
        self.filter_engine = filters or filter_engine
        self.resolver = resolver or verification_resolver
        self.connections = ConnectionStateMachine(backend)

        self.viewer: Viewer | None = None
        self.query: str = ""
        self.suggestions: list[MatchResult] = []
        self.origin: Coordinates | None = None
        self.location: LocationResult | None = None
        self.filters = DiscoveryFilters()
        self.sort_mode = SortMode.DISTANCE
        self.last_refresh: RefreshResult | None = None

        self._candidates: dict[str, Candidate] = {}
        self._refresh_seq = 0
        self._detail_semaphore = asyncio.Semaphore(settings.DETAIL_CONCURRENCY)

    @property
    def viewer_id(self) -> str | None:
        return self.viewer.id if self.viewer else None

    @property
    def candidates(self) -> list[Candidate]:
        return list(self._candidates.values())

    def candidate(self, candidate_id: str) -> Candidate | None:
        return self._candidates.get(candidate_id)

    # Inputs

    def set_query(self, query: str | None) -> list[MatchResult]:
        self.query = query or ""
        self.suggestions = self.matcher.search(self.query)
        return self.suggestions

    def set_filters(self, filters: DiscoveryFilters | None = None, sort_mode: SortMode | None = None) -> None:
        if filters is not None:
            self.filters = filters
        if sort_mode is not None:
            self.sort_mode = sort_mode

    async def set_viewer(self, viewer: Viewer | None, refresh: bool = True) -> RefreshResult | None:
        """Switch the signed-in viewer. A different identity drops all relationship state and refreshes."""
        if viewer is not None and self.viewer is not None and viewer.id == self.viewer.id:
            self.viewer = viewer
            return None
        self.viewer = viewer
        self.connections.reset()
        logger.info(f"Discovery viewer changed to {viewer.id if viewer else 'anonymous'}")
        return await self.refresh("viewer") if refresh else None

    async def identify(self, refresh: bool = True) -> Viewer | None:
        """Ask the backend who the viewer is and adopt that identity."""
        try:
            viewer = await self.backend.fetch_viewer()
        except BackendUnavailableError as e:
            logger.warning(f"Could not identify viewer: {e}")
            return self.viewer
        await self.set_viewer(viewer, refresh=refresh)
        return viewer

    async def update_origin(self, prefer_cached: bool = False, refresh: bool = True) -> LocationResult:
        """Re-acquire the viewer's location; refreshes when the origin moved."""
        self.location = await self.location_provider.get_location(prefer_cached=prefer_cached)
        origin = self.location.coordinates or default_origin()
        if origin != self.origin:
            self.origin = origin
            if refresh:
                await self.refresh("origin")
        return self.location

    async def set_origin(self, latitude: float, longitude: float, refresh: bool = True) -> RefreshResult | None:
        self.origin = self.location_provider.set_manual(latitude, longitude)
        self.location = self.location_provider.cached()
        return await self.refresh("origin") if refresh else None

    async def on_foreground(self) -> RefreshResult:
        return await self.refresh("focus")

    # Refresh

    async def _enrich(self, candidate: Candidate) -> Candidate:
        async with self._detail_semaphore:
            try:
                detail = await self.backend.fetch_candidate_detail(candidate.id)
            except BackendUnavailableError as e:
                logger.warning(f"Could not load coordinates for {candidate.id}: {e}")
                return candidate
        if not detail:
            return candidate
        enriched = Candidate.from_payload({**detail, "_id": candidate.id})
        if enriched is None or enriched.coordinates is None:
            return candidate
        return candidate.model_copy(update={"coordinates": enriched.coordinates})

    def _is_current(self, seq: int, viewer_id: str | None) -> bool:
        return seq == self._refresh_seq and viewer_id == self.viewer_id

    @staticmethod
    def _unwrap(result: Any, label: str, errors: list[str]) -> Any:
        if isinstance(result, BackendUnavailableError):
            errors.append(f"{label}: {result}")
            return None
        if isinstance(result, BaseException):
            raise result
        return result

    async def refresh(self, reason: str = "manual") -> RefreshResult:
        self._refresh_seq += 1
        seq = self._refresh_seq
        viewer_id = self.viewer_id

        fetches = [self.backend.fetch_candidates(self.filters_payload())]
        if viewer_id:
            fetches += [self.backend.fetch_pending_requests(viewer_id), self.backend.fetch_connections(viewer_id)]
        results = await asyncio.gather(*fetches, return_exceptions=True)

        if not self._is_current(seq, viewer_id):
            logger.debug(f"Refresh #{seq} ({reason}) superseded before commit")
            return RefreshResult(status=RefreshStatus.SUPERSEDED, reason=reason)

        errors: list[str] = []
        raw_candidates = self._unwrap(results[0], "professionals", errors)
        snapshots = None
        if viewer_id:
            requests = self._unwrap(results[1], "connection requests", errors)
            connections = self._unwrap(results[2], "connections", errors)
            if requests is not None and connections is not None:
                snapshots = (list(requests), list(connections))

        fetched: dict[str, Candidate] | None = None
        if raw_candidates is not None:
            fetched = {}
            for payload in raw_candidates:
                candidate = Candidate.from_payload(payload)
                if candidate is None:
                    logger.debug("Skipping professional record without an id")
                    continue
                fetched[candidate.id] = candidate
            missing = [c for c in fetched.values() if c.coordinates is None]
            if missing:
                for candidate in await asyncio.gather(*(self._enrich(c) for c in missing)):
                    fetched[candidate.id] = candidate
                if not self._is_current(seq, viewer_id):
                    logger.debug(f"Refresh #{seq} ({reason}) superseded during enrichment")
                    return RefreshResult(status=RefreshStatus.SUPERSEDED, reason=reason)

        if fetched is not None:
            self._candidates = fetched
        if snapshots is not None:
            self.connections.commit(viewer_id, *snapshots, known_ids=self._candidates.keys())

        if not errors:
            status = RefreshStatus.OK
        elif fetched is not None or snapshots is not None:
            status = RefreshStatus.PARTIAL
        else:
            status = RefreshStatus.FAILED
        for error in errors:
            logger.warning(f"Refresh #{seq} ({reason}) kept last known state for {error}")

        self.last_refresh = RefreshResult(status=status, reason=reason, errors=errors)
        logger.info(f"Refresh #{seq} ({reason}): {status.value}, {len(self._candidates)} professional(s)")
        return self.last_refresh

    def filters_payload(self) -> dict[str, Any]:
        """Server-side filters forwarded to the professionals endpoint."""
        payload: dict[str, Any] = {}
        if self.filters.service:
            payload["category"] = self.matcher.normalize(self.filters.service)
        return payload

    # Output

    def items(self) -> list[DiscoveryItem]:
        viewer_locality = self.viewer.locality if self.viewer else None
        ranked = self.ranker.rank(self.origin, self._candidates.values(), viewer_locality)
        visible = self.filter_engine.sort(self.filter_engine.apply(ranked, self.filters), self.sort_mode)
        return [
            DiscoveryItem(
                candidate=candidate,
                distance_label=format_distance(candidate.distance_km),
                verification=self.resolver.resolve(candidate),
                relationship=self.connections.state_of(candidate.id),
                actions=list(self.connections.available_actions(candidate.id)) if self.viewer else [],
                awaiting_confirmation=self.connections.is_optimistic(candidate.id),
            )
            for candidate in visible
        ]

    # Transitions

    def _require_viewer(self, professional_id: str, action: ConnectionAction) -> None:
        if self.viewer is None:
            raise ConnectionActionError(professional_id, action, "viewer is not signed in")

    async def send_request(self, professional_id: str) -> RelationshipState:
        self._require_viewer(professional_id, ConnectionAction.SEND)
        return await self.connections.send_request(professional_id)

    async def cancel_request(self, professional_id: str) -> RelationshipState:
        self._require_viewer(professional_id, ConnectionAction.CANCEL)
        return await self.connections.cancel_request(professional_id)

    async def remove_connection(self, professional_id: str) -> RelationshipState:
        self._require_viewer(professional_id, ConnectionAction.REMOVE)
        return await self.connections.remove_connection(professional_id)

    async def close(self) -> None:
        await self.backend.close()
