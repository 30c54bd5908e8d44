from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from fixer.models.professional import Candidate, Coordinates, Locality
from fixer.services.filters import DiscoveryFilters, SortMode, filter_engine
from fixer.services.geo import geo_ranker
from fixer.services.verification import verification_resolver

from .serializers import candidate_json

router = APIRouter(prefix="/professionals", tags=["professionals"])


class RankRequest(BaseModel):
    origin: dict[str, Any] | None = Field(default=None, description="{lat, lng} of the viewer")
    viewer: Locality | None = Field(default=None, description="Viewer's recorded city/region")
    candidates: list[dict[str, Any]] = Field(default_factory=list, description="Raw professional records")
    filters: DiscoveryFilters | None = None
    sort: SortMode = SortMode.DISTANCE


@router.post("/rank")
async def rank_professionals(payload: RankRequest):
    """Rank raw professional records by locality tier and distance, then filter and sort."""
    origin = Coordinates.from_raw(payload.origin) if payload.origin else None
    candidates = [c for c in (Candidate.from_payload(raw) for raw in payload.candidates) if c is not None]

    ranked = geo_ranker.rank(origin, candidates, payload.viewer)
    visible = filter_engine.sort(filter_engine.apply(ranked, payload.filters), payload.sort)
    return {
        "origin": origin.model_dump() if origin else None,
        "items": [candidate_json(c, verification_resolver.resolve(c)) for c in visible],
    }
