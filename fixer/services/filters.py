from enum import Enum

from pydantic import BaseModel, Field

from fixer.models.professional import Candidate
from fixer.services.geo import GeoRanker
from fixer.services.matcher import ServiceMatcher, service_matcher
from fixer.services.verification import VerificationResolver, verification_resolver


class SortMode(Enum):
    DISTANCE = "distance"
    PRICE = "price"
    RATING = "rating"


class DiscoveryFilters(BaseModel):
    search: str | None = Field(default=None, description="Matches name, category or address")
    service: str | None = Field(default=None, description="Service name or synonym; matched against category")
    location: str | None = Field(default=None, description="Matches the candidate's address")
    min_price: float | None = None
    max_price: float | None = None
    min_rating: float = 0.0
    verified_only: bool = False


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


class FilterEngine:
    """Applies discovery filters and secondary sort orders to ranked candidates."""

    def __init__(self, matcher: ServiceMatcher | None = None, resolver: VerificationResolver | None = None):
        self.matcher = matcher or service_matcher
        self.resolver = resolver or verification_resolver

    def passes(self, candidate: Candidate, filters: DiscoveryFilters) -> bool:
        address = candidate.locality.address

        if filters.search:
            needle = filters.search.lower().strip()
            if needle and not (
                _contains(candidate.name, needle) or _contains(candidate.category, needle) or _contains(address, needle)
            ):
                return False

        if filters.service:
            service = self.matcher.normalize(filters.service).lower().strip()
            if service and not _contains(candidate.category, service):
                return False

        if filters.location:
            needle = filters.location.lower().strip()
            if needle and not _contains(address, needle):
                return False

        if filters.min_price is not None and candidate.price_per_hour < filters.min_price:
            return False
        if filters.max_price is not None and candidate.price_per_hour > filters.max_price:
            return False
        if candidate.rating_avg < filters.min_rating:
            return False
        if filters.verified_only and not self.resolver.is_fully_verified(candidate):
            return False
        return True

    def apply(self, candidates: list[Candidate], filters: DiscoveryFilters | None) -> list[Candidate]:
        if filters is None:
            return list(candidates)
        return [c for c in candidates if self.passes(c, filters)]

    @staticmethod
    def sort(candidates: list[Candidate], mode: SortMode = SortMode.DISTANCE) -> list[Candidate]:
        """Order ranked candidates; DISTANCE keeps the locality/distance ranking."""
        if mode is SortMode.PRICE:
            return sorted(candidates, key=lambda c: (c.price_per_hour, c.id))
        if mode is SortMode.RATING:
            return sorted(candidates, key=lambda c: (-c.rating_avg, c.id))
        return sorted(candidates, key=GeoRanker.sort_key)


filter_engine = FilterEngine()
