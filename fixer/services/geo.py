import math
import re
from collections.abc import Iterable

from fixer.core.constants import EARTH_RADIUS_KM, LOCATION_NOT_SET, UNKNOWN_DISTANCE
from fixer.models.professional import Candidate, Coordinates, Locality, LocalityTier, is_valid_coordinates

__all__ = [
    "GeoRanker",
    "distance_km",
    "format_address_short",
    "format_distance",
    "format_location",
    "is_valid_coordinates",
    "locality_tier",
]


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle (haversine) distance in kilometres."""
    # Canonical argument order keeps the result bit-for-bit symmetric
    if (b.lat, b.lng) < (a.lat, a.lng):
        a, b = b, a

    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, h)
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def format_distance(km: float | None) -> str:
    """Human label: metres under 1 km, one decimal under 10 km, whole kilometres beyond."""
    if km is None or math.isnan(km):
        return UNKNOWN_DISTANCE
    if km < 1:
        return f"{round(km * 1000)} m"
    if km < 10:
        return f"{km:.1f} km"
    return f"{round(km)} km"


def format_location(locality: Locality | None) -> str:
    if locality is None:
        return LOCATION_NOT_SET
    if locality.city and locality.region:
        return f"{locality.city}, {locality.region}"
    return locality.city or locality.region or locality.address or LOCATION_NOT_SET


_POSTAL_CODE = re.compile(r"^\d{3,}$")


def format_address_short(address: str | None) -> str:
    """
    Reduce a full street address to "<area>, <country>".

    Prefers a segment that looks like a local government area (contains "/"), otherwise the
    nearest meaningful segment before the country, skipping postal codes and short tokens.
    Example: "12 Oshodi Road, Oshodi, Oshodi/Isolo, Lagos, 100271, Nigeria" -> "Oshodi/Isolo, Nigeria"
    """
    if not address or not isinstance(address, str):
        return "Location"
    parts = [p.strip() for p in address.split(",") if p.strip()]
    if not parts:
        return "Location"

    country = parts[-1]
    for part in parts:
        if "/" in part:
            return f"{part}, {country}"

    for part in reversed(parts[:-1]):
        if not _POSTAL_CODE.match(re.sub(r"\s+", "", part)) and len(part) > 2:
            return f"{part}, {country}"
    return country


def _same_place(a: str | None, b: str | None) -> bool:
    # Administrative names are compared verbatim apart from case and surrounding whitespace
    if not a or not b:
        return False
    return a.strip().casefold() == b.strip().casefold()


def locality_tier(viewer: Locality | None, candidate: Locality | None) -> LocalityTier:
    viewer = viewer or Locality()
    candidate = candidate or Locality()
    if _same_place(viewer.city, candidate.city):
        return LocalityTier.SAME_CITY
    if _same_place(viewer.region, candidate.region):
        return LocalityTier.SAME_REGION
    return LocalityTier.OTHER_REGION


class GeoRanker:
    """Orders candidates by locality tier, then distance from an origin, then id."""

    @staticmethod
    def sort_key(candidate: Candidate) -> tuple:
        tier = candidate.tier or LocalityTier.OTHER_REGION
        distance = candidate.distance_km if candidate.distance_km is not None else math.inf
        return tier.order, distance, candidate.id

    def annotate(self, origin: Coordinates | None, viewer: Locality | None, candidate: Candidate) -> Candidate:
        """Copy of `candidate` with `distance_km` and `tier` derived for this origin and viewer."""
        distance = None
        if origin is not None and candidate.coordinates is not None:
            distance = distance_km(origin, candidate.coordinates)
        return candidate.model_copy(
            update={"distance_km": distance, "tier": locality_tier(viewer, candidate.locality)}
        )

    def rank(
        self,
        origin: Coordinates | None,
        candidates: Iterable[Candidate],
        viewer: Locality | None = None,
    ) -> list[Candidate]:
        """
        Annotate and order candidates.

        Candidates without coordinates (or any candidate when the origin is unknown) have an
        undefined distance and sort after every located candidate of the same tier.
        """
        annotated = [self.annotate(origin, viewer, c) for c in candidates]
        return sorted(annotated, key=self.sort_key)


geo_ranker = GeoRanker()
