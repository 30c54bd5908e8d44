import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def is_valid_coordinates(latitude: Any, longitude: Any) -> bool:
    """True when both values are finite numbers inside the WGS84 lat/lng ranges."""
    for value in (latitude, longitude):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            return False
    return -90 <= latitude <= 90 and -180 <= longitude <= 180


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _first_present(*values: Any) -> Any:
    for value in values:
        if value not in (None, ""):
            return value
    return None


def _as_dict(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any) -> str | None:
    return None if value is None else str(value)


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float

    @classmethod
    def from_raw(cls, value: Any) -> "Coordinates | None":
        """
        Parse coordinates from the shapes the backend emits.

        Accepts `{lat, lng}`, `{latitude, longitude}`, a GeoJSON point `{coordinates: [lng, lat]}`
        or a bare `[lng, lat]` pair. Returns None for anything missing or out of range.
        """
        lat = lng = None
        if isinstance(value, dict):
            if isinstance(value.get("coordinates"), (list, tuple)):
                return cls.from_raw(value["coordinates"])
            lat = _as_float(_first_present(value.get("lat"), value.get("latitude")))
            lng = _as_float(_first_present(value.get("lng"), value.get("lon"), value.get("longitude")))
        elif isinstance(value, (list, tuple)) and len(value) >= 2:
            lng, lat = _as_float(value[0]), _as_float(value[1])

        if lat is None or lng is None or not is_valid_coordinates(lat, lng):
            return None
        return cls(lat=lat, lng=lng)


class Locality(BaseModel):
    """Recorded place of a viewer or professional, as free-text administrative names."""

    city: str | None = None
    region: str | None = None
    address: str | None = None

    @classmethod
    def from_raw(cls, payload: Any) -> "Locality":
        payload = _as_dict(payload)
        location = _as_dict(payload.get("location"))
        return cls(
            city=_as_text(_first_present(location.get("city"), payload.get("city"))),
            region=_as_text(
                _first_present(
                    location.get("state"), location.get("region"), payload.get("state"), payload.get("region")
                )
            ),
            address=_as_text(_first_present(location.get("address"), payload.get("address"))),
        )


class LocalityTier(Enum):
    SAME_CITY = "sameCity"
    SAME_REGION = "sameRegion"
    OTHER_REGION = "otherRegion"

    @property
    def order(self) -> int:
        return _TIER_ORDER[self]


_TIER_ORDER = {LocalityTier.SAME_CITY: 0, LocalityTier.SAME_REGION: 1, LocalityTier.OTHER_REGION: 2}


class VerificationState(BaseModel):
    model_config = ConfigDict(frozen=True)

    email_verified: bool = False
    face_verified: bool = False
    fully_verified: bool = False


class Candidate(BaseModel):
    """
    A professional as fetched from the marketplace backend.

    `distance_km` and `tier` are derived by the ranker for a particular origin/viewer and are
    never sent back to the backend. `raw` keeps the original payload for the verification
    resolver and for display fields this model does not lift out.
    """

    id: str
    name: str = ""
    category: str = ""
    coordinates: Coordinates | None = None
    locality: Locality = Field(default_factory=Locality)
    rating_avg: float = 0.0
    price_per_hour: float = 0.0
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    distance_km: float | None = None
    tier: LocalityTier | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "Candidate | None":
        """Build a Candidate from a backend record, defaulting missing fields. None if it has no id."""
        payload = _as_dict(payload)
        candidate_id = _first_present(payload.get("_id"), payload.get("id"))
        if candidate_id is None:
            return None

        user = _as_dict(payload.get("user"))
        location = _as_dict(payload.get("location"))
        services = payload.get("services") or payload.get("categories") or []
        first_service = services[0] if isinstance(services, list) and services else None

        coordinates = None
        for source in (location.get("coordinates"), location, payload):
            coordinates = Coordinates.from_raw(source)
            if coordinates:
                break

        return cls(
            id=str(candidate_id),
            name=str(_first_present(payload.get("name"), payload.get("businessName"), user.get("name")) or ""),
            category=str(_first_present(payload.get("category"), first_service) or ""),
            coordinates=coordinates,
            locality=Locality.from_raw(payload),
            rating_avg=_as_float(_first_present(payload.get("ratingAvg"), payload.get("rating"))) or 0.0,
            price_per_hour=_as_float(_first_present(payload.get("pricePerHour"), payload.get("hourlyRate"))) or 0.0,
            raw=payload,
        )


class Viewer(BaseModel):
    """The signed-in user browsing professionals."""

    id: str
    locality: Locality = Field(default_factory=Locality)

    @classmethod
    def from_payload(cls, payload: Any) -> "Viewer | None":
        payload = _as_dict(payload)
        viewer_id = _first_present(payload.get("_id"), payload.get("id"))
        if viewer_id is None:
            return None
        return cls(id=str(viewer_id), locality=Locality.from_raw(payload))
