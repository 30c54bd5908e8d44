import asyncio
import time
from collections.abc import Awaitable, Callable
from enum import Enum

from cachetools import TTLCache
from loguru import logger
from pydantic import BaseModel

from fixer.core.config import settings
from fixer.models.professional import Coordinates, is_valid_coordinates

LocationSource = Callable[[], Awaitable[Coordinates | None]]


class LocationUnavailableError(Exception):
    """Raised by a location source when the position cannot be determined (e.g. permission denied)."""


class LocationStatus(Enum):
    FRESH = "fresh"
    CACHED = "cached"
    UNAVAILABLE = "unavailable"


class LocationResult(BaseModel):
    status: LocationStatus
    coordinates: Coordinates | None = None
    age_seconds: float | None = None
    error: str | None = None

    @property
    def available(self) -> bool:
        return self.coordinates is not None


class LocationProvider:
    """
    Injectable source of the viewer's position with a last-known-location cache.

    A request either acquires a fresh fix, falls back to the cached fix while it is younger
    than the TTL (reporting its age), or reports the location as unavailable. Acquisition is
    bounded by a timeout because a platform geolocation request may never resolve.
    """

    _KEY = "last"

    def __init__(
        self,
        source: LocationSource | None = None,
        ttl_seconds: float | None = None,
        timeout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.source = source
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.LOCATION_TTL_SECONDS
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.LOCATION_TIMEOUT_SECONDS
        self._clock = clock
        self._cache: TTLCache = TTLCache(maxsize=1, ttl=self.ttl_seconds, timer=clock)

    def _remember(self, coordinates: Coordinates) -> None:
        self._cache[self._KEY] = (coordinates, self._clock())

    def cached(self) -> LocationResult | None:
        entry = self._cache.get(self._KEY)
        if entry is None:
            return None
        coordinates, acquired_at = entry
        return LocationResult(
            status=LocationStatus.CACHED, coordinates=coordinates, age_seconds=self._clock() - acquired_at
        )

    async def get_location(self, prefer_cached: bool = False) -> LocationResult:
        if prefer_cached and (cached := self.cached()):
            return cached

        error = "no location source configured"
        if self.source is not None:
            try:
                coordinates = await asyncio.wait_for(self.source(), timeout=self.timeout_seconds)
                if coordinates is not None:
                    self._remember(coordinates)
                    return LocationResult(status=LocationStatus.FRESH, coordinates=coordinates, age_seconds=0.0)
                error = "location source returned nothing"
            except asyncio.TimeoutError:
                error = f"timed out after {self.timeout_seconds}s"
            except LocationUnavailableError as e:
                error = str(e) or "location unavailable"
            logger.warning(f"Could not acquire location: {error}")

        if cached := self.cached():
            return cached
        return LocationResult(status=LocationStatus.UNAVAILABLE, error=error)

    def set_manual(self, latitude: float, longitude: float) -> Coordinates:
        """Record a user-entered location as the latest fix."""
        if not is_valid_coordinates(latitude, longitude):
            raise ValueError(f"Invalid coordinates: ({latitude}, {longitude})")
        coordinates = Coordinates(lat=latitude, lng=longitude)
        self._remember(coordinates)
        return coordinates

    def clear(self) -> None:
        self._cache.clear()


def default_origin() -> Coordinates | None:
    """Configured fallback origin, if any."""
    if settings.DEFAULT_ORIGIN_LAT is None or settings.DEFAULT_ORIGIN_LNG is None:
        return None
    return Coordinates.from_raw({"lat": settings.DEFAULT_ORIGIN_LAT, "lng": settings.DEFAULT_ORIGIN_LNG})
