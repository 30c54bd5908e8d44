"""Fixed values shared by the discovery services."""

# Mean Earth radius used by the haversine distance
EARTH_RADIUS_KM: float = 6371.0

# Category assigned to free-text services that do not resolve to a catalog entry
CUSTOM_CATEGORY: str = "Custom"

# Label shown when a candidate's distance cannot be computed
UNKNOWN_DISTANCE: str = "Unknown"

LOCATION_NOT_SET: str = "Location not set"

# Request statuses the backend uses for an outstanding request
PENDING_REQUEST_STATUSES: frozenset[str] = frozenset({"pending", "sent"})

# Backend message fragment signalling a duplicate connection request
ALREADY_REQUESTED_MARKER: str = "already sent"
