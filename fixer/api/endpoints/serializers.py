from typing import Any

from fixer.models.professional import Candidate, VerificationState
from fixer.services.geo import format_distance, format_location


def candidate_json(candidate: Candidate, verification: VerificationState) -> dict[str, Any]:
    """Public view of a ranked candidate; the raw backend payload is not echoed back."""
    return {
        "id": candidate.id,
        "name": candidate.name,
        "category": candidate.category,
        "location": format_location(candidate.locality),
        "coordinates": candidate.coordinates.model_dump() if candidate.coordinates else None,
        "ratingAvg": candidate.rating_avg,
        "pricePerHour": candidate.price_per_hour,
        "distanceKm": candidate.distance_km,
        "distanceLabel": format_distance(candidate.distance_km),
        "tier": candidate.tier.value if candidate.tier else None,
        "verification": {
            "emailVerified": verification.email_verified,
            "faceVerified": verification.face_verified,
            "fullyVerified": verification.fully_verified,
        },
    }
