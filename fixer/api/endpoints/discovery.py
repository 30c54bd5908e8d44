from fastapi import APIRouter, HTTPException, Query
from loguru import logger

from fixer.core.security import redact_token
from fixer.models.professional import is_valid_coordinates
from fixer.services.connections import ConnectionActionError
from fixer.services.filters import DiscoveryFilters, SortMode
from fixer.services.session import DiscoveryItem
from fixer.services.session_store import session_store

from .serializers import candidate_json

router = APIRouter(tags=["discovery"])


def _item_json(item: DiscoveryItem) -> dict:
    data = candidate_json(item.candidate, item.verification)
    data["relationship"] = item.relationship.value
    data["actions"] = [a.value for a in item.actions]
    data["awaitingConfirmation"] = item.awaiting_confirmation
    return data


@router.get("/{token}/discovery")
async def discover(
    token: str,
    q: str = Query(default="", description="Search box text"),
    lat: float | None = None,
    lng: float | None = None,
    sort: SortMode = SortMode.DISTANCE,
    service: str | None = None,
    location: str | None = None,
    min_price: float | None = Query(default=None, alias="minPrice"),
    max_price: float | None = Query(default=None, alias="maxPrice"),
    min_rating: float = Query(default=0.0, alias="minRating"),
    verified_only: bool = Query(default=False, alias="verifiedOnly"),
):
    """Refresh the viewer's discovery session and return professionals in display order."""
    if (lat is None) != (lng is None) or (lat is not None and not is_valid_coordinates(lat, lng)):
        raise HTTPException(status_code=400, detail="lat and lng must be given together as valid coordinates")

    try:
        session = await session_store.get_or_create(token)
        if session.viewer is None:
            await session.identify(refresh=False)
        suggestions = session.set_query(q)
        session.set_filters(
            DiscoveryFilters(
                search=q or None,
                service=service,
                location=location,
                min_price=min_price,
                max_price=max_price,
                min_rating=min_rating,
                verified_only=verified_only,
            ),
            sort,
        )

        if lat is not None:
            await session.set_origin(lat, lng, refresh=False)
        else:
            await session.update_origin(prefer_cached=True, refresh=False)
        result = await session.refresh("request")

        return {
            "viewerId": session.viewer_id,
            "origin": session.origin.model_dump() if session.origin else None,
            "suggestions": [s.model_dump(mode="json") for s in suggestions],
            "refresh": result.model_dump(mode="json"),
            "items": [_item_json(item) for item in session.items()],
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"[{redact_token(token)}] Error building discovery list: {e}")
        raise HTTPException(status_code=500, detail=str(e))


async def _apply(token: str, professional_id: str, action: str) -> dict:
    session = session_store.get(token)
    if session is None:
        raise HTTPException(status_code=404, detail="No discovery session for this token")

    try:
        if action == "send":
            state = await session.send_request(professional_id)
        elif action == "cancel":
            state = await session.cancel_request(professional_id)
        else:
            state = await session.remove_connection(professional_id)
    except ConnectionActionError as e:
        raise HTTPException(status_code=502, detail=e.reason)
    except Exception as e:
        logger.exception(f"[{redact_token(token)}] Error applying {action} for {professional_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))

    return {
        "professionalId": professional_id,
        "relationship": state.value,
        "actions": [a.value for a in session.connections.available_actions(professional_id)],
    }


@router.post("/{token}/connections/{professional_id}/request")
async def send_connection_request(token: str, professional_id: str):
    return await _apply(token, professional_id, "send")


@router.delete("/{token}/connections/{professional_id}/request")
async def cancel_connection_request(token: str, professional_id: str):
    return await _apply(token, professional_id, "cancel")


@router.delete("/{token}/connections/{professional_id}")
async def remove_connection(token: str, professional_id: str):
    return await _apply(token, professional_id, "remove")
