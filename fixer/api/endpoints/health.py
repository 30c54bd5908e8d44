from fastapi import APIRouter

from fixer.services.session_store import session_store

router = APIRouter(tags=["health"])


@router.get("/health", summary="Simple readiness probe")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/metrics", summary="Runtime metrics (lightweight)")
async def metrics() -> dict:
    return {"open_sessions": len(session_store)}
