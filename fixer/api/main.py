from fastapi import APIRouter

from .endpoints.connections import router as connections_router
from .endpoints.discovery import router as discovery_router
from .endpoints.health import router as health_router
from .endpoints.professionals import router as professionals_router
from .endpoints.services import router as services_router

api_router = APIRouter()


@api_router.get("/")
async def root():
    return {"message": "Fixer discovery API is running"}


api_router.include_router(health_router)
api_router.include_router(services_router)
api_router.include_router(professionals_router)
api_router.include_router(connections_router)
# Token-prefixed routes last so fixed prefixes are matched first
api_router.include_router(discovery_router)
