from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from fixer.api.main import api_router
from fixer.services.session_store import session_store

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events (startup/shutdown).
    """
    logger.info(f"Fixer discovery {__version__} starting ({settings.APP_ENV})")
    yield
    try:
        await session_store.close_all()
    except Exception as exc:
        logger.warning(f"Failed to close discovery sessions: {exc}")


app = FastAPI(
    title="Fixer Discovery",
    description="Service search, proximity ranking and connection state for the Fixer marketplace",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)
