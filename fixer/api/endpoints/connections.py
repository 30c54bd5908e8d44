from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from fixer.services.connections import AVAILABLE_ACTIONS, reconcile

router = APIRouter(prefix="/connections", tags=["connections"])


class ReconcileRequest(BaseModel):
    viewerId: str | None = None
    pendingRequests: list[dict[str, Any]] = Field(default_factory=list)
    connections: list[dict[str, Any]] = Field(default_factory=list)
    knownIds: list[str] = Field(default_factory=list)


@router.post("/reconcile")
async def reconcile_connections(payload: ReconcileRequest):
    states = reconcile(payload.viewerId, payload.pendingRequests, payload.connections, payload.knownIds)
    return {
        "states": {pid: state.value for pid, state in states.items()},
        "actions": {pid: [a.value for a in AVAILABLE_ACTIONS[state]] for pid, state in states.items()},
    }
