from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from fixer.core.constants import PENDING_REQUEST_STATUSES


def _ref_id(value: Any) -> str | None:
    """Resolve a reference that may be a bare id or an embedded `{_id}`/`{id}` document."""
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    if value in (None, ""):
        return None
    return str(value)


class RelationshipState(Enum):
    NONE = "none"
    PENDING = "pending"
    CONNECTED = "connected"


class ConnectionAction(Enum):
    SEND = "send"
    CANCEL = "cancel"
    VIEW = "view"
    REMOVE = "remove"


class RequestOutcome(Enum):
    """Normalized result of a backend write on the connection graph."""

    SUCCESS = "success"
    ALREADY_REQUESTED = "alreadyRequested"
    FAILURE = "failure"


class ConnectionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    professional_id: str
    requester_id: str | None = None
    status: str = "pending"

    @property
    def is_pending(self) -> bool:
        return self.status in PENDING_REQUEST_STATUSES

    def counterparty_of(self, viewer_id: str | None) -> str | None:
        """The other side of the request; the requester when the viewer is the professional."""
        if viewer_id is not None and self.professional_id == viewer_id:
            return self.requester_id
        return self.professional_id

    @classmethod
    def from_payload(cls, payload: Any) -> "ConnectionRequest | None":
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, dict):
            return None
        professional_id = _ref_id(payload.get("professional")) or _ref_id(payload.get("professionalId"))
        if professional_id is None:
            return None
        status = payload.get("status") or payload.get("state") or ""
        return cls(
            professional_id=professional_id,
            requester_id=_ref_id(payload.get("requester")) or _ref_id(payload.get("requesterId")),
            status=str(status).lower(),
        )


class Connection(BaseModel):
    """Accepted relationship between a requester and a professional."""

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    requester_id: str | None = None
    professional_id: str | None = None

    def counterparty_of(self, viewer_id: str | None) -> str | None:
        if self.requester_id == viewer_id:
            return self.professional_id
        return self.requester_id

    @classmethod
    def from_payload(cls, payload: Any) -> "Connection | None":
        if isinstance(payload, cls):
            return payload
        if not isinstance(payload, dict):
            return None
        return cls(
            id=_ref_id(payload.get("_id")) or _ref_id(payload.get("id")),
            requester_id=_ref_id(payload.get("requester")) or _ref_id(payload.get("requesterId")),
            professional_id=_ref_id(payload.get("professional")) or _ref_id(payload.get("professionalId")),
        )
