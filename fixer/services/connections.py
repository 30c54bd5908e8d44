from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from loguru import logger

from fixer.models.connection import (
    Connection,
    ConnectionAction,
    ConnectionRequest,
    RelationshipState,
    RequestOutcome,
)
from fixer.services.marketplace.base import BackendUnavailableError, MarketplaceBackend

AVAILABLE_ACTIONS: dict[RelationshipState, tuple[ConnectionAction, ...]] = {
    RelationshipState.NONE: (ConnectionAction.SEND,),
    RelationshipState.PENDING: (ConnectionAction.CANCEL,),
    RelationshipState.CONNECTED: (ConnectionAction.VIEW, ConnectionAction.REMOVE),
}


class ConnectionActionError(Exception):
    """A locally initiated connection transition was rejected by the backend and rolled back."""

    def __init__(self, professional_id: str, action: ConnectionAction, reason: str):
        super().__init__(f"Could not {action.value} connection for {professional_id}: {reason}")
        self.professional_id = professional_id
        self.action = action
        self.reason = reason


def reconcile(
    viewer_id: str | None,
    pending_requests: Iterable[ConnectionRequest | dict[str, Any]],
    connections: Iterable[Connection | dict[str, Any]],
    known_ids: Iterable[str] = (),
) -> dict[str, RelationshipState]:
    """
    Derive one relationship state per counterparty from two independently fetched snapshots.

    Every accepted connection marks its counterparty (the side that is not the viewer) as
    connected. Every outstanding request marks its counterparty (the requester when the viewer
    is the professional side) as pending unless that id is already connected, so a stale
    request record never downgrades an accepted connection.
    Ids in `known_ids` that appear in neither snapshot are reported as `NONE`.
    """
    states: dict[str, RelationshipState] = {str(i): RelationshipState.NONE for i in known_ids}

    for raw in connections:
        connection = Connection.from_payload(raw)
        if connection is None:
            continue
        counterparty = connection.counterparty_of(viewer_id)
        if counterparty:
            states[counterparty] = RelationshipState.CONNECTED

    for raw in pending_requests:
        request = ConnectionRequest.from_payload(raw)
        if request is None or not request.is_pending:
            continue
        counterparty = request.counterparty_of(viewer_id)
        if counterparty and states.get(counterparty) is not RelationshipState.CONNECTED:
            states[counterparty] = RelationshipState.PENDING

    return states


def connection_index(
    viewer_id: str | None, connections: Iterable[Connection | dict[str, Any]]
) -> dict[str, str]:
    """Map counterparty id -> connection id, used to address removals."""
    index: dict[str, str] = {}
    for raw in connections:
        connection = Connection.from_payload(raw)
        if connection is None or not connection.id:
            continue
        counterparty = connection.counterparty_of(viewer_id)
        if counterparty:
            index[counterparty] = connection.id
    return index


@dataclass
class _OptimisticWrite:
    state: RelationshipState
    generation: int


class ConnectionStateMachine:
    """
    Per-viewer relationship states with optimistic transitions.

    Confirmed states come only from `commit()`, which replaces them wholesale and bumps the
    generation. Locally initiated transitions are recorded as optimistic writes tagged with the
    generation they were made against; a write is visible only while that generation is
    current, so any later reconciliation supersedes it. Rollbacks remove only the exact write
    they created.
    """

    def __init__(self, backend: MarketplaceBackend):
        self.backend = backend
        self.generation = 0
        self._confirmed: dict[str, RelationshipState] = {}
        self._connection_ids: dict[str, str] = {}
        self._optimistic: dict[str, _OptimisticWrite] = {}

    def commit(
        self,
        viewer_id: str | None,
        pending_requests: list[ConnectionRequest | dict[str, Any]],
        connections: list[Connection | dict[str, Any]],
        known_ids: Iterable[str] = (),
    ) -> dict[str, RelationshipState]:
        states = reconcile(viewer_id, pending_requests, connections, known_ids)
        self._confirmed = states
        self._connection_ids = connection_index(viewer_id, connections)
        self._optimistic = {}
        self.generation += 1
        logger.debug(f"Reconciled {len(states)} relationship(s) (generation {self.generation})")
        return dict(states)

    def reset(self) -> None:
        self._confirmed = {}
        self._connection_ids = {}
        self._optimistic = {}
        self.generation += 1

    def state_of(self, professional_id: str) -> RelationshipState:
        write = self._optimistic.get(professional_id)
        if write is not None and write.generation == self.generation:
            return write.state
        return self._confirmed.get(professional_id, RelationshipState.NONE)

    def confirmed_state_of(self, professional_id: str) -> RelationshipState:
        return self._confirmed.get(professional_id, RelationshipState.NONE)

    def is_optimistic(self, professional_id: str) -> bool:
        write = self._optimistic.get(professional_id)
        return write is not None and write.generation == self.generation

    def states(self, ids: Iterable[str] | None = None) -> dict[str, RelationshipState]:
        keys = list(ids) if ids is not None else list({**self._confirmed, **self._optimistic})
        return {key: self.state_of(key) for key in keys}

    def available_actions(self, professional_id: str) -> tuple[ConnectionAction, ...]:
        return AVAILABLE_ACTIONS[self.state_of(professional_id)]

    def connection_id_for(self, professional_id: str) -> str | None:
        return self._connection_ids.get(professional_id)

    def _write(self, professional_id: str, state: RelationshipState) -> _OptimisticWrite:
        write = _OptimisticWrite(state=state, generation=self.generation)
        self._optimistic[professional_id] = write
        return write

    def _rollback(self, professional_id: str, write: _OptimisticWrite) -> None:
        if self._optimistic.get(professional_id) is write:
            del self._optimistic[professional_id]

    async def _transition(
        self,
        professional_id: str,
        action: ConnectionAction,
        target: RelationshipState,
        call,
        accepted: tuple[RequestOutcome, ...] = (RequestOutcome.SUCCESS,),
    ) -> RelationshipState:
        write = self._write(professional_id, target)
        try:
            outcome = await call()
        except BackendUnavailableError as exc:
            self._rollback(professional_id, write)
            logger.warning(f"Rolled back {action.value} for {professional_id}: {exc}")
            raise ConnectionActionError(professional_id, action, str(exc)) from exc
        except Exception:
            self._rollback(professional_id, write)
            raise

        if outcome not in accepted:
            self._rollback(professional_id, write)
            logger.warning(f"Rolled back {action.value} for {professional_id}: backend reported {outcome.value}")
            raise ConnectionActionError(professional_id, action, f"backend reported {outcome.value}")

        if outcome is RequestOutcome.ALREADY_REQUESTED:
            logger.info(f"Connection request to {professional_id} was already sent; keeping pending")
        return self.state_of(professional_id)

    async def send_request(self, professional_id: str) -> RelationshipState:
        """none -> pending. A duplicate request reported by the backend counts as success."""
        current = self.state_of(professional_id)
        if current is not RelationshipState.NONE:
            logger.debug(f"Ignoring send for {professional_id}: already {current.value}")
            return current
        return await self._transition(
            professional_id,
            ConnectionAction.SEND,
            RelationshipState.PENDING,
            lambda: self.backend.create_connection_request(professional_id),
            accepted=(RequestOutcome.SUCCESS, RequestOutcome.ALREADY_REQUESTED),
        )

    async def cancel_request(self, professional_id: str) -> RelationshipState:
        """pending -> none."""
        current = self.state_of(professional_id)
        if current is not RelationshipState.PENDING:
            logger.debug(f"Ignoring cancel for {professional_id}: state is {current.value}")
            return current
        return await self._transition(
            professional_id,
            ConnectionAction.CANCEL,
            RelationshipState.NONE,
            lambda: self.backend.cancel_connection_request(professional_id),
        )

    async def remove_connection(self, professional_id: str) -> RelationshipState:
        """connected -> none."""
        current = self.state_of(professional_id)
        if current is not RelationshipState.CONNECTED:
            logger.debug(f"Ignoring remove for {professional_id}: state is {current.value}")
            return current
        connection_id = self.connection_id_for(professional_id)
        if not connection_id:
            raise ConnectionActionError(professional_id, ConnectionAction.REMOVE, "connection id is unknown")
        return await self._transition(
            professional_id,
            ConnectionAction.REMOVE,
            RelationshipState.NONE,
            lambda: self.backend.remove_connection(connection_id),
        )
