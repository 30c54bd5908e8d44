import pytest

from fixer.models.connection import ConnectionAction, RelationshipState, RequestOutcome
from fixer.services.connections import ConnectionActionError, ConnectionStateMachine, reconcile

NONE, PENDING, CONNECTED = RelationshipState.NONE, RelationshipState.PENDING, RelationshipState.CONNECTED


def test_connected_wins_over_stale_pending_request():
    states = reconcile(
        "v1",
        [{"professional": "p1", "status": "pending"}],
        [{"_id": "c1", "requester": "v1", "professional": "p1"}],
    )
    assert states == {"p1": CONNECTED}


def test_reconcile_keys_by_counterparty():
    states = reconcile(
        "v1",
        [],
        [
            {"_id": "c1", "requester": {"_id": "u2"}, "professional": {"_id": "v1"}},
            {"_id": "c2", "requesterId": "v1", "professionalId": "p3"},
        ],
    )
    assert states == {"u2": CONNECTED, "p3": CONNECTED}


def test_reconcile_reads_only_outstanding_requests():
    states = reconcile(
        "v1",
        [
            {"professional": {"_id": "p1"}, "status": "sent"},
            {"professionalId": "p2", "status": "Pending"},
            {"professional": "p3", "status": "rejected"},
            {"professional": "p4", "status": "accepted"},
            {"status": "pending"},
        ],
        [],
        known_ids=["p3", "p5"],
    )
    assert states == {"p1": PENDING, "p2": PENDING, "p3": NONE, "p5": NONE}


@pytest.fixture
def machine(backend):
    return ConnectionStateMachine(backend)


@pytest.mark.asyncio
async def test_send_request_moves_to_pending(machine, backend):
    assert machine.available_actions("p1") == (ConnectionAction.SEND,)

    assert await machine.send_request("p1") is PENDING
    assert machine.is_optimistic("p1")
    assert machine.available_actions("p1") == (ConnectionAction.CANCEL,)
    assert backend.writes == [("send", "p1")]


@pytest.mark.asyncio
async def test_already_sent_counts_as_success(machine, backend):
    backend.outcomes["send"] = RequestOutcome.ALREADY_REQUESTED
    assert await machine.send_request("p1") is PENDING
    assert machine.state_of("p1") is PENDING


@pytest.mark.asyncio
async def test_rejected_send_rolls_back(machine, backend):
    backend.outcomes["send"] = RequestOutcome.FAILURE
    with pytest.raises(ConnectionActionError) as exc:
        await machine.send_request("p1")
    assert exc.value.action is ConnectionAction.SEND
    assert machine.state_of("p1") is NONE
    assert not machine.is_optimistic("p1")


@pytest.mark.asyncio
async def test_unreachable_backend_rolls_back(machine, backend):
    backend.fail.add("send")
    with pytest.raises(ConnectionActionError):
        await machine.send_request("p1")
    assert machine.state_of("p1") is NONE


@pytest.mark.asyncio
async def test_failed_remove_reverts_to_connected(machine, backend):
    machine.commit("v1", [], [{"_id": "c1", "requester": "v1", "professional": "p1"}])
    backend.outcomes["remove"] = RequestOutcome.FAILURE

    with pytest.raises(ConnectionActionError):
        await machine.remove_connection("p1")

    assert machine.state_of("p1") is CONNECTED
    assert backend.writes == [("remove", "c1")]


@pytest.mark.asyncio
async def test_remove_without_connection_id_is_rejected(machine, backend):
    machine.commit("v1", [], [{"requester": "v1", "professional": "p1"}])
    with pytest.raises(ConnectionActionError):
        await machine.remove_connection("p1")
    assert backend.writes == []
    assert machine.state_of("p1") is CONNECTED


@pytest.mark.asyncio
async def test_cancel_returns_to_none(machine, backend):
    machine.commit("v1", [{"professional": "p1", "status": "pending"}], [])
    assert await machine.cancel_request("p1") is NONE
    assert backend.writes == [("cancel", "p1")]


@pytest.mark.asyncio
async def test_transitions_from_wrong_state_are_no_ops(machine, backend):
    machine.commit("v1", [], [{"_id": "c1", "requester": "v1", "professional": "p1"}])
    assert await machine.cancel_request("p2") is NONE
    assert await machine.send_request("p1") is CONNECTED
    assert await machine.remove_connection("p2") is NONE
    assert backend.writes == []


@pytest.mark.asyncio
async def test_reconciliation_supersedes_optimistic_write(machine):
    await machine.send_request("p1")
    assert machine.is_optimistic("p1")

    machine.commit("v1", [], [], known_ids=["p1"])

    assert machine.state_of("p1") is NONE
    assert not machine.is_optimistic("p1")


@pytest.mark.asyncio
async def test_rollback_does_not_clobber_newer_reconciliation(machine, backend):
    async def create_then_reconcile(professional_id):
        machine.commit("v1", [{"professional": professional_id, "status": "pending"}], [])
        return RequestOutcome.FAILURE

    backend.create_connection_request = create_then_reconcile

    with pytest.raises(ConnectionActionError):
        await machine.send_request("p1")
    assert machine.state_of("p1") is PENDING


def test_reset_drops_all_state(machine):
    machine.commit("v1", [{"professional": "p1"}], [])
    machine.reset()
    assert machine.states() == {}
    assert machine.state_of("p1") is NONE


def test_incoming_request_is_keyed_by_requester_for_professional_viewer():
    states = reconcile(
        "pro1",
        [
            {"requester": {"_id": "u7"}, "professional": "pro1", "status": "pending"},
            {"requesterId": "pro1", "professionalId": "p2", "status": "pending"},
        ],
        [],
    )
    assert states == {"u7": PENDING, "p2": PENDING}
    assert "pro1" not in states
