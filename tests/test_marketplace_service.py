import httpx
import pytest

from fixer.models.connection import RequestOutcome
from fixer.services.marketplace import BackendUnavailableError, MarketplaceClient, MarketplaceService

BASE_URL = "http://backend.test"


def make_service(handler) -> MarketplaceService:
    client = MarketplaceClient(token="secret-token", base_url=BASE_URL, max_retries=1)
    client._client = httpx.AsyncClient(
        base_url=BASE_URL, headers=client.headers, transport=httpx.MockTransport(handler)
    )
    return MarketplaceService(client=client)


@pytest.mark.asyncio
async def test_fetch_candidates_unwraps_envelope_and_sends_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("Authorization")
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200, json={"success": True, "data": {"professionals": [{"_id": "p1"}, {"_id": "p2"}, "junk"]}}
        )

    service = make_service(handler)
    records = await service.fetch_candidates({"category": "Electrician", "city": ""})
    await service.close()

    assert [r["_id"] for r in records] == ["p1", "p2"]
    assert seen["auth"] == "Bearer secret-token"
    assert seen["params"] == {"limit": "50", "category": "Electrician"}


@pytest.mark.asyncio
async def test_fetch_connection_snapshots():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/connections/requests":
            return httpx.Response(200, json={"data": [{"professional": {"_id": "p1"}, "status": "pending"}, {}]})
        return httpx.Response(200, json={"connections": [{"_id": "c1", "requester": "v1", "professional": "p2"}]})

    service = make_service(handler)
    requests = await service.fetch_pending_requests("v1")
    connections = await service.fetch_connections("v1")

    assert [(r.professional_id, r.is_pending) for r in requests] == [("p1", True)]
    assert [(c.id, c.professional_id) for c in connections] == [("c1", "p2")]


@pytest.mark.asyncio
async def test_fetch_viewer():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/auth/me"
        return httpx.Response(200, json={"user": {"_id": "v1", "location": {"city": "Lagos", "state": "Lagos"}}})

    viewer = await make_service(handler).fetch_viewer()
    assert viewer.id == "v1"
    assert viewer.locality.city == "Lagos"


@pytest.mark.asyncio
async def test_unreachable_backend_raises_backend_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendUnavailableError):
        await make_service(handler).fetch_connections("v1")


@pytest.mark.asyncio
async def test_server_error_raises_backend_unavailable():
    with pytest.raises(BackendUnavailableError):
        await make_service(lambda request: httpx.Response(503)).fetch_candidates()


@pytest.mark.asyncio
async def test_candidate_detail_is_cached():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"data": {"_id": "p9", "location": {"coordinates": [3.4, 6.5]}}})

    service = make_service(handler)
    first = await service.fetch_candidate_detail("p9")
    second = await service.fetch_candidate_detail("p9")

    assert first == second == {"_id": "p9", "location": {"coordinates": [3.4, 6.5]}}
    assert calls == ["/api/professionals/p9"]


@pytest.mark.asyncio
async def test_duplicate_request_error_is_already_requested():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        return httpx.Response(400, json={"success": False, "message": "Connection request already sent"})

    assert await make_service(handler).create_connection_request("p1") is RequestOutcome.ALREADY_REQUESTED


@pytest.mark.asyncio
async def test_duplicate_request_in_success_body_is_already_requested():
    handler = lambda request: httpx.Response(200, json={"success": False, "message": "Request Already Sent"})
    assert await make_service(handler).create_connection_request("p1") is RequestOutcome.ALREADY_REQUESTED


@pytest.mark.asyncio
async def test_write_outcomes():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/connections/requests/p1":
            return httpx.Response(204)
        if request.url.path == "/api/connections/c1":
            return httpx.Response(404, json={"message": "Connection not found"})
        return httpx.Response(400, json={"message": "Connection request already sent"})

    service = make_service(handler)
    assert await service.cancel_connection_request("p1") is RequestOutcome.SUCCESS
    assert await service.remove_connection("c1") is RequestOutcome.FAILURE
    # Only sending treats a duplicate as success
    assert await service.cancel_connection_request("p2") is RequestOutcome.FAILURE


@pytest.mark.asyncio
async def test_write_transport_failure_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(BackendUnavailableError):
        await make_service(handler).create_connection_request("p1")


@pytest.mark.asyncio
async def test_unreadable_fetch_reply_raises_backend_unavailable():
    handler = lambda request: httpx.Response(200, text="<html>gateway</html>")
    with pytest.raises(BackendUnavailableError):
        await make_service(handler).fetch_connections("v1")


@pytest.mark.asyncio
async def test_unreadable_write_reply_raises_backend_unavailable():
    handler = lambda request: httpx.Response(200, text="<html>gateway</html>")
    with pytest.raises(BackendUnavailableError):
        await make_service(handler).create_connection_request("p1")


@pytest.mark.asyncio
async def test_detail_cache_is_per_service_and_cleared_on_close():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"_id": "p9"})

    first, second = make_service(handler), make_service(handler)
    await first.fetch_candidate_detail("p9")
    await second.fetch_candidate_detail("p9")
    assert len(calls) == 2

    await first.close()
    first.client._client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    await first.fetch_candidate_detail("p9")
    assert len(calls) == 3
