"""Tests for the identity provider and scraper clients against a mocked transport."""

from collections.abc import Callable

import pytest
from httpx import AsyncClient, ConnectError, MockTransport, Request, Response
from pytest_mock import MockerFixture

from app.clients.identity_client import IdentityClient
from app.clients.scraper_client import ScraperClient
from app.errors import ConflictError, ServiceError, UpstreamError


def identity_with(handler: Callable[[Request], Response]) -> IdentityClient:
    return IdentityClient(client=AsyncClient(base_url="http://identity/auth/v1", transport=MockTransport(handler)))


def scraper_with(handler: Callable[[Request], Response]) -> ScraperClient:
    return ScraperClient(client=AsyncClient(base_url="http://scraper", transport=MockTransport(handler)))


class TestIdentityClient:
    @pytest.mark.asyncio
    async def test_get_user(self) -> None:
        client = identity_with(lambda request: Response(200, json={"id": "u1", "email": "a@b.c"}))
        assert await client.get_user("u1") == {"id": "u1", "email": "a@b.c"}

    @pytest.mark.asyncio
    async def test_unknown_user_is_none(self) -> None:
        client = identity_with(lambda request: Response(404, json={"msg": "User not found"}))
        assert await client.get_user("ghost") is None

    @pytest.mark.asyncio
    async def test_server_error_raises(self) -> None:
        client = identity_with(lambda request: Response(500, text="boom"))
        with pytest.raises(UpstreamError):
            await client.get_user("u1")

    @pytest.mark.asyncio
    async def test_rejected_token_is_none(self) -> None:
        client = identity_with(lambda request: Response(401, json={"msg": "invalid JWT"}))
        assert await client.get_user_for_token("expired") is None

    @pytest.mark.asyncio
    async def test_list_all_users_stops_at_short_page(self, mocker: MockerFixture) -> None:
        mocker.patch("app.clients.identity_client.IDENTITY_BATCH_SIZE", 2)
        pages = {"1": [{"id": "a"}, {"id": "b"}], "2": [{"id": "c"}]}
        seen: list[str] = []

        def handler(request: Request) -> Response:
            page = request.url.params["page"]
            seen.append(page)
            return Response(200, json={"users": pages.get(page, [])})

        users = await identity_with(handler).list_all_users()

        assert [user["id"] for user in users] == ["a", "b", "c"]
        assert seen == ["1", "2"]

    @pytest.mark.asyncio
    async def test_duplicate_user(self) -> None:
        client = identity_with(
            lambda request: Response(422, json={"msg": "A user with this email address has already been registered"}),
        )
        with pytest.raises(ConflictError) as exc_info:
            await client.create_user("a@b.c", "secret123")
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_update_user(self) -> None:
        seen: list[Request] = []

        def handler(request: Request) -> Response:
            seen.append(request)
            return Response(200, json={"id": "u1", "email": "new@b.c"})

        user = await identity_with(handler).update_user("u1", {"email": "new@b.c"})

        assert user == {"id": "u1", "email": "new@b.c"}
        assert seen[0].method == "PUT"
        assert seen[0].url.path == "/auth/v1/admin/users/u1"

    @pytest.mark.asyncio
    async def test_update_unknown_user(self) -> None:
        client = identity_with(lambda request: Response(404, json={"msg": "User not found"}))
        assert await client.update_user("ghost", {"email": "new@b.c"}) is None

    @pytest.mark.asyncio
    async def test_update_to_taken_email(self) -> None:
        client = identity_with(lambda request: Response(422, json={"msg": "Email address already registered"}))
        with pytest.raises(ConflictError) as exc_info:
            await client.update_user("u1", {"email": "taken@b.c"})
        assert exc_info.value.status_code == 409
        assert exc_info.value.detail == "Email address already registered"

    @pytest.mark.asyncio
    async def test_delete_user(self) -> None:
        client = identity_with(lambda request: Response(200, json={}))
        assert await client.delete_user("u1") is True

    @pytest.mark.asyncio
    async def test_delete_unknown_user(self) -> None:
        client = identity_with(lambda request: Response(404, json={"msg": "User not found"}))
        assert await client.delete_user("ghost") is False


class TestScraperClient:
    @pytest.mark.asyncio
    async def test_error_detail_passes_through(self) -> None:
        client = scraper_with(lambda request: Response(404, json={"detail": "Task not found"}))

        with pytest.raises(ServiceError) as exc_info:
            await client.task_status("t404")

        assert exc_info.value.status_code == 404
        assert exc_info.value.detail == "Task not found"

    @pytest.mark.asyncio
    async def test_reads_are_retried_on_transport_errors(self) -> None:
        calls = 0

        def handler(request: Request) -> Response:
            nonlocal calls
            calls += 1
            raise ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError):
            await scraper_with(handler).cache_stats()
        assert calls == 3

    @pytest.mark.asyncio
    async def test_reads_recover_from_gateway_errors(self) -> None:
        statuses = iter([503, 200])

        def handler(request: Request) -> Response:
            status = next(statuses)
            return Response(status, json={"hits": 4} if status == 200 else {"detail": "Service Unavailable"})

        assert await scraper_with(handler).cache_stats() == {"hits": 4}

    @pytest.mark.asyncio
    async def test_persistent_gateway_error_passes_through(self) -> None:
        calls = 0

        def handler(request: Request) -> Response:
            nonlocal calls
            calls += 1
            return Response(502, json={"detail": "Bad Gateway"})

        with pytest.raises(ServiceError) as exc_info:
            await scraper_with(handler).tasks(10)
        assert calls == 3
        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_writes_are_not_retried(self) -> None:
        calls = 0

        def handler(request: Request) -> Response:
            nonlocal calls
            calls += 1
            return Response(503, json={"detail": "Service Unavailable"})

        with pytest.raises(ServiceError):
            await scraper_with(handler).cancel_crawl("t1")
        assert calls == 1

    @pytest.mark.asyncio
    async def test_start_crawl_body(self) -> None:
        captured: dict[str, Request] = {}

        def handler(request: Request) -> Response:
            captured["request"] = request
            return Response(200, json={"task_id": "t1"})

        result = await scraper_with(handler).start_crawl("https://acme.example")

        assert result == {"task_id": "t1"}
        request = captured["request"]
        assert request.url.path == "/crawl/start"
        assert b'"max_pages":100' in request.content.replace(b" ", b"")

    @pytest.mark.asyncio
    async def test_delete_cached_url(self) -> None:
        captured: dict[str, Request] = {}

        def handler(request: Request) -> Response:
            captured["request"] = request
            return Response(200, json={"deleted": 1})

        await scraper_with(handler).delete_cached_url("https://acme.example/a")

        request = captured["request"]
        assert request.method == "DELETE"
        assert request.url.params["url"] == "https://acme.example/a"
