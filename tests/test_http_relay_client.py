"""HttpRelayClient tests against an in-process aiohttp relay."""

import json

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

from api_specs.dtos.board import Card
from insight_layer.config import InsightConfig
from insight_layer.errors import CollaboratorError
from insight_layer.relay.http_relay_client import HttpRelayClient
from insight_layer.types import BatchInfo, ClusterCard

CARDS = [
    Card(id="1", title="Fix login", description="Button does nothing"),
    Card(id="2", title="Login broken on Safari"),
]


class MockRelay:
    """Minimal stand-in for the relay's two routes."""

    def __init__(self, status=200, body=None, raw=None):
        self.status = status
        self.body = body
        self.raw = raw
        self.requests = []

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({"path": request.path, "json": await request.json()})
        if self.raw is not None:
            return web.Response(status=self.status, text=self.raw)
        return web.json_response(self.body, status=self.status)

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/api/openai/generate-clusters", self.handle)
        app.router.add_post("/api/openai/check-duplicates", self.handle)
        return app


async def start(mock: MockRelay) -> test_utils.TestServer:
    server = test_utils.TestServer(mock.app())
    await server.start_server()
    return server


def base_url(server: test_utils.TestServer) -> str:
    return str(server.make_url("")).rstrip("/")


class TestRequestClusters:
    @pytest.mark.asyncio
    async def test_sends_batch_context_and_parses_clusters(self):
        mock = MockRelay(
            body={
                "clusters": [
                    {"clusterName": "Auth bugs", "cards": [{"id": "1", "title": "Fix login"}]},
                    {"clusterName": "Browser quirks", "cards": [{"id": 2, "title": "Safari"}]},
                ]
            }
        )
        server = await start(mock)
        try:
            client = HttpRelayClient(base_url=base_url(server))
            clusters = await client.request_clusters(
                CARDS, ["Auth bugs"], BatchInfo(current=2, total=3)
            )
        finally:
            await server.close()

        (sent,) = mock.requests
        assert sent["path"] == "/api/openai/generate-clusters"
        assert sent["json"] == {
            "cards": [
                {"id": "1", "title": "Fix login", "description": "Button does nothing"},
                {"id": "2", "title": "Login broken on Safari"},
            ],
            "existingClusters": ["Auth bugs"],
            "batchInfo": {"current": 2, "total": 3},
        }
        assert [c.name for c in clusters] == ["Auth bugs", "Browser quirks"]
        assert clusters[1].cards == [ClusterCard(id="2", title="Safari")]

    @pytest.mark.asyncio
    async def test_empty_clusters(self):
        server = await start(MockRelay(body={"clusters": []}))
        try:
            client = HttpRelayClient(base_url=base_url(server))
            assert await client.request_clusters(CARDS, [], BatchInfo(1, 1)) == []
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        server = await start(MockRelay(status=500, body={"error": "Failed to process"}))
        try:
            client = HttpRelayClient(base_url=base_url(server))
            with pytest.raises(CollaboratorError) as excinfo:
                await client.request_clusters(CARDS, [], BatchInfo(1, 1))
        finally:
            await server.close()
        assert excinfo.value.status == 500
        assert excinfo.value.endpoint == "/api/openai/generate-clusters"

    @pytest.mark.asyncio
    async def test_non_json_body_raises(self):
        server = await start(MockRelay(raw="Sure! Here are your clusters:"))
        try:
            client = HttpRelayClient(base_url=base_url(server))
            with pytest.raises(CollaboratorError, match="not JSON"):
                await client.request_clusters(CARDS, [], BatchInfo(1, 1))
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_wrong_shape_raises(self):
        server = await start(MockRelay(body={"clusters": [{"cards": []}]}))
        try:
            client = HttpRelayClient(base_url=base_url(server))
            with pytest.raises(CollaboratorError, match="Unexpected relay response"):
                await client.request_clusters(CARDS, [], BatchInfo(1, 1))
        finally:
            await server.close()

    @pytest.mark.asyncio
    async def test_shared_session_is_reused(self):
        mock = MockRelay(body={"clusters": []})
        server = await start(mock)
        try:
            async with aiohttp.ClientSession() as session:
                client = HttpRelayClient(base_url=base_url(server), session=session)
                await client.request_clusters(CARDS, [], BatchInfo(1, 1))
                await client.request_clusters(CARDS, [], BatchInfo(1, 1))
                assert not session.closed
        finally:
            await server.close()
        assert len(mock.requests) == 2


class TestRequestDuplicates:
    @pytest.mark.asyncio
    async def test_parses_duplicates(self):
        mock = MockRelay(
            body={"duplicates": [{"id": "1", "title": "Fix login", "reason": "Same bug"}]}
        )
        server = await start(mock)
        try:
            client = HttpRelayClient(base_url=base_url(server))
            result = await client.request_duplicates(Card(id="3", title="Login fails"), CARDS)
        finally:
            await server.close()

        (sent,) = mock.requests
        assert sent["path"] == "/api/openai/check-duplicates"
        assert sent["json"]["newCard"] == {"id": "3", "title": "Login fails"}
        assert [c["id"] for c in sent["json"]["existingCards"]] == ["1", "2"]
        assert result.duplicates[0].reason == "Same bug"


class TestTransport:
    @pytest.mark.asyncio
    async def test_connection_refused_raises_after_retries(self, unused_tcp_port):
        client = HttpRelayClient(
            base_url=f"http://127.0.0.1:{unused_tcp_port}", max_retries=2, timeout_seconds=5
        )
        with pytest.raises(CollaboratorError, match="Request failed"):
            await client.request_duplicates(Card(id="3", title="x"), CARDS)

    def test_from_config(self):
        config = InsightConfig(
            relay_base_url="http://relay:3100/", request_timeout_seconds=30, max_retries=3
        )
        client = HttpRelayClient.from_config(config)
        assert client.base_url == "http://relay:3100"
        assert client.timeout_seconds == 30
        assert client.max_retries == 3
