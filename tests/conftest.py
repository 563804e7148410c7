"""Shared fixtures: a local aiohttp app standing in for the GraphQL endpoint."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from config import GraphQLConfig


class RecordingGraphQLServer:
    """Records every request and answers with a configurable status and body."""

    def __init__(self):
        self.requests: list[dict] = []
        self.status = 200
        self.body = '{"data": {"ok": true}}'
        self.delay_s = 0.0
        self.truncate_at: int | None = None
        self.url = ""

    async def handle(self, request: web.Request) -> web.StreamResponse:
        raw = await request.read()
        self.requests.append(
            {
                "method": request.method,
                "path": request.path,
                "headers": {key.lower(): value for key, value in request.headers.items()},
                "body": raw.decode("utf-8"),
            }
        )
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.truncate_at is not None:
            return await self._truncated(request)
        return web.Response(status=self.status, text=self.body, content_type="application/json")

    async def _truncated(self, request: web.Request) -> web.StreamResponse:
        """Declare the full length, send only part of the body, then drop the connection."""
        data = self.body.encode("utf-8")
        resp = web.StreamResponse(
            status=self.status,
            headers={"Content-Type": "application/json", "Content-Length": str(len(data))},
        )
        await resp.prepare(request)
        await resp.write(data[: self.truncate_at])
        request.transport.close()
        return resp


@pytest_asyncio.fixture
async def graphql_server():
    recorder = RecordingGraphQLServer()
    app = web.Application()
    app.router.add_post("/graphql", recorder.handle)
    server = TestServer(app)
    await server.start_server()
    recorder.url = str(server.make_url("/graphql"))
    try:
        yield recorder
    finally:
        await server.close()


@pytest.fixture
def graphql_config(graphql_server) -> GraphQLConfig:
    return GraphQLConfig(endpoint_url=graphql_server.url)
