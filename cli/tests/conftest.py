"""
Fixtures for the client mirror tests.

`game` is parametrized: every test that uses it runs once against an
offline mirror (local reducer) and once against a mirror connected to an
in-process game server through httpx.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from coloc_cli.client import ApiClient, RemoteTransport
from coloc_cli.mirror import GameClient
from engine.kernel.store import GameStore


@pytest.fixture
def server_store():
    return GameStore()


@pytest.fixture
def server(server_store):
    with TestClient(create_app(store=server_store)) as c:
        yield c


def connected_client(server) -> GameClient:
    return GameClient(transport=RemoteTransport(ApiClient("http://testserver", client=server)))


@pytest.fixture(params=["offline", "connected"])
def game(request):
    if request.param == "offline":
        return GameClient()
    return connected_client(request.getfixturevalue("server"))


@pytest.fixture
def make_game(server):
    """Factory for extra mirrors on the same server (a GM and a team, say)."""
    return lambda: connected_client(server)


@pytest.fixture
def unreachable_api():
    """ApiClient whose every request fails to connect."""

    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.Client(transport=httpx.MockTransport(refuse), base_url="http://down.invalid")
    return ApiClient("http://down.invalid", client=client)


@pytest.fixture
def failing_api():
    """ApiClient against a reachable server that answers every request with 500."""

    def fail(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "Internal Server Error"})

    client = httpx.Client(transport=httpx.MockTransport(fail), base_url="http://flaky.invalid")
    return ApiClient("http://flaky.invalid", client=client)
