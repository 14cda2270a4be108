"""
Pytest configuration and fixtures for coLoc backend tests.

Every test gets a fresh application around its own GameStore, so no state
leaks between tests.
"""

from __future__ import annotations

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from backend.main import create_app
from engine.kernel.store import GameStore


@pytest.fixture
def store():
    return GameStore()


@pytest.fixture
def app(store):
    return create_app(store=store)


@pytest.fixture
def client(app):
    """
    Synchronous TestClient for websocket tests.

    Used as a context manager so every websocket and request shares one
    event loop, which cross-connection broadcasts rely on.
    """
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture
async def async_client(app):
    """Async HTTP client against the ASGI app."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c
