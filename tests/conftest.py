"""Shared test fixtures for ptsp-chat."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ptsp_chat.server import app, get_orchestrator
from ptsp_chat.sessions import SessionStore
from ptsp_chat.storage import MemoryStorage
from ptsp_chat.transport.http import RequestOrchestrator

BACKEND_URL = "http://localhost:8001"


class FakeClock:
    """Strictly increasing UTC clock, one second per reading."""

    def __init__(self) -> None:
        self.now = datetime(2026, 10, 18, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class Backend:
    """Scripted RAG backend, usable as an httpx.MockTransport handler."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], Any] = lambda request: httpx.Response(
            200, json={"message": "ok"}
        )

    def __call__(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        return self.handler(request)

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage, clock: FakeClock) -> SessionStore:
    return SessionStore(storage, clock=clock)


@pytest.fixture
def backend() -> Backend:
    return Backend()


@pytest_asyncio.fixture
async def orchestrator(backend: Backend) -> AsyncGenerator[RequestOrchestrator, None]:
    orch = RequestOrchestrator(BACKEND_URL, transport=backend.transport)
    yield orch
    await orch.close()


@pytest_asyncio.fixture
async def proxy(orchestrator: RequestOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for the local proxy, wired to the scripted backend."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
