"""Request orchestrator tests against a scripted backend."""

import asyncio
import json

import httpx
import pytest

from ptsp_chat.errors import BackendError, InvalidResponseError, UnreachableError
from ptsp_chat.models.chat import ChatTurn
from ptsp_chat.models.message import AssistantMessage, UserMessage
from ptsp_chat.transport.http import RequestOrchestrator, fallback_url

QUESTION = [UserMessage(content="Apa itu DPMPTSP?")]


def _refuse(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Connection refused", request=request)


def test_fallback_url():
    assert fallback_url("http://localhost:8001") == "http://127.0.0.1:8001"
    assert fallback_url("http://localhost:8001/rag") == "http://127.0.0.1:8001/rag"
    assert fallback_url("http://127.0.0.1:8001") is None
    assert fallback_url("https://rag.example.org") is None


class TestSuccess:
    @pytest.mark.asyncio
    async def test_posts_role_and_content_only(self, backend, orchestrator):
        backend.handler = lambda request: httpx.Response(200, json={
            "message": "DPMPTSP adalah ...",
            "sources": [{"filename": "profil.pdf", "score": 0.91, "content_preview": "...", "path": "/docs/profil.pdf"}],
            "total_sources": 4,
            "enhanced_features": {"query_expansion": True},
        })
        history = [
            UserMessage(content="Halo"),
            AssistantMessage(content="Halo juga", sources=[], enhanced_features={"confidence": "high"}),
            UserMessage(content="Apa itu DPMPTSP?"),
        ]
        response = await orchestrator.send(history)

        assert response.message == "DPMPTSP adalah ..."
        assert response.sources[0].filename == "profil.pdf"
        assert response.total_sources == 4
        assert response.enhanced_features == {"query_expansion": True}

        assert len(backend.requests) == 1
        request = backend.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "http://localhost:8001/chat"
        assert json.loads(request.content) == {"messages": [
            {"role": "user", "content": "Halo"},
            {"role": "assistant", "content": "Halo juga"},
            {"role": "user", "content": "Apa itu DPMPTSP?"},
        ]}

    @pytest.mark.asyncio
    async def test_accepts_wire_turns(self, backend, orchestrator):
        await orchestrator.send([ChatTurn(role="user", content="Halo")])
        assert json.loads(backend.requests[0].content)["messages"] == [{"role": "user", "content": "Halo"}]

    @pytest.mark.asyncio
    async def test_trailing_slash_stripped(self, backend):
        orch = RequestOrchestrator("http://rag.example.org/api/", transport=backend.transport)
        await orch.send(QUESTION)
        await orch.close()
        assert str(backend.requests[0].url) == "http://rag.example.org/api/chat"
        assert orch.base_url == "http://rag.example.org/api"

    @pytest.mark.asyncio
    async def test_nan_score(self, backend, orchestrator):
        body = b'{"message": "x", "sources": [{"filename": "a.pdf", "score": NaN, "content_preview": "", "path": "/a"}]}'
        backend.handler = lambda request: httpx.Response(200, content=body)
        response = await orchestrator.send(QUESTION)
        assert response.sources[0].score is None
        assert response.total_sources == 1


class TestFallback:
    @pytest.mark.asyncio
    async def test_single_fallback_to_numeric_loopback(self, backend, orchestrator):
        backend.handler = _refuse
        with pytest.raises(UnreachableError) as excinfo:
            await orchestrator.send(QUESTION)
        assert backend.hosts == ["localhost", "127.0.0.1"]
        assert "ConnectError" in excinfo.value.details["detail"]

    @pytest.mark.asyncio
    async def test_fallback_success(self, backend, orchestrator):
        def handler(request):
            if request.url.host == "localhost":
                return _refuse(request)
            return httpx.Response(200, json={"message": "via ipv4"})

        backend.handler = handler
        response = await orchestrator.send(QUESTION)
        assert response.message == "via ipv4"
        assert backend.hosts == ["localhost", "127.0.0.1"]
        assert backend.requests[1].url.port == 8001

    @pytest.mark.asyncio
    async def test_no_fallback_for_other_hosts(self, backend):
        backend.handler = _refuse
        orch = RequestOrchestrator("http://rag.example.org:8001", transport=backend.transport)
        with pytest.raises(UnreachableError):
            await orch.send(QUESTION)
        await orch.close()
        assert backend.hosts == ["rag.example.org"]

    @pytest.mark.asyncio
    async def test_http_error_is_not_retried(self, backend, orchestrator):
        backend.handler = lambda request: httpx.Response(500, text="Internal Server Error")
        with pytest.raises(BackendError) as excinfo:
            await orchestrator.send(QUESTION)
        assert excinfo.value.status == 500
        assert excinfo.value.detail == "Internal Server Error"
        assert len(backend.requests) == 1


class TestDeadline:
    @pytest.mark.asyncio
    async def test_deadline_is_unreachable(self, backend, orchestrator):
        async def slow(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"message": "too late"})

        backend.handler = slow
        with pytest.raises(UnreachableError):
            await orchestrator.send(QUESTION, deadline=0.05)
        # Deadline is shared: no fresh attempt against the fallback host
        assert backend.hosts == ["localhost"]

    @pytest.mark.asyncio
    async def test_fallback_gets_remaining_time(self, backend, orchestrator):
        async def handler(request):
            if request.url.host == "localhost":
                await asyncio.sleep(0.03)
                raise httpx.ConnectError("Connection refused", request=request)
            await asyncio.sleep(5)
            return httpx.Response(200, json={"message": "too late"})

        backend.handler = handler
        loop = asyncio.get_running_loop()
        started = loop.time()
        with pytest.raises(UnreachableError):
            await orchestrator.send(QUESTION, deadline=0.1)
        assert loop.time() - started < 1.0
        assert backend.hosts == ["localhost", "127.0.0.1"]


@pytest.mark.asyncio
async def test_malformed_body(backend, orchestrator):
    backend.handler = lambda request: httpx.Response(200, content=b"<html>oops</html>")
    with pytest.raises(InvalidResponseError):
        await orchestrator.send(QUESTION)
