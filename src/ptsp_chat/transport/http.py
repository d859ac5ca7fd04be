"""
Request orchestrator: POST {base}/chat against the RAG backend.

One deadline covers the whole call. A transport failure against a
``localhost`` base address is retried once against ``127.0.0.1`` (backends
often listen on IPv4 only while ``localhost`` resolves to IPv6 first).
HTTP error statuses are never retried.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Optional, Union

import httpx

from ptsp_chat.config import DEFAULT_RAG_API_URL
from ptsp_chat.errors import BackendError, InvalidResponseError, UnreachableError
from ptsp_chat.models.chat import ChatResponse, ChatTurn
from ptsp_chat.models.message import AssistantMessage, UserMessage

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_S = 180.0
LOOPBACK_HOSTNAME = "localhost"
LOOPBACK_ADDRESS = "127.0.0.1"

Turn = Union[UserMessage, AssistantMessage, ChatTurn]


def fallback_url(base_url: str) -> Optional[str]:
    """The numeric loopback twin of ``base_url``, or None if it is not a localhost URL."""
    url = httpx.URL(base_url)
    if url.host != LOOPBACK_HOSTNAME:
        return None
    return str(url.copy_with(host=LOOPBACK_ADDRESS)).rstrip("/")


class RequestOrchestrator:
    def __init__(
        self,
        base_url: str = DEFAULT_RAG_API_URL,
        deadline: float = DEFAULT_DEADLINE_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._fallback_url = fallback_url(self._base_url)
        self._deadline = deadline
        # The shared deadline below is the only timeout
        self._client = httpx.AsyncClient(
            headers={"User-Agent": "ptsp-chat/0.1.0", "Accept": "application/json"},
            timeout=None,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def send(self, messages: Sequence[Turn], deadline: Optional[float] = None) -> ChatResponse:
        """Forward the conversation and return the parsed answer.

        Raises UnreachableError (transport failure or deadline), BackendError
        (non-2xx status) or InvalidResponseError (2xx with a malformed body).
        """
        body = {"messages": [{"role": m.role, "content": m.content} for m in messages]}
        urls = [self._base_url]
        if self._fallback_url:
            urls.append(self._fallback_url)

        loop = asyncio.get_running_loop()
        expires_at = loop.time() + (self._deadline if deadline is None else deadline)
        last_error: Optional[BaseException] = None

        for url in urls:
            remaining = expires_at - loop.time()
            if remaining <= 0:
                break
            logger.debug("POST %s/chat (%.1fs left)", url, remaining)
            try:
                response = await asyncio.wait_for(self._attempt(url, body), timeout=remaining)
            except asyncio.TimeoutError as e:
                last_error = e
                logger.warning("RAG backend at %s did not answer before the deadline", url)
                break
            except httpx.TransportError as e:
                last_error = e
                logger.warning("RAG backend at %s failed: %r", url, e)
                continue
            return self._parse(response)

        detail = repr(last_error) if last_error is not None else "deadline elapsed"
        logger.error("RAG fetch network failure: %s", detail)
        raise UnreachableError("RAG backend unreachable", {"detail": detail})

    async def _attempt(self, url: str, body: dict[str, Any]) -> httpx.Response:
        return await self._client.post(f"{url}/chat", json=body, headers={"Content-Type": "application/json"})

    @staticmethod
    def _parse(response: httpx.Response) -> ChatResponse:
        if not response.is_success:
            detail = response.text[:200]
            logger.error("RAG API error: %s - %s", response.status_code, detail)
            raise BackendError(response.status_code, detail)
        try:
            return ChatResponse.model_validate(response.json())
        except ValueError as e:
            logger.error("Malformed RAG API response: %s", e)
            raise InvalidResponseError(f"Malformed backend response: {e}") from e

    async def close(self) -> None:
        await self._client.aclose()
