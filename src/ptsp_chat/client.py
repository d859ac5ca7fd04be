"""
ChatClient: wires settings, storage, the session store, the orchestrator and
the controller together, and tears them down again.
"""

from typing import Any, Optional

import httpx

from ptsp_chat.chat import ChatController
from ptsp_chat.config import Settings, get_settings
from ptsp_chat.sessions import SessionStore
from ptsp_chat.speech import SpeechInput
from ptsp_chat.storage import FileStorage, Storage
from ptsp_chat.transport.http import RequestOrchestrator


def default_storage(settings: Settings) -> Optional[Storage]:
    if not settings.history_enabled:
        return None
    return FileStorage(settings.history_dir)


class ChatClient:
    """Async chat client. Use ``async with ChatClient() as client:``."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        storage: Optional[Storage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        speech: Optional[SpeechInput] = None,
    ):
        self.settings = settings or get_settings()
        if storage is None:
            storage = default_storage(self.settings)

        self.store = SessionStore(
            storage,
            key=self.settings.history_key,
            max_sessions=self.settings.max_sessions,
        )
        self.orchestrator = RequestOrchestrator(
            base_url=self.settings.rag_api_url,
            deadline=self.settings.chat_timeout,
            transport=transport,
        )
        self.chat = ChatController(
            self.store,
            self.orchestrator,
            save_debounce=self.settings.save_debounce,
            speech=speech,
        )

    async def close(self) -> None:
        self.chat.close()
        await self.orchestrator.close()

    async def __aenter__(self) -> "ChatClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
