"""
Chat controller: sequences user input through the orchestrator and the store.

State machine: IDLE -> SENDING on submit, back to IDLE once the reply (or the
apology) is appended. Submits while SENDING are ignored.

Persistence is debounced: every change to the message list restarts a timer
and only the surviving timer writes. Switching sessions flushes immediately.
"""

import asyncio
import enum
import logging
import time
from typing import Any, Callable, Optional, Protocol

from ptsp_chat.errors import PTSPChatError
from ptsp_chat.models.chat import ChatResponse
from ptsp_chat.models.message import AssistantMessage, Message, UserMessage
from ptsp_chat.models.session import Session, SessionInfo
from ptsp_chat.sessions import SessionStore, derive_title
from ptsp_chat.speech import SpeechInput

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DEBOUNCE_S = 1.0

APOLOGY_MESSAGE = (
    "❌ Maaf, terjadi kesalahan saat memproses pertanyaan Anda.\n\n"
    "Silakan coba lagi dalam beberapa saat atau hubungi administrator sistem."
)


class Orchestrator(Protocol):
    async def send(self, messages: Any, deadline: Optional[float] = None) -> ChatResponse: ...


class ChatState(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"


class DebouncedSave:
    """Cancellable deferred call; ``flush()`` runs it right away."""

    def __init__(self, callback: Callable[[], None], delay: float = DEFAULT_SAVE_DEBOUNCE_S):
        self._callback = callback
        self._delay = delay
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        self.cancel()
        self._callback()

    def _fire(self) -> None:
        self._handle = None
        self._callback()


def build_reply(response: ChatResponse, elapsed_s: float) -> AssistantMessage:
    features = dict(response.enhanced_features)
    features["frontend_processing_time"] = f"{elapsed_s:.2f}s"
    if "response_time" in response.enhanced_features:
        features["total_processing_time"] = response.enhanced_features["response_time"]
    return AssistantMessage(
        content=response.message,
        sources=list(response.sources),
        total_sources=response.total_sources,
        enhanced_features=features,
    )


class ChatController:
    def __init__(
        self,
        store: SessionStore,
        orchestrator: Orchestrator,
        *,
        save_debounce: float = DEFAULT_SAVE_DEBOUNCE_S,
        speech: Optional[SpeechInput] = None,
    ):
        self._store = store
        self._orchestrator = orchestrator
        self._speech = speech
        self._state = ChatState.IDLE
        self._saver = DebouncedSave(self._persist_current, save_debounce)
        self._session = self._initial_session()

    def _initial_session(self) -> Session:
        """Resume the most recent conversation, or start a new one."""
        history = self._store.list()
        if history:
            session = self._store.get(history[0].id)
            if session is not None:
                return session
        return self._store.create()

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def session_id(self) -> str:
        return self._session.id

    @property
    def title(self) -> Optional[str]:
        return self._session.title

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._session.messages)

    @property
    def speech_available(self) -> bool:
        return self._speech is not None

    def history(self) -> list[SessionInfo]:
        return self._store.list()

    async def submit(self, text: str) -> Optional[AssistantMessage]:
        """Send ``text`` and append the answer. Returns None if the input was ignored."""
        if not text.strip():
            return None
        if self._state is ChatState.SENDING:
            logger.warning("Ignoring submit while a request is outstanding (session %s)", self._session.id)
            return None

        session = self._session
        session.messages.append(UserMessage(content=text))
        self._changed(session)
        self._state = ChatState.SENDING

        started = time.perf_counter()
        try:
            response = await self._orchestrator.send(list(session.messages))
        except PTSPChatError as e:
            logger.error("Chat request failed for session %s: %s", session.id, e)
            reply = AssistantMessage(content=APOLOGY_MESSAGE)
        except Exception:
            logger.exception("Unexpected error processing chat request for session %s", session.id)
            reply = AssistantMessage(content=APOLOGY_MESSAGE)
        else:
            reply = build_reply(response, time.perf_counter() - started)
        finally:
            self._state = ChatState.IDLE

        if session is not self._session and session.id == self._session.id:
            # Switched away and back: the reloaded copy is the one that gets saved
            session = self._session
        session.messages.append(reply)
        self._changed(session)
        return reply

    async def dictate(self) -> Optional[AssistantMessage]:
        """Submit one dictated utterance. Only valid when ``speech_available``."""
        if self._speech is None:
            raise RuntimeError("No speech input available")
        return await self.submit(await self._speech.listen())

    def switch_session(self, session_id: str) -> Session:
        self._saver.flush()
        session = self._store.get(session_id)
        if session is None:
            logger.info("Session %s not found, starting a new chat", session_id)
            session = self._store.create()
        self._session = session
        return session

    def new_chat(self) -> Session:
        self._saver.flush()
        self._session = self._store.create()
        return self._session

    def close(self) -> None:
        """Write any pending change now."""
        self._saver.flush()

    def _changed(self, session: Session) -> None:
        if session is self._session:
            self._saver.schedule()
        else:
            # A reply landed after the user switched away
            self._persist(session)

    def _persist_current(self) -> None:
        self._persist(self._session)

    def _persist(self, session: Session) -> None:
        first = session.first_user_message()
        if first is None:
            return
        if session.title is None:
            session.title = derive_title(first.content)
        self._store.save(session)
