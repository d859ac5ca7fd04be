"""
Session store: persists conversations to device-local storage.

The whole history lives under one storage key as a JSON array, most recently
updated first, capped at ``max_sessions`` entries. Storage failures never
escape this module: reads degrade to an empty result, writes to a no-op.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from pydantic import TypeAdapter

from ptsp_chat.config import HISTORY_KEY
from ptsp_chat.errors import StorageError
from ptsp_chat.models.session import Session, SessionInfo
from ptsp_chat.storage import Storage

logger = logging.getLogger(__name__)

MAX_SESSIONS = 50
TITLE_MAX_CHARS = 50

_history_adapter = TypeAdapter(list[Session])


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def derive_title(text: str) -> str:
    """Title from the first user message: one line, at most 50 characters."""
    cleaned = text.replace("\n", " ").strip()
    if len(cleaned) > TITLE_MAX_CHARS:
        return cleaned[: TITLE_MAX_CHARS - 3] + "..."
    return cleaned


class SessionStore:
    def __init__(
        self,
        storage: Optional[Storage],
        key: str = HISTORY_KEY,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], datetime] = _utcnow,
    ):
        # storage=None means no device storage is available (headless run)
        self._storage = storage
        self._key = key
        self._max_sessions = max_sessions
        self._clock = clock

    @property
    def available(self) -> bool:
        return self._storage is not None

    def list(self) -> list[SessionInfo]:
        """Session metadata, most recently updated first. Empty on any failure."""
        try:
            sessions = self._read()
        except StorageError as e:
            logger.error("Error loading chat history: %s", e)
            return []
        return [
            SessionInfo(
                id=s.id,
                title=s.title,
                created_at=s.created_at,
                updated_at=s.updated_at,
                message_count=len(s.messages),
            )
            for s in sessions
        ]

    def get(self, session_id: str) -> Optional[Session]:
        try:
            sessions = self._read()
        except StorageError as e:
            logger.error("Error loading chat history: %s", e)
            return None
        for s in sessions:
            if s.id == session_id:
                return s
        return None

    def save(self, session: Session) -> None:
        """Upsert ``session`` at the front of the history, then enforce the cap."""
        if self._storage is None:
            return
        try:
            sessions = self._read()
        except StorageError as e:
            # Leave an unreadable blob alone rather than overwrite it
            logger.error("Not saving session %s, history is unreadable: %s", session.id, e)
            return

        existing = next((s for s in sessions if s.id == session.id), None)
        title = existing.title if existing is not None else None
        if not title:
            title = session.title or self._title_for(session)
        record = session.model_copy(
            update={
                "title": title,
                "messages": list(session.messages),
                "created_at": existing.created_at if existing is not None else session.created_at,
                "updated_at": self._clock(),
            },
        )

        sessions = [s for s in sessions if s.id != session.id]
        sessions.insert(0, record)
        sessions.sort(key=lambda s: s.updated_at, reverse=True)
        del sessions[self._max_sessions:]

        try:
            self._write(sessions)
        except StorageError as e:
            logger.error("Error saving chat history: %s", e)

    def create(self) -> Session:
        """A fresh, unsaved session."""
        now = self._clock()
        return Session(id=str(uuid.uuid4()), title=None, messages=[], created_at=now, updated_at=now)

    @staticmethod
    def _title_for(session: Session) -> Optional[str]:
        first = session.first_user_message()
        return derive_title(first.content) if first is not None else None

    def _read(self) -> list[Session]:
        if self._storage is None:
            return []
        raw = self._storage.get_item(self._key)
        if not raw:
            return []
        try:
            sessions = _history_adapter.validate_json(raw)
        except ValueError as e:
            raise StorageError(f"Corrupt history under {self._key!r}: {e}") from e
        return sorted(sessions, key=lambda s: s.updated_at, reverse=True)

    def _write(self, sessions: list[Session]) -> None:
        try:
            raw = _history_adapter.dump_json(sessions, by_alias=True, exclude_none=True)
        except ValueError as e:
            raise StorageError(f"Failed to serialize history: {e}") from e
        self._storage.set_item(self._key, raw.decode("utf-8"))  # type: ignore[union-attr]
