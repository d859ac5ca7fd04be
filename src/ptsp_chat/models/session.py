"""
Session models: one locally stored conversation.

Persisted field names follow the history blob layout (``timestamp``,
``lastUpdated``); Python code uses ``created_at`` / ``updated_at``.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ptsp_chat.models.message import Message, UserMessage


class Session(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: Optional[str] = None
    messages: list[Message] = Field(default_factory=list)
    created_at: datetime = Field(alias="timestamp")
    updated_at: datetime = Field(alias="lastUpdated")

    @field_validator("created_at", "updated_at")
    @classmethod
    def _naive_is_utc(cls, v: datetime) -> datetime:
        # Older history entries were stamped without an offset
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    def first_user_message(self) -> Optional[UserMessage]:
        for message in self.messages:
            if isinstance(message, UserMessage):
                return message
        return None


class SessionInfo(BaseModel):
    """Session metadata for history listings."""

    id: str
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
