"""
Conversation messages: a user/assistant union discriminated on ``role``.
"""

import math
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

PREVIEW_CHARS = 150

FeatureValue = Union[bool, int, float, str]


class Source(BaseModel):
    """A document fragment the backend cited for an answer."""

    filename: str = ""
    score: Optional[float] = None
    content_preview: str = ""
    path: str = ""

    @field_validator("score")
    @classmethod
    def _nan_is_missing(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not math.isfinite(v):
            return None
        return v

    @property
    def score_display(self) -> str:
        if self.score is None:
            return "n/a"
        return f"{round(self.score * 100)}%"

    @property
    def preview(self) -> str:
        if len(self.content_preview) > PREVIEW_CHARS:
            return self.content_preview[:PREVIEW_CHARS] + "..."
        return self.content_preview


class UserMessage(BaseModel):
    model_config = ConfigDict(extra="forbid")

    role: Literal["user"] = "user"
    content: str

    @field_validator("content")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("content must not be blank")
        return v


class AssistantMessage(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str
    sources: Optional[list[Source]] = None
    total_sources: Optional[int] = None
    enhanced_features: Optional[dict[str, FeatureValue]] = None


Message = Annotated[Union[UserMessage, AssistantMessage], Field(discriminator="role")]
