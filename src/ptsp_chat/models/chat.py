"""
Wire models for the RAG backend (``POST {base}/chat``) and the local proxy
(``POST /api/chat``).
"""

import math
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ptsp_chat.models.message import FeatureValue, Source


class ChatTurn(BaseModel):
    """One forwarded turn: role + content only."""

    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatTurn]


class ChatResponse(BaseModel):
    """Backend success body."""

    message: str
    sources: list[Source] = Field(default_factory=list)
    total_sources: int = 0
    enhanced_features: dict[str, FeatureValue] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fill_defaults(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if data.get("sources") is None:
                data["sources"] = []
            if data.get("total_sources") is None:
                data["total_sources"] = len(data["sources"])
            if data.get("enhanced_features") is None:
                data["enhanced_features"] = {}
        return data

    @field_validator("enhanced_features")
    @classmethod
    def _finite_only(cls, v: dict[str, FeatureValue]) -> dict[str, FeatureValue]:
        # NaN and Infinity have no JSON encoding
        return {k: x for k, x in v.items() if not isinstance(x, float) or math.isfinite(x)}


class ChatReply(BaseModel):
    """Proxy success body."""

    role: Literal["assistant"] = "assistant"
    content: str
    sources: list[Source] = Field(default_factory=list)
    total_sources: int = 0
    enhanced_features: dict[str, FeatureValue] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, response: ChatResponse) -> "ChatReply":
        return cls(
            content=response.message,
            sources=response.sources,
            total_sources=response.total_sources,
            enhanced_features=response.enhanced_features,
        )
