"""Application configuration using pydantic-settings."""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RAG_API_URL = "http://localhost:8001"
HISTORY_KEY = "ptsp_chat_history"


class Settings(BaseSettings):
    """Settings loaded from environment variables (and an optional ``.env``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # RAG backend
    rag_api_url: str = DEFAULT_RAG_API_URL
    chat_timeout: float = 180.0

    # Local history
    history_enabled: bool = True
    history_dir: Path = Path.home() / ".ptsp"
    history_key: str = HISTORY_KEY
    max_sessions: int = 50
    save_debounce: float = 1.0

    log_level: str = "warning"

    @field_validator("rag_api_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency for injecting settings."""
    return settings
