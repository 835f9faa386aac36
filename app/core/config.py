"""
core/config.py
All environment variables and settings in one place.
Secrets for the upstream Assistants API are read once and handed to the
relay as an explicit RelayConfig.
"""

from functools import lru_cache
from typing import Literal
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.errors import ConfigError


StreamFormat = Literal["legacy", "envelope"]


class RelayConfig(BaseModel):
    """Everything the relay needs to reach the upstream provider."""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    assistant_id: str = ""
    base_url: str = "https://api.openai.com/v1"
    beta_header: str = "assistants=v2"
    connect_timeout: float = 10.0
    read_timeout: float = 120.0

    @property
    def runs_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/threads/runs"

    @property
    def is_complete(self) -> bool:
        return bool(self.api_key) and bool(self.assistant_id)

    def require_secrets(self) -> None:
        if not self.is_complete:
            raise ConfigError("Missing API key or assistant ID")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ─── App ───────────────────────────────────────────────
    APP_NAME: str = "Assistant Stream Relay"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    ALLOWED_ORIGINS: list[str] = ["http://localhost:5721"]

    # ─── Upstream (OpenAI Assistants v2) ───────────────────
    OPENAI_API_KEY: str = ""
    ASSISTANT_ID: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_BETA_HEADER: str = "assistants=v2"

    # ─── Timeouts (seconds) ────────────────────────────────
    UPSTREAM_CONNECT_TIMEOUT: float = 10.0
    UPSTREAM_READ_TIMEOUT: float = 120.0   # max gap between body chunks

    # ─── Client stream shape ───────────────────────────────
    # "legacy"   = {"thread_id": ...} line, then raw text
    # "envelope" = NDJSON {"kind": ..., "value": ...} per chunk
    STREAM_FORMAT: StreamFormat = "legacy"

    @property
    def relay_config(self) -> RelayConfig:
        return RelayConfig(
            api_key=self.OPENAI_API_KEY.strip(),
            assistant_id=self.ASSISTANT_ID.strip(),
            base_url=self.OPENAI_BASE_URL,
            beta_header=self.OPENAI_BETA_HEADER,
            connect_timeout=self.UPSTREAM_CONNECT_TIMEOUT,
            read_timeout=self.UPSTREAM_READ_TIMEOUT,
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
