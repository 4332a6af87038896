"""Application settings loaded from the environment."""

from enum import Enum

from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreBackend(str, Enum):
    HTTP = "http"
    MEMORY = "memory"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHELFWISE_",
        env_file=".env",
        extra="ignore",
    )

    # ── Library Store ──────────────────────────────
    api_base_url: str = "http://localhost:8080/api"
    store_backend: StoreBackend = StoreBackend.HTTP
    request_timeout_seconds: float = 10.0

    # ── Presentation ───────────────────────────────
    page_size: int = 12
    notice_ttl_seconds: float = 3.0

    log_level: str = "INFO"


settings = Settings()
