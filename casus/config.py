"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

_PACKAGE_DIR = Path(__file__).parent


class Settings(BaseSettings):
    """Centralised settings — no hardcoded values anywhere else."""

    # Upstream model
    upstream_provider: Literal["workers_ai", "openai", "gemini"] = "workers_ai"
    max_tokens: int = Field(1024, ge=1)
    upstream_timeout_seconds: float = 60.0

    # Cloudflare Workers AI
    cloudflare_account_id: str = ""
    cloudflare_api_token: str = ""
    workers_ai_model: str = "@cf/meta/llama-3.1-8b-instruct-fp8"

    # OpenAI-compatible
    openai_base_url: str = "https://api.openai.com/v1"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Google AI
    google_api_key: str = ""
    gemini_model: str = "gemini-2.5-flash"

    # Limits — unset keeps the messages array unbounded
    max_messages: Optional[int] = Field(None, ge=1)

    # HTTP
    static_dir: str = str(_PACKAGE_DIR / "static")
    allowed_origins: str = "http://localhost:8787"

    # App
    app_env: str = "development"
    log_level: str = "INFO"

    # Derived
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()


settings = get_settings()
