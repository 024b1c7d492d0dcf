"""Centralised settings for growthlab, loaded from env / .env."""

from __future__ import annotations

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env into os.environ (won't overwrite existing env vars) so that
# provider keys read by litellm itself are visible too.
load_dotenv(override=False)


class GrowthLabSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="GROWTHLAB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- general ---
    app_name: str = "growthlab"
    env: str = "dev"
    debug: bool = False
    log_level: str = "INFO"

    # --- HTTP ---
    host: str = "0.0.0.0"
    port: int = 8080

    # --- database ---
    # Empty means "not configured": requests answer 500 instead of crashing.
    database_url: str = ""

    # --- language model ---
    llm_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GROWTHLAB_LLM_API_KEY", "OPENAI_API_KEY"),
    )
    llm_api_base: str = ""
    llm_model: str = "gpt-4o"

    # --- sessions ---
    session_cookie_name: str = "growthlab_session"
    session_ttl_hours: int = 24 * 30

    @property
    def database_configured(self) -> bool:
        return bool(self.database_url)

    @property
    def llm_configured(self) -> bool:
        return bool(self.llm_api_key)


@lru_cache
def get_settings() -> GrowthLabSettings:
    return GrowthLabSettings()
