"""Application settings loaded from environment variables."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _under_pytest() -> bool:
    return bool(os.getenv("PYTEST_CURRENT_TEST"))


class Settings(BaseSettings):
    """Bot configuration. All values come from environment variables."""

    model_config = SettingsConfigDict(
        env_file=None if _under_pytest() else ".env",
        env_file_encoding="utf-8",
    )

    # Telegram bot identity
    telegram_bot_token: str = ""
    bot_author_label: str = "bot"

    # Claude completion
    anthropic_api_key: str = ""
    claude_model: str = "claude-sonnet-4-5-20250929"
    summary_model: str = "claude-haiku-4-5-20251001"
    chat_temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    chat_max_tokens: int = Field(default=1500, ge=1)
    llm_timeout: float = Field(default=60.0, gt=0)

    # Conversation memory
    max_history_tokens: int = Field(default=32000, gt=0)
    compact_to_tokens: int = Field(default=16000, gt=0)
    compact_threshold: float = Field(default=0.8, gt=0.0, le=1.0)
    history_max_entries: int = Field(default=25, gt=0)
    chat_memory_limit: int = Field(default=100, gt=0)

    # Link and search enrichment
    fetch_timeout: float = Field(default=10.0, gt=0)
    github_token: str = ""
    brave_search_api_key: str = ""

    log_level: str = "INFO"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Tests see only explicit init kwargs, never the host environment
        if _under_pytest():
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)


settings = Settings()
