"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Companion configuration. All values come from environment variables."""

    # Persona
    companion_name: str = Field(default="Moomina")
    owner_name: str = Field(default="")
    relationship_status: str = Field(default="Partner")

    # Anthropic
    anthropic_api_key: str = Field(default="")
    default_chat_model: str = Field(default="sonnet")
    fallback_chat_model: str = Field(default="haiku")
    default_memory_model: str = Field(default="haiku")
    chat_max_tokens: int = Field(default=120)
    chat_temperature: float = Field(default=0.92)

    # OpenAI (image generation)
    openai_api_key: str = Field(default="")
    image_model: str = Field(default="dall-e-3")
    image_size: str = Field(default="1024x1792")
    uploads_dir: Path = Field(default=Path("data/uploads"))

    # Database
    database_path: Path = Field(default=Path("data/companion.db"))

    # Turso (hosted libSQL): when set, overrides local database_path
    turso_database_url: str = Field(default="")
    turso_auth_token: str = Field(default="")

    # Conversation
    history_window: int = Field(default=20)

    # Retrieval
    retrieval_top_k: int = Field(default=7)
    retrieval_min_score: float = Field(default=0.05)
    duplicate_threshold: float = Field(default=0.7)

    # Memory extraction
    extraction_enabled: bool = Field(default=True)
    extraction_every: int = Field(default=5)
    extraction_window: int = Field(default=10)
    extraction_min_messages: int = Field(default=3)
    extraction_sweep_cron: str = Field(default="30 */6 * * *")

    # Scheduler / proactive messages
    scheduler_timezone: str = Field(default="Asia/Kolkata")
    proactive_enabled: bool = Field(default=True)
    sleep_start_hour: int = Field(default=23)
    sleep_end_hour: int = Field(default=7)
    checkin_gap_hours: float = Field(default=6.0)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def is_sleep_hour(self, hour: int) -> bool:
        """Return True if *hour* falls inside the configured sleep window."""
        start, end = self.sleep_start_hour, self.sleep_end_hour
        if start == end:
            return False
        if start < end:
            return start <= hour < end
        return hour >= start or hour < end


settings = Settings()
