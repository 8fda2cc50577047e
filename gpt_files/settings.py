"""Configuration for the gpt-files CLI."""

from functools import lru_cache
from typing import Optional

from dotenv import find_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app_settings import settings_defaults
from .errors import ConfigurationError


class Settings(BaseSettings):
    """Pydantic settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(env_file_encoding="utf-8", extra="ignore")

    # OpenAI connectivity
    openai_api_key: Optional[str] = Field(default=None, description="API key sent as a bearer token.")
    openai_assistant_id: Optional[str] = Field(
        default=None, description="Default assistant for file commands."
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="Base URL of the API.")
    openai_model: str = Field(default="gpt-4o", description="Model used by create-assistant.")

    # None disables the timeout; uploads of large files can be slow.
    request_timeout_secs: Optional[float] = Field(default=None, description="Timeout for outbound requests.")

    # Output
    table_max_col_width: int = Field(default=40, description="Maximum width of a rendered table column.")

    def require_api_key(self) -> str:
        if not self.openai_api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY environment variable.")
        return self.openai_api_key


def load_settings() -> Settings:
    """Build settings: environment and .env first, YAML ``defaults`` for the rest."""
    settings = Settings(_env_file=find_dotenv(usecwd=True) or None)
    defaults = settings_defaults()
    overrides = {
        key: value
        for key, value in defaults.items()
        if key in Settings.model_fields and key not in settings.model_fields_set
    }
    if not overrides:
        return settings
    return Settings.model_validate({**settings.model_dump(exclude_unset=True), **overrides})


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return load_settings()


def clear_settings_cache() -> None:
    get_settings.cache_clear()
