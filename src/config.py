"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
See .env.example for the supported variables.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PERSONA = (
    "You are Rev, an assistant that only talks about Revolt Motors. "
    "Politely refuse unrelated questions and bring the conversation back to "
    "Revolt bikes, pricing, range, charging, servicing, test rides, locations, "
    "financing, and ownership. Keep responses concise and conversational."
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ==========================================================================
    # Gemini API
    # ==========================================================================
    google_api_key: SecretStr | None = Field(
        default=None, description="Google API key for the Gemini REST API"
    )
    gemini_model: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model used for transcription and replies",
    )
    gemini_api_base: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the generative language API",
    )
    gemini_timeout_seconds: float = Field(
        default=30.0,
        description="HTTP timeout for a single generateContent call",
    )

    # ==========================================================================
    # Conversation
    # ==========================================================================
    assistant_persona: str = Field(
        default=DEFAULT_PERSONA,
        description="System instruction describing the assistant",
    )
    default_language_code: str = Field(
        default="en-IN",
        description="Response language used until the client selects one",
    )
    history_window: int = Field(
        default=10,
        ge=1,
        description="Number of most recent turns replayed to the API as context",
    )
    audio_sample_rate: int = Field(
        default=16000,
        description="Sample rate of the PCM audio sent by the browser",
    )
    max_concurrent_sessions: int = Field(
        default=50,
        ge=1,
        description="Maximum simultaneous WebSocket sessions",
    )

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, description="First port to try when starting")
    port_attempts: int = Field(
        default=10,
        ge=1,
        description="How many consecutive ports to try if the first is busy",
    )
    static_dir: str = Field(
        default="public",
        description="Directory with the browser UI (served at /)",
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )

    # ==========================================================================
    # Derived Properties
    # ==========================================================================
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def has_api_key(self) -> bool:
        """Whether a non-empty Gemini API key is configured."""
        return bool(self.google_api_key and self.google_api_key.get_secret_value().strip())


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Use dependency injection in FastAPI:
        settings: Settings = Depends(get_settings)
    """
    return Settings()
