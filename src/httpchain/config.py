"""Configuration management for httpchain."""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="HTTPCHAIN_",
        extra="ignore",
    )

    # Default transport
    timeout: float = 30.0
    follow_redirects: bool = True
    user_agent: str = "httpchain/0.1.0"

    # Errors
    body_preview_limit: int = 1024  # bytes of response body shown in Err

    # Logging
    log_level: str = "WARNING"
    log_format: str = "json"


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()


# Global settings instance
settings = get_settings()
