"""
Application configuration loaded from environment variables.

Uses Pydantic Settings to:
1. Read from .env file automatically
2. Validate values at startup
3. Provide type-safe access throughout the app

Usage:
    from app.config import settings
    print(settings.BRAND_ACCENT_COLOR)

Note: We use a custom validator that prefers .env values over empty
shell environment variables, so a blank variable exported by the shell
does not shadow a real value in the .env file.
"""

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All application configuration in one place."""

    model_config = SettingsConfigDict(
        env_file=".env",        # Load from .env file
        env_file_encoding="utf-8",
        case_sensitive=True,     # ENV_VAR must match exactly
        extra="ignore",
    )

    @model_validator(mode="before")
    @classmethod
    def prefer_dotenv_over_empty_env(cls, data):
        """If an env var is empty but .env has a value, use the .env value.

        Pydantic Settings prioritizes real env vars over .env file values,
        even when the env var is an empty string.
        """
        from dotenv import dotenv_values

        dotenv_vals = dotenv_values(".env")
        for key, dotenv_value in dotenv_vals.items():
            # If the field is missing or empty, use the .env value
            if dotenv_value and (key not in data or not data.get(key)):
                data[key] = dotenv_value
        return data

    # --- Application ---
    APP_ENV: str = "development"
    DEBUG: bool = True
    CORS_ORIGINS: str = "http://localhost:3000"
    LOG_LEVEL: str = "INFO"

    # --- Document rendering ---
    BRAND_ACCENT_COLOR: str = "#F97316"
    PDF_PAGE_COMPRESSION: bool = True
    PDF_FONT_REGULAR_PATH: Optional[str] = None  # TTF; Helvetica when unset
    PDF_FONT_BOLD_PATH: Optional[str] = None

    # --- Stream recompression ---
    COMPRESSION_MIN_STREAM_BYTES: int = 128
    COMPRESSION_LEVEL: int = 9
    COMPRESS_MAX_INPUT_BYTES: int = 50 * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]


# Singleton instance — import this everywhere
settings = Settings()
