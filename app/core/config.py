from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.version import __version__


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="allow",
    )

    PORT: int = 3000
    APP_ENV: Literal["development", "production"] = "production"

    # AI providers. A provider is only registered when its key is set.
    ANTHROPIC_API_KEY: str | None = None
    OPENAI_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    AI_DEFAULT_PROVIDER: str = "claude"
    CLAUDE_MODEL: str = "claude-sonnet-4-5-20250929"
    OPENAI_MODEL: str = "gpt-4o"
    GEMINI_MODEL: str = "gemini-2.5-flash"
    AI_MAX_TOKENS: int = 1024

    # Supabase
    SUPABASE_URL: str = "http://127.0.0.1:54321"
    SUPABASE_SERVICE_ROLE_KEY: str | None = None
    SUPABASE_STORAGE_BUCKET: str = "profiles"
    SUPABASE_PROFILES_TABLE: str = "ai_profiles"
    SUPABASE_TIMEOUT_SECONDS: float = 10.0
    # Only idempotent reads are retried
    SUPABASE_MAX_RETRIES: int = 3

    # Uploads
    MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024
    IMAGE_MAX_DIMENSION: int = 1024
    IMAGE_JPEG_QUALITY: int = 85


settings = Settings()

APP_VERSION = __version__
