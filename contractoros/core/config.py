
from pydantic import Field
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application configuration loaded from environment variables / .env file."""

    app_name: str = "ContractorOS API"
    app_env: str = "development"
    app_port: int = 8000
    frontend_url: str = "http://localhost:3000"
    max_upload_size_mb: int = 25

    # Database (Postgres in production or SQLite for local dev)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./contractoros_dev.db",
        alias="DATABASE_URL",
    )

    # Auth
    jwt_secret: str = Field(default="change-me-in-production", alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # AI providers
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4.1-mini", alias="OPENAI_MODEL")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    claude_model: str = Field(default="claude-sonnet-4-5", alias="CLAUDE_MODEL")
    gemini_api_key: str | None = Field(default=None, alias="GEMINI_API_KEY")
    gemini_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_MODEL")
    ai_primary_provider: str = Field(default="gemini", alias="AI_PRIMARY_PROVIDER")
    ai_max_fallback_attempts: int = Field(default=2, alias="AI_MAX_FALLBACK_ATTEMPTS")
    ai_max_tokens: int = Field(default=1500, alias="AI_MAX_TOKENS")
    openai_timeout: int = Field(default=60, alias="OPENAI_TIMEOUT")

    # Offline voice-log sync
    sync_max_retries: int = Field(default=5, alias="SYNC_MAX_RETRIES")
    sync_base_delay_seconds: float = Field(default=1.0, alias="SYNC_BASE_DELAY_SECONDS")
    sync_max_delay_seconds: float = Field(default=30.0, alias="SYNC_MAX_DELAY_SECONDS")
    voice_upload_base_url: str = Field(
        default="http://localhost:8000", alias="VOICE_UPLOAD_BASE_URL",
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")
    usage_cache_ttl_seconds: float = Field(
        default=60.0, alias="USAGE_CACHE_TTL_SECONDS",
    )  # Org AI budget reads tolerate this much staleness

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "populate_by_name": True,
        "extra": "ignore",
    }

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

settings = Settings()
