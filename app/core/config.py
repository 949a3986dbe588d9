"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    ``DATABASE_URL`` and ``SECRET_KEY`` have no defaults: the service refuses
    to start without a document store and a session signing secret.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Newsdesk API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str

    # Redis (rate limit storage)
    redis_url: str = "redis://localhost:6379/0"
    rate_limit_storage_uri: str | None = None
    rate_limit_enabled: bool = True

    # Security
    secret_key: str
    session_max_age_days: int = 30
    cors_origins: list[str] = ["http://localhost:3000"]

    # Route guard
    protected_routes: list[str] = ["/news"]

    # OAuth - GitHub
    github_client_id: str = ""
    github_client_secret: str = ""

    # OAuth - Google
    google_client_id: str = ""
    google_client_secret: str = ""

    # Summarization (OpenAI-compatible chat completions)
    groq_api_key: str = ""
    groq_api_url: str = "https://api.groq.com/openai/v1/chat/completions"
    summary_model: str = "llama3-8b-8192"
    summary_timeout: float = 30.0

    # Observability
    sentry_dsn: str = ""
    otlp_endpoint: str = ""


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
