from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Core API Settings
    api_host: str = Field("0.0.0.0", alias="API_HOST")
    api_port: int = Field(8000, alias="API_PORT")
    environment: str = Field("development", alias="ENVIRONMENT")
    app_env: str = Field("dev", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # Database: an explicit URL wins, otherwise the Supabase-hosted Postgres is used
    database_url: str | None = Field(None, alias="DATABASE_URL")
    supabase_project_ref: str | None = Field(None, alias="SUPABASE_PROJECT_REF")
    supabase_db_password: str | None = Field(None, alias="SUPABASE_DB_PASSWORD")
    supabase_db_user: str = Field("postgres", alias="SUPABASE_DB_USER")
    supabase_db_name: str = Field("postgres", alias="SUPABASE_DB_NAME")
    redis_url: str = Field("redis://localhost:6379/0", alias="REDIS_URL")

    # Generative backend (LiteLLM model string, e.g. gemini/gemini-1.5-flash)
    llm_enabled: bool = Field(True, alias="LLM_ENABLED")
    llm_model: str = Field("gemini/gemini-1.5-flash", alias="LLM_MODEL")
    llm_api_key: str | None = Field(None, alias="LLM_API_KEY")
    llm_base_url: str | None = Field(None, alias="LLM_BASE_URL")
    llm_timeout_seconds: float = Field(30.0, alias="LLM_TIMEOUT_SECONDS")
    llm_max_output_tokens: int = Field(1024, alias="LLM_MAX_OUTPUT_TOKENS")
    llm_temperature: float = Field(0.7, alias="LLM_TEMPERATURE")
    llm_top_p: float = Field(0.95, alias="LLM_TOP_P")

    # Narrative regeneration
    story_window_size: int = Field(50, alias="STORY_WINDOW_SIZE")
    regeneration_backend: str = Field("celery", alias="REGENERATION_BACKEND")  # celery|thread|inline
    regeneration_max_workers: int = Field(4, alias="REGENERATION_MAX_WORKERS")
    regeneration_max_pending: int = Field(100, alias="REGENERATION_MAX_PENDING")

    # Auth
    internal_service_token: str | None = Field(None, alias="INTERNAL_SERVICE_TOKEN")
    distinct_credential_errors: bool = Field(True, alias="DISTINCT_CREDENTIAL_ERRORS")

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True
        extra = "allow"  # Allow extra environment variables


@lru_cache
def get_settings() -> Settings:
    return Settings()


def reset_settings():
    """Clear cached settings (useful in tests when env vars change)."""
    get_settings.cache_clear()


def effective_regeneration_backend(settings: Settings) -> str:
    """Celery needs a broker; under APP_ENV=test regeneration runs inline instead."""
    backend = (settings.regeneration_backend or "celery").strip().lower()
    if backend == "celery" and settings.app_env == "test":
        return "inline"
    return backend
