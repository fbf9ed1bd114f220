"""Application configuration using pydantic-settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    database_url: str = "postgresql+asyncpg://localhost/pantryplanner"
    sql_echo: bool = False

    # Redis
    redis_url: str = "redis://localhost:6379/0"

    # Recipe search provider
    spoonacular_api_key: str = ""
    spoonacular_base_url: str = "https://api.spoonacular.com"
    provider_timeout: float = 25.0  # seconds, shared by search and bulk detail
    provider_connect_attempts: int = 2  # only for connections that never opened
    search_result_count: int = 24

    # Recipe cache
    cache_max_age_days: int = 7
    cache_hit_threshold: int = 10

    # Scoring and planning heuristics
    budget_penalty_scale: int = 15
    macro_tolerance: float = 1.10
    default_session_size: int = 10

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    allowed_origins: str = "http://localhost:3000,http://localhost:8000"
    public_base_url: str = "http://localhost:3000"

    @property
    def has_provider_key(self) -> bool:
        """Check whether a recipe search API key is configured."""
        return bool(self.spoonacular_api_key.strip())

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
