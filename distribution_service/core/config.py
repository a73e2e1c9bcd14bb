"""
Application settings.
Loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Settings loaded from the environment / .env"""

    # App
    APP_NAME: str = "Distribution Service"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_KEY: str = ""

    # Fare store: "supabase" | "memory"
    FARE_STORE_BACKEND: str = "supabase"
    FARES_TABLE: str = "fares"

    # Organization directory (users/organizations microservice)
    ORGANIZATION_SERVICE_URL: str = "http://localhost:8081/api"
    ORGANIZATION_SERVICE_TOKEN: str = ""
    ORGANIZATION_TIMEOUT_SECONDS: float = 5.0
    ORGANIZATION_MAX_ATTEMPTS: int = 3
    ORGANIZATION_BACKOFF_SECONDS: float = 0.5

    # Fare transition scheduler
    FARE_SCHEDULER_ENABLED: bool = True
    FARE_TRANSITION_SCHEDULE: str = "0 * * * *"  # Every hour, minute 0
    SCHEDULER_TIMEZONE: str = "America/Lima"

    # CORS - comma separated origins
    CORS_ORIGINS: str = "*"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
