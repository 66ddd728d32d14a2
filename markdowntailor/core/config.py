from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    APP_NAME: str = "markdowntailor"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # "redis" for the shared store, "memory" for a process-local one
    STORE_BACKEND: str = "redis"
    STORE_NAMESPACE: str = "markdowntailor_database"
    REDIS_URL: str = "redis://localhost:6379/0"

    AUTOSAVE_DELAY_SECONDS: float = 2.0
    SESSION_TTL_HOURS: int = 24

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")


settings = Settings()
