from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    DATABASE_URL: str = "sqlite:///./reconciliation.db"

    # Calendar days (sale dates, register dates, "today") are local to the store
    TIMEZONE: str = "America/La_Paz"

    LOG_LEVEL: str = "INFO"

    # Allowed browser origins
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]


settings = Settings()
