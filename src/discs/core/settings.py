from __future__ import annotations

from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """
    App settings.

    Loads from environment variables and an optional local `.env` file.
    `.env` is gitignored.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    API_TITLE: str = "Discs API"
    API_VERSION: str = "0.1.0"

    LOG_LEVEL: str = "INFO"

    # Database (Docker Compose). DISCS_DB_URL wins when set.
    DISCS_DB_HOST: str = "localhost"
    DISCS_DB_PORT: int = 5432
    DISCS_DB_NAME: str = "discs"
    DISCS_DB_USER: str = "postgres"
    DISCS_DB_PASSWORD: str = "postgres"
    DISCS_DB_URL: str | None = None
    DISCS_DB_ECHO: bool = False

    # Auth (HTTP-only cookie session, also accepted as a Bearer token)
    AUTH_COOKIE_NAME: str = "session_token"
    AUTH_COOKIE_SECURE: bool = False
    AUTH_COOKIE_SAMESITE: str = "lax"  # lax|strict|none
    AUTH_SESSION_TTL_HOURS: int = 24
    # Sliding expiration: refresh once less than this much lifetime is left.
    AUTH_SESSION_REFRESH_WINDOW_HOURS: int = 12

    # CORS (browser UI on :3000 calling the API on :8000 with cookies)
    CORS_ORIGINS: str = "http://localhost:3000,http://127.0.0.1:3000"


settings = Settings()
