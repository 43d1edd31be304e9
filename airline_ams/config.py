from pathlib import Path
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_ENV_PATH = _PROJECT_ROOT / ".env"
_ENV_FILE = _ENV_PATH if _ENV_PATH.exists() else (_PROJECT_ROOT / ".env.example")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "Airline AMS"
    VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Full URL wins over the individual parts below
    DATABASE_URL: Optional[str] = None
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "ams_db"
    DB_USER: str = "ams"
    DB_PASSWORD: SecretStr = SecretStr("")

    DB_POOL_SIZE: int = 10
    DB_POOL_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_ECHO: bool = False

    # Upper bound on waiting for a flight instance row lock (seconds)
    LOCK_TIMEOUT_SECONDS: float = 5.0

    REDIS_URL: Optional[str] = None
    EVENTS_CHANNEL: str = "seat_events"

    CREATE_TABLES: bool = True
    SEED_DEMO_DATA: bool = False

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        password = self.DB_PASSWORD.get_secret_value()
        credentials = f"{self.DB_USER}:{password}" if password else self.DB_USER
        return (
            f"postgresql+asyncpg://{credentials}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL_ASYNC.startswith("sqlite")


settings = Settings()  # type: ignore
