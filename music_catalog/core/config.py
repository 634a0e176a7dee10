import os
from functools import lru_cache


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self) -> None:
        self.PORT: int = int(os.getenv("PORT", "3000"))
        self.HOST: str = os.getenv("HOST", "0.0.0.0")
        self.DATABASE_URL: str = os.getenv(
            "DATABASE_URL",
            "sqlite+aiosqlite:///:memory:",
        )
        self.SQL_ECHO: bool = os.getenv("SQL_ECHO", "").lower() in ("1", "true", "yes")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings() -> Settings:
    return Settings()
