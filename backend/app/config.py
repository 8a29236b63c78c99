# backend/app/config.py
from functools import lru_cache
from typing import List, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # environment: "dev" for running the app locally, "test" for pytest
    ENV: str = "dev"

    DATABASE_URL: str | None = None
    TEST_DATABASE_URL: str | None = None
    DB_REQUIRE_SSL: bool = True

    # --- Tabular store ---
    # "sql" keeps every sheet in the sheet_rows table, "workbook" in an .xlsx file,
    # "memory" is process-local and only useful for demos and tests.
    STORE_BACKEND: Literal["sql", "workbook", "memory"] = "sql"
    WORKBOOK_PATH: str = "cable_progress.xlsx"

    # --- HTTP ---
    TRUSTED_HOSTS: List[str] = Field(
        default_factory=lambda: [
            "localhost",
            "127.0.0.1",
            "testserver",
            "test",
        ]
    )
    CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ]
    )
    LOG_LEVEL: str = "INFO"

    # --- Scheduler ---
    # Toggle the background scheduler that appends the weekly pulled-length snapshot.
    SCHEDULER_ENABLED: bool = False
    # IANA timezone name used by APScheduler (e.g., "UTC", "Asia/Dubai").
    SCHEDULER_TZ: str = "UTC"
    # Optional dedicated job store URL. If None, the resolved DATABASE_URL is used.
    SCHEDULER_DB_URL: str | None = None
    SNAPSHOT_DAY_OF_WEEK: str = "sun"
    SNAPSHOT_HOUR: int = 23

    @model_validator(mode="after")
    def _check_snapshot_hour(self):
        if not 0 <= self.SNAPSHOT_HOUR <= 23:
            raise ValueError("SNAPSHOT_HOUR must be between 0 and 23.")
        return self

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
