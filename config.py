"""Configuration singleton for the portfolio analytics engine."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class Config:
    """Singleton configuration class."""

    _instance: Optional["Config"] = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        load_dotenv()
        self._load_config()

    def _load_config(self) -> None:
        """Load configuration from environment variables."""
        # Record store path
        default_db = Path.home() / ".portfolio" / "portfolio.db"
        db_path_str = os.getenv("DATABASE_PATH", str(default_db))
        self.database_path = Path(db_path_str).expanduser()

        # Log level
        self.log_level = os.getenv("LOG_LEVEL", "INFO").upper()

        # Scoring defaults
        self.renewal_horizon_days = int(os.getenv("RENEWAL_HORIZON_DAYS", "90"))
        self.rent_advisor_workers = int(os.getenv("RENT_ADVISOR_WORKERS", "4"))
        self.reminder_days_ahead = int(os.getenv("REMINDER_DAYS_AHEAD", "7"))
        self.forecast_months = int(os.getenv("FORECAST_MONTHS", "6"))

    @property
    def database_dir(self) -> Path:
        """Get the directory containing the database."""
        return self.database_path.parent

    def ensure_directories(self) -> None:
        """Ensure all required directories exist."""
        self.database_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def reset(cls) -> None:
        """Drop the cached instance so the environment is re-read."""
        cls._instance = None


def get_config() -> Config:
    """Get the singleton config instance."""
    return Config()
