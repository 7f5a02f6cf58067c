import logging
from dotenv import load_dotenv
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings
from typing import ClassVar, List

# Load environment variables from .env file
load_dotenv(".env", override=True)
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Class to store all the settings of the TaskDesk application."""

    # ------------------------------
    # Database
    # ------------------------------
    DATABASE_URL: str = Field(default="sqlite+aiosqlite:///./taskdesk.db")
    DATABASE_ECHO: bool = Field(default=False)

    # ------------------------------
    # Task lifecycle
    # ------------------------------
    TASK_GRACE_SECONDS: int = Field(default=30, ge=0)
    MAX_TRANSITION_RETRIES: int = Field(default=3, ge=1)

    # ------------------------------
    # Expiration sweeper
    # ------------------------------
    SWEEP_ENABLED: bool = Field(default=True)
    SWEEP_INTERVAL_SECONDS: int = Field(default=60, ge=1)
    SWEEP_RATE_LIMIT: str = Field(default="6/minute")

    # ------------------------------
    # Environment
    # ------------------------------
    ENVIRONMENT: str = Field(default="development")
    FRONTEND_URL: str = Field(default="http://localhost:3000")

    # ------------------------------
    # Database models
    # ------------------------------
    DB_MODELS: ClassVar[List[str]] = [
        "taskdesk.models.employee",
        "taskdesk.models.task",
        "taskdesk.models.document",
    ]

    # ------------------------------
    # Computed Fields
    # ------------------------------
    @computed_field
    @property
    def IS_POSTGRES(self) -> bool:
        """Whether the configured database is served by asyncpg."""
        return self.DATABASE_URL.startswith("postgresql")

    class Config:
        """Configuration for the settings class."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Instantiate the settings
settings = Settings()
