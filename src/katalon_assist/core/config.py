import logging
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # Katalon Runtime Engine
    KATALON_HOME: Optional[str] = Field(default=None, description="Install folder of katalonc, checked before well-known locations")
    EXECUTION_TIMEOUT_SECONDS: int = Field(default=30 * 60, description="Hard wall-clock bound for one test run")
    STATUS_DELAY_SECONDS: int = Field(default=15, description="Status poll interval passed to katalonc")

    # Smart healing
    HEALING_HISTORY_LIMIT: int = Field(default=1000, description="Maximum number of healing attempts kept per project")

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Root log level")
    LOG_DIR: str = Field(default="logs", description="Folder for rotating log files")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    @field_validator("EXECUTION_TIMEOUT_SECONDS", "STATUS_DELAY_SECONDS")
    @classmethod
    def validate_positive(cls, v):
        """Timeouts and intervals must be positive."""
        if v <= 0:
            raise ValueError(f"value must be positive, got {v}")
        return v

    @field_validator("HEALING_HISTORY_LIMIT")
    @classmethod
    def validate_history_limit(cls, v):
        """Validate that HEALING_HISTORY_LIMIT is between 1 and 100000."""
        if v < 1 or v > 100_000:
            raise ValueError(f"HEALING_HISTORY_LIMIT must be between 1 and 100000, got {v}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate that LOG_LEVEL names a standard logging level."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"LOG_LEVEL must be a standard logging level, got '{v}'")
        return level


settings = Settings()
