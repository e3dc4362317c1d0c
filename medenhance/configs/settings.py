"""
Configuration management using Pydantic Settings

Application-level settings read from environment variables (prefix
``MEDENHANCE_``) or a ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_prefix="MEDENHANCE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Info
    app_name: str = "medenhance"
    app_version: str = "1.0.0"
    environment: str = "development"

    # Processing
    max_dimension: int = Field(default=1024, ge=1)
    workers: int = Field(default=1, ge=1)
    max_batch_files: int = Field(default=10, ge=1)
    png_compression: int = Field(default=3, ge=0, le=9)
    log_processing_steps: bool = True

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_max_size_mb: int = 10
    log_backup_count: int = 5

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {', '.join(allowed)}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"Log level must be one of: {', '.join(allowed)}")
        return v

    @property
    def log_max_size_bytes(self) -> int:
        return self.log_max_size_mb * 1024 * 1024


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance

    Returns:
        Settings: Application settings singleton
    """
    return Settings()


def get_log_config(settings: Optional[Settings] = None) -> dict:
    """Keyword arguments for setup_logging"""
    settings = settings or get_settings()
    return {
        "log_level": settings.log_level,
        "log_file": settings.log_file,
        "max_file_size": settings.log_max_size_bytes,
        "backup_count": settings.log_backup_count,
        "format_string": settings.log_format,
    }
