"""
Configuration management using Pydantic Settings.
Reads from environment variables.
"""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    model_config = ConfigDict(env_file=".env", case_sensitive=False)

    # Snowflake Configuration (primary record source)
    snowflake_account: str = Field(default="", alias="SNOWFLAKE_ACCOUNT")
    snowflake_user: str = Field(default="", alias="SNOWFLAKE_USER")
    snowflake_password: str = Field(default="", alias="SNOWFLAKE_PASSWORD")
    snowflake_warehouse: str = Field(default="", alias="SNOWFLAKE_WAREHOUSE")
    snowflake_database: str = Field(default="", alias="SNOWFLAKE_DATABASE")
    snowflake_schema: str = Field(default="", alias="SNOWFLAKE_SCHEMA")

    # Fixture fallback; None means the JSON files bundled with the package
    fixture_dir: str | None = Field(default=None, alias="FIXTURE_DIR")

    # Application Configuration
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Circuit Breaker Configuration
    circuit_breaker_failure_threshold: int = Field(
        default=5, alias="CIRCUIT_BREAKER_FAILURE_THRESHOLD"
    )
    circuit_breaker_timeout: int = Field(default=60, alias="CIRCUIT_BREAKER_TIMEOUT")

    # Business rules
    maintenance_window_days: int = Field(default=30, alias="MAINTENANCE_WINDOW_DAYS")
    min_leave_reason_length: int = Field(default=10, alias="MIN_LEAVE_REASON_LENGTH")
    standard_work_hours: float = Field(default=8.0, alias="STANDARD_WORK_HOURS")
    default_technician: str = Field(default="IT Support Team", alias="DEFAULT_TECHNICIAN")
    top_performer_rating: float = Field(default=4.5, alias="TOP_PERFORMER_RATING")


# Global settings instance
settings = Settings()
