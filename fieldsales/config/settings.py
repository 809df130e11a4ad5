"""
Field Sales Reporting Engine
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="fieldsales", alias="database", description="Database name")
    user: str = Field(default="fieldsales", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    pool_size: int = Field(default=20, description="Connection pool size")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Full URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class ReportingSettings(BaseSettings):
    """Analytics engine defaults shared by every report"""

    model_config = SettingsConfigDict(env_prefix="REPORT_")

    timezone: str = Field(default="Asia/Bangkok", description="Zone used for day keys and buckets")
    label_locale: str = Field(default="th", description="Range label locale: th or en")
    default_range_days: int = Field(default=30, description="Trailing window when no range is given")

    # Dashboard
    dashboard_lookback_days: int = Field(default=7, description="Rolling KPI window in days")
    performance_timeline_days: int = Field(default=14, description="Rolling performance timeline length")
    sales_drop_alert_percent: float = Field(default=-20.0, description="Sales change that raises an alert")
    checkin_drop_alert_percent: float = Field(default=-15.0, description="Check-in change that raises an alert")

    # ROI
    daily_allowance: float = Field(default=150.0, description="Allowance per fully attended day")
    estimated_profit_margin: float = Field(default=0.30, description="Margin used for estimated profit")
    top_products: int = Field(default=5, description="Products listed in the ROI report")

    # Pagination
    default_page_size: int = Field(default=20, description="Sales report page size")
    min_page_size: int = Field(default=10, description="Smallest accepted page size")
    max_page_size: int = Field(default=200, description="Largest accepted page size")
    max_page: int = Field(default=1000, description="Largest accepted page number")

    # Secondary record source
    event_log_path: str = Field(default="./data/activity_log.ndjson", description="Historical activity log")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zones the tz database does not know"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {v}") from exc
        return v

    @field_validator("label_locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        if v.lower() not in ("th", "en"):
            raise ValueError("Label locale must be 'th' or 'en'")
        return v.lower()

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class SecuritySettings(BaseSettings):
    """CORS Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="fieldsales-reporting", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
