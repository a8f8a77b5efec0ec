"""
Retail Sales ETL
Centralized Configuration Management

Pydantic settings with environment variable and .env support. Every knob the
pipeline reads (database target, source files, cleaning defaults, load
strategy, logging) lives here.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Warehouse Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="retail_sales", description="Database name")
    user: str = Field(default="retail", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    pool_size: int = Field(default=5, description="Connection pool size")
    max_overflow: int = Field(default=5, description="Max overflow connections")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    echo: bool = Field(default=False, description="Echo SQL queries")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Database URL (overrides host/port)")

    @property
    def sync_url(self) -> str:
        """Database URL - uses DATABASE_URL if set, otherwise builds a psycopg2 URL"""
        if self.url:
            return self.url
        return f"postgresql+psycopg2://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class SourceSettings(BaseSettings):
    """Raw CSV Source Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    source_dir: str = Field(default="./data/raw", description="Directory holding the raw extracts")
    products_file: str = Field(default="products.csv", description="Products extract")
    customers_file: str = Field(default="customers.csv", description="Customers extract")
    sales_file: str = Field(default="sales.csv", description="Sales extract")

    delimiter: str = Field(default=",", description="Field delimiter")
    quote_char: str = Field(default='"', description="Optional field enclosure")
    encoding: str = Field(default="utf8", description="File encoding")
    null_values: List[str] = Field(default=["", "NULL", "null"], description="Markers read as null")


class CleaningSettings(BaseSettings):
    """Cleaning Rule Defaults"""

    model_config = SettingsConfigDict(env_prefix="CLEANING_")

    default_category: str = Field(default="Unknown", description="Category used when missing")
    default_sub_category: str = Field(default="Miscellaneous", description="Sub-category used when missing")


class WarehouseSettings(BaseSettings):
    """Dimensional Load Configuration"""

    model_config = SettingsConfigDict(env_prefix="WAREHOUSE_")

    load_strategy: str = Field(default="replace_all", description="replace_all, append or upsert")
    chunk_size: int = Field(default=5000, description="Rows per insert batch")
    install_views: bool = Field(default=True, description="Create reporting views after load")

    @field_validator("load_strategy")
    @classmethod
    def validate_strategy(cls, v: str) -> str:
        """Validate load strategy value"""
        allowed = ["replace_all", "append", "upsert"]
        if v.lower() not in allowed:
            raise ValueError(f"Load strategy must be one of: {allowed}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")


class DataQualitySettings(BaseSettings):
    """Data Quality Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    enable_data_quality_checks: bool = Field(
        default=True,
        alias="ENABLE_DATA_QUALITY_CHECKS",
        description="Run staging quality checks"
    )
    enforce_data_quality: bool = Field(
        default=False,
        alias="DATA_QUALITY_ENFORCE",
        description="Abort the run when a quality check fails"
    )


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
    )

    # Application
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
    cleaning: CleaningSettings = Field(default_factory=CleaningSettings)
    warehouse: WarehouseSettings = Field(default_factory=WarehouseSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    data_quality: DataQualitySettings = Field(default_factory=DataQualitySettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
