"""
Configuration management for Citizenly.

Supports multiple environments (local, development, production) with
different database, cache, LegiScan and auth configurations.

Responsibility: Centralized configuration and environment management
"""

from enum import Enum
from typing import Optional, List
import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment"""
    LOCAL = "local"
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    # Connection settings - prioritize DATABASE_URL env var
    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")
    driver: str = Field(default="postgresql+asyncpg")
    host: Optional[str] = Field(default="localhost")
    port: Optional[int] = Field(default=5432)
    database: str = Field(default="citizenly")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    # Connection pool settings
    pool_size: int = Field(default=5)
    max_overflow: int = Field(default=10)
    pool_timeout: int = Field(default=30)
    pool_recycle: int = Field(default=3600)
    use_null_pool: bool = Field(default=False)

    # Query settings
    echo: bool = Field(default=False)
    echo_pool: bool = Field(default=False)

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    def _build_url(self, driver: str) -> str:
        auth = ""
        if self.username:
            auth = self.username
            if self.password:
                auth = f"{auth}:{self.password}"
            auth = f"{auth}@"

        host_port = self.host or "localhost"
        if self.port:
            host_port = f"{host_port}:{self.port}"

        return f"{driver}://{auth}{host_port}/{self.database}"

    @property
    def connection_string(self) -> str:
        """
        Build async database connection string.

        Returns:
            SQLAlchemy connection string using the asyncpg driver
        """
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            if "postgresql" in url and "+asyncpg" not in url and "+psycopg" not in url:
                url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
            return url

        if not self.driver.startswith("postgresql"):
            raise ValueError(
                f"Unsupported database driver '{self.driver}'. Configure a PostgreSQL connection."
            )

        return self._build_url(self.driver)

    @property
    def sync_connection_string(self) -> str:
        """
        Build synchronous database connection string for Alembic migrations.

        Returns:
            SQLAlchemy sync connection string (psycopg driver)
        """
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = url.replace("postgres://", "postgresql://", 1)
            if "+asyncpg" in url:
                url = url.replace("+asyncpg", "+psycopg")
            elif "postgresql://" in url and "+psycopg" not in url:
                url = url.replace("postgresql://", "postgresql+psycopg://", 1)
            return url

        return self._build_url(self.driver.replace("+asyncpg", "+psycopg"))


class RedisConfig(BaseSettings):
    """Redis cache configuration"""

    enabled: bool = Field(default=True)
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    host: str = Field(default="localhost")
    port: int = Field(default=6379)
    db: int = Field(default=0)
    password: Optional[str] = Field(default=None)

    max_connections: int = Field(default=50)
    socket_timeout: int = Field(default=5)
    socket_connect_timeout: int = Field(default=5)

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    @property
    def connection_string(self) -> str:
        """Build Redis connection string"""
        if self.redis_url:
            return self.redis_url
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class LegiScanConfig(BaseSettings):
    """LegiScan API client configuration"""

    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://api.legiscan.com/")
    state: str = Field(default="NV")

    # Minimum spacing between consecutive requests
    request_interval_seconds: float = Field(default=1.0, gt=0)
    max_retries: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=2.0, ge=0)
    timeout_seconds: int = Field(default=30)
    user_agent: str = Field(default="Citizenly-MVP/1.0")

    model_config = SettingsConfigDict(
        env_prefix="LEGISCAN_",
        case_sensitive=False,
        extra="ignore"
    )


class SyncConfig(BaseSettings):
    """Legislative sync and cron configuration"""

    legislative_sync_secret: Optional[str] = Field(default=None, alias="LEGISLATIVE_SYNC_SECRET")
    cron_secret: Optional[str] = Field(default=None, alias="CRON_SECRET")

    quick_sync_max_bills: int = Field(default=50, ge=1)
    feed_retention_days: int = Field(default=180, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class AuthConfig(BaseSettings):
    """Session and password configuration"""

    jwt_secret: Optional[str] = Field(default=None, alias="JWT_SECRET")
    jwt_algorithm: str = Field(default="HS256")
    cookie_name: str = Field(default="citizenly-session")
    session_days: int = Field(default=7)
    bcrypt_rounds: int = Field(default=12)

    login_max_attempts: int = Field(default=5)
    login_window_seconds: int = Field(default=900)  # 15 minutes

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )


class AppConfig(BaseSettings):
    """Application configuration"""

    environment: Environment = Field(default=Environment.LOCAL)
    debug: bool = Field(default=True)

    app_name: str = Field(default="Citizenly")
    app_version: str = Field(default="1.0.0")

    log_level: str = Field(default="INFO")

    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)

    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins (JSON list or comma-separated in env)"
    )

    public_base_url: str = Field(default="http://localhost:3000")

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from JSON string or comma-separated list"""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            v = v.strip()
            if (v.startswith('"') and v.endswith('"')) or (v.startswith("'") and v.endswith("'")):
                v = v[1:-1]
            if v.startswith("["):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v


class Settings(BaseSettings):
    """
    Global settings container.

    Loads configuration from:
    1. Environment variables
    2. .env file
    3. Default values
    """

    app: AppConfig = Field(default_factory=AppConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    redis: RedisConfig = Field(default_factory=RedisConfig)
    legiscan: LegiScanConfig = Field(default_factory=LegiScanConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def redis_url(self) -> Optional[str]:
        """Get Redis connection URL when caching is enabled"""
        if self.redis.enabled:
            return self.redis.connection_string
        return None


# Global settings instance
settings = Settings()
