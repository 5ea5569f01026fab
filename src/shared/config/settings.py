"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="cluster-register", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Server bind host")
    port: int = Field(default=8080, description="Server bind port")
    debug: bool = Field(default=False, description="Enable debug mode")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return Settings()


class ClusterRegisterSettings(Settings):
    """Settings specific to the Cluster Register controller."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Argo CD target
    argocd_namespace: str = Field(
        default="argocd",
        description="Namespace holding Argo CD cluster secrets and AppProjects",
    )

    # Kubernetes access
    kube_in_cluster: bool | None = Field(
        default=None,
        description="Force in-cluster config (None tries in-cluster, then kubeconfig)",
    )

    # Reconciliation cadence
    requeue_after_seconds: float = Field(
        default=60.0,
        description="Delay before the next pass after a successful one",
    )
    generator_resync_seconds: float = Field(
        default=30.0,
        description="Interval between Generator list refreshes",
    )
    retry_base_seconds: float = Field(
        default=5.0,
        description="First backoff delay after a failed pass",
    )
    retry_max_seconds: float = Field(
        default=300.0,
        description="Upper bound on the backoff delay",
    )

    # Reconciliation policy
    reconcile_isolate_failures: bool = Field(
        default=False,
        description="Keep reconciling remaining clusters after one fails",
    )
    project_allow_duplicate_destinations: bool = Field(
        default=False,
        description="Append project destinations even if already present",
    )
    controller_enabled: bool = Field(
        default=True,
        description="Start the background controller loop on startup",
    )

    @field_validator(
        "requeue_after_seconds",
        "generator_resync_seconds",
        "retry_base_seconds",
        "retry_max_seconds",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        """Ensure delays are strictly positive."""
        if v <= 0:
            raise ValueError("delay must be positive")
        return v


@lru_cache
def get_register_settings() -> ClusterRegisterSettings:
    """Get cached Cluster Register settings."""
    return ClusterRegisterSettings()
