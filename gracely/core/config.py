"""
gracely/core/config.py
Configuration management using Pydantic Settings
"""

from functools import lru_cache
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidConfigurationError


RuntimeName = Literal["none", "auto", "local", "container", "kubernetes"]


class Settings(BaseSettings):
    """
    Gracely process configuration
    Environment variables (GRACELY_*) can override these defaults
    """
    model_config = SettingsConfigDict(
        env_prefix="GRACELY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ========================================================================
    # Lifecycle Settings
    # ========================================================================
    RUNTIME: RuntimeName = "auto"
    TIMEOUT: int = Field(default=10_000, gt=0)  # milliseconds
    LIVENESS_ENDPOINT: str = "/live"
    READINESS_ENDPOINT: str = "/ready"
    CONTAINER_ENDPOINT: str = "/proc/1/cgroup"  # empty string disables file detection
    METRICS_ENDPOINT: Optional[str] = None

    # ========================================================================
    # Server Settings (uvicorn wrapper)
    # ========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ========================================================================
    # Logging Settings
    # ========================================================================
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get or create the settings instance."""
    return Settings()


class GracelyOptions(BaseModel):
    """
    Immutable lifecycle configuration.

    Captured once when gracely is attached to an app. Callbacks are plain
    references invoked directly by the lifecycle core:

    - ``ready()``: server marked ready
    - ``close()``: shutdown started
    - ``error(err)``: shutdown finished with an error (timeout or cleanup failure)
    - ``closing()``: cleanup hook, awaited if it returns an awaitable
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="forbid")

    runtime: RuntimeName = "auto"
    timeout: int = Field(default=10_000, gt=0)
    liveness_endpoint: str = "/live"
    readiness_endpoint: str = "/ready"
    container_endpoint: str = "/proc/1/cgroup"
    metrics_endpoint: Optional[str] = None

    ready: Optional[Callable[[], Any]] = None
    close: Optional[Callable[[], Any]] = None
    error: Optional[Callable[[Optional[BaseException]], Any]] = None
    closing: Optional[Callable[[], Any]] = None

    @field_validator("timeout", mode="before")
    @classmethod
    def reject_bool_timeout(cls, v):
        if isinstance(v, bool):
            raise ValueError("timeout must be a number of milliseconds")
        return v

    @field_validator("liveness_endpoint", "readiness_endpoint")
    @classmethod
    def validate_route_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"endpoint path must start with '/': {v!r}")
        return v

    @field_validator("metrics_endpoint")
    @classmethod
    def validate_metrics_path(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.startswith("/"):
            raise ValueError(f"endpoint path must start with '/': {v!r}")
        return v

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    @classmethod
    def build(cls, **kwargs) -> "GracelyOptions":
        """Validate options, raising InvalidConfigurationError on bad input."""
        try:
            return cls(**kwargs)
        except ValidationError as e:
            raise InvalidConfigurationError(
                reason=str(e),
                fields=[".".join(str(p) for p in err["loc"]) for err in e.errors()],
            ) from e

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **callbacks) -> "GracelyOptions":
        """Build options from GRACELY_* environment settings plus callbacks."""
        settings = settings or get_settings()
        return cls.build(
            runtime=settings.RUNTIME,
            timeout=settings.TIMEOUT,
            liveness_endpoint=settings.LIVENESS_ENDPOINT,
            readiness_endpoint=settings.READINESS_ENDPOINT,
            container_endpoint=settings.CONTAINER_ENDPOINT,
            metrics_endpoint=settings.METRICS_ENDPOINT,
            **callbacks,
        )


# ============================================================================
# Export
# ============================================================================

__all__ = ["RuntimeName", "Settings", "get_settings", "GracelyOptions"]
