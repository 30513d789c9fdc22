"""
Runtime lifecycle coordinator for FastAPI services.
Detects the deployment runtime, serves liveness/readiness probes and drives
graceful shutdown.
"""

from gracely.api.integration import Gracely, get_gracely, setup_gracely
from gracely.api.server import GracefulServer
from gracely.core.config import GracelyOptions, Settings, get_settings
from gracely.core.exceptions import (
    CleanupFailedError,
    GracelyException,
    InvalidConfigurationError,
    ShutdownTimeoutError,
)
from gracely.health.surface import GracelyStatus
from gracely.lifecycle.shutdown import ShutdownResult
from gracely.lifecycle.state import LifecycleEvent, LifecycleState, LifecycleStateMachine
from gracely.runtime.detection import RuntimeEnvironment, detect_runtime, resolve_runtime

__version__ = "1.0.0"

__all__ = [
    "Gracely",
    "GracefulServer",
    "GracelyOptions",
    "GracelyStatus",
    "Settings",
    "get_settings",
    "setup_gracely",
    "get_gracely",
    "GracelyException",
    "InvalidConfigurationError",
    "ShutdownTimeoutError",
    "CleanupFailedError",
    "ShutdownResult",
    "LifecycleEvent",
    "LifecycleState",
    "LifecycleStateMachine",
    "RuntimeEnvironment",
    "detect_runtime",
    "resolve_runtime",
]
