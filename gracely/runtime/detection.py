"""Runtime environment detection (kubernetes / container / local)."""
import os
import re
from enum import Enum
from typing import Mapping, Optional, Union

from gracely.core.logging import get_logger

logger = get_logger("detection")


class RuntimeEnvironment(str, Enum):
    """
    Where the service is running.

    NONE disables detection and all lifecycle hooks, AUTO asks for
    detection, the rest are explicit overrides.
    """
    NONE = "none"
    AUTO = "auto"
    LOCAL = "local"
    CONTAINER = "container"
    KUBERNETES = "kubernetes"


KUBERNETES_HOST_VAR = "KUBERNETES_SERVICE_HOST"
KUBERNETES_FLAG_VAR = "K8S"

# Docker / Containerd / Podman, plus pod cgroup slices
CONTAINER_SIGNATURES = re.compile(r"docker|kubepods|containerd|libpod", re.IGNORECASE)

_TRUTHY = {"true", "1", "yes", "on"}


def _read_marker(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _is_kubernetes(environ: Mapping[str, str]) -> bool:
    if environ.get(KUBERNETES_HOST_VAR):
        return True
    return environ.get(KUBERNETES_FLAG_VAR, "").strip().lower() in _TRUTHY


def detect_runtime(
    container_endpoint: str,
    environ: Optional[Mapping[str, str]] = None,
) -> RuntimeEnvironment:
    """
    Classify the current process environment.

    Priority:
    1. Kubernetes env vars (the marker file is not read)
    2. Container signatures in the marker file, if a path is configured
    3. Local

    Args:
        container_endpoint: Marker file path (e.g. /proc/1/cgroup). Empty
            string skips file-based detection entirely.
        environ: Environment mapping, defaults to os.environ

    Returns:
        KUBERNETES, CONTAINER or LOCAL
    """
    environ = os.environ if environ is None else environ

    if _is_kubernetes(environ):
        return RuntimeEnvironment.KUBERNETES

    if container_endpoint:
        try:
            content = _read_marker(container_endpoint)
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(
                "container_marker_unreadable",
                path=container_endpoint,
                error=str(e),
                error_type=type(e).__name__,
            )
        else:
            if CONTAINER_SIGNATURES.search(content):
                return RuntimeEnvironment.CONTAINER

    return RuntimeEnvironment.LOCAL


def resolve_runtime(
    runtime: Union[str, RuntimeEnvironment],
    container_endpoint: str,
    environ: Optional[Mapping[str, str]] = None,
) -> RuntimeEnvironment:
    """Return the configured runtime, running detection only for AUTO."""
    runtime = RuntimeEnvironment(runtime)
    if runtime is not RuntimeEnvironment.AUTO:
        logger.debug("runtime_configured", runtime=runtime.value)
        return runtime

    detected = detect_runtime(container_endpoint, environ)
    logger.info("runtime_detected", runtime=detected.value, container_endpoint=container_endpoint)
    return detected
