"""
gracely/api/metrics/registry.py
Prometheus metrics for lifecycle state and shutdown outcomes.
"""

from prometheus_client import (
    CollectorRegistry, Counter, Gauge, Histogram, generate_latest
)

from gracely.lifecycle.state import LifecycleState

# Global registry instance
REGISTRY = CollectorRegistry(auto_describe=True)

# =============================
# Metric definitions
# =============================
LIFECYCLE_STATE = Gauge(
    "gracely_lifecycle_state",
    "1 for the current lifecycle state, 0 for the others",
    ["state"],
    registry=REGISTRY,
)

INFLIGHT_REQUESTS = Gauge(
    "gracely_inflight_requests",
    "Requests currently being served",
    registry=REGISTRY,
)

SHUTDOWN_DURATION = Histogram(
    "gracely_shutdown_duration_seconds",
    "Time from shutdown trigger to SHUTDOWN state (seconds)",
    buckets=(0.01, 0.05, 0.1, 0.5, 1, 2, 5, 10, 30, 60),
    registry=REGISTRY,
)

SHUTDOWN_TOTAL = Counter(
    "gracely_shutdowns_total",
    "Completed shutdown sequences by outcome",
    ["outcome"],
    registry=REGISTRY,
)

# =============================
# Updater helpers
# =============================

def mark_state(state: LifecycleState):
    """Set the state gauge so exactly one label reads 1."""
    for s in LifecycleState:
        LIFECYCLE_STATE.labels(state=s.value).set(1 if s is state else 0)


def track_shutdown(outcome: str, duration: float):
    """Record a finished shutdown sequence."""
    SHUTDOWN_TOTAL.labels(outcome=outcome).inc()
    SHUTDOWN_DURATION.observe(duration)


def render_prometheus_metrics():
    """Return text for Prometheus scrape endpoint."""
    return generate_latest(REGISTRY)
