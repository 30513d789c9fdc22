"""
gracely/core/exceptions.py
Custom exceptions for the lifecycle core
"""

from typing import List, Optional


class GracelyException(Exception):
    """Base exception for all gracely errors"""

    def __init__(
        self,
        message: str,
        error_code: str = "UNKNOWN_ERROR",
        details: Optional[dict] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Convert exception to dictionary for logging/response"""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


# ============================================================================
# Configuration Exceptions
# ============================================================================

class InvalidConfigurationError(GracelyException, ValueError):
    """Options failed validation before the server started"""

    def __init__(self, reason: str, fields: Optional[List[str]] = None):
        super().__init__(
            message=f"Invalid gracely configuration: {reason}",
            error_code="INVALID_CONFIGURATION",
            details={"fields": fields or []}
        )


# ============================================================================
# Shutdown Exceptions
# ============================================================================

class ShutdownTimeoutError(GracelyException):
    """Drain or cleanup did not finish before the shutdown timeout"""

    def __init__(self, timeout_ms: int, pending: Optional[List[str]] = None):
        super().__init__(
            message=f"Shutdown timed out after {timeout_ms} ms",
            error_code="SHUTDOWN_TIMEOUT",
            details={"timeout_ms": timeout_ms, "pending": pending or []}
        )


class CleanupFailedError(GracelyException):
    """The closing hook raised during shutdown"""

    def __init__(self, reason: str):
        super().__init__(
            message=f"Closing hook failed: {reason}",
            error_code="CLEANUP_FAILED",
            details={"reason": reason}
        )


# ============================================================================
# Export
# ============================================================================

__all__ = [
    "GracelyException",
    "InvalidConfigurationError",
    "ShutdownTimeoutError",
    "CleanupFailedError",
]
