"""
Error types raised by engine clients and reported by the state store.

Engine failures never reach the presentation layer as exceptions: the
SyncOrchestrator catches every EngineError and turns it into the store's
single last-error message.
"""

from typing import Optional

SERVICE_UNAVAILABLE = "Docker service not available"


class DoctainrError(RuntimeError):
    """Base exception for all doctainr failures."""


class EngineError(DoctainrError):
    """Raised when the container engine cannot satisfy a request."""


class ConnectionUnavailable(EngineError):
    """Raised when no engine client could be connected for this session."""

    def __init__(self, message: str = SERVICE_UNAVAILABLE):
        super().__init__(message)


class EngineCallFailed(EngineError):
    """A single list/start/stop call failed; carries the operation and cause."""

    def __init__(self, operation: str, cause: object,
                 resource_id: Optional[str] = None):
        self.operation = operation
        self.cause = cause
        self.resource_id = resource_id
        super().__init__(f"{operation} failed: {cause}")
