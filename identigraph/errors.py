"""
Error taxonomy for the analytics core: invariant violations, scale limits,
label-store write failures, and cancellation.
"""

from __future__ import annotations

from typing import Any


class IdentigraphError(Exception):
    """Base error with a short searchable code and optional structured details."""

    code = "IDG_000"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class InvariantViolation(IdentigraphError, ValueError):
    """Graph input breaks a structural invariant (dangling endpoint, self-loop, duplicate id)."""

    code = "GRAPH_001"


class ScaleLimitExceeded(IdentigraphError):
    """Closeness computation refused: node count is above the configured ceiling."""

    code = "SCALE_001"

    def __init__(self, node_count: int, limit: int) -> None:
        super().__init__(
            f"Graph has {node_count} nodes; closeness computation is limited to {limit}",
            details={"node_count": node_count, "limit": limit},
        )
        self.node_count = node_count
        self.limit = limit


class LabelStoreWriteFailure(IdentigraphError):
    """A label delta could not be committed for one node."""

    code = "STORE_001"

    def __init__(self, node_id: str, reason: str = "write rejected") -> None:
        super().__init__(
            f"Label delta for node {node_id} failed: {reason}",
            details={"node_id": node_id},
        )
        self.node_id = node_id


class CycleCancelled(IdentigraphError):
    """Maintenance cycle was cancelled before Applying."""

    code = "CYCLE_001"
