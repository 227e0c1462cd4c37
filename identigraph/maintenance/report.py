"""
Cycle report data model, score distribution statistics, and deterministic JSON serialization.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal

CycleStatus = Literal[
    "success",
    "partial",
    "invariant_violation",
    "scale_limit_exceeded",
    "cancelled",
    "failed",
]
Phase = Literal["Idle", "Snapshotting", "Computing", "Diffing", "Applying", "Reporting"]

REPORT_SCHEMA_VERSION = "1.0"


@dataclass(frozen=True)
class ScoreDistribution:
    """Summary statistics for one score across all scored nodes."""

    count: int
    min: float
    mean: float
    max: float
    p50: float
    p90: float
    p99: float


@dataclass(frozen=True)
class NodeDelta:
    """Labels to add and remove for one node."""

    node_id: str
    node_type: str
    add: frozenset[str]
    remove: frozenset[str]


@dataclass(frozen=True)
class CycleReport:
    """Outcome of one maintenance cycle, successful or not."""

    cycle_id: str
    status: CycleStatus
    cause: str | None = None
    phases: tuple[Phase, ...] = ()
    snapshot_version: int | None = None
    added_counts: dict[str, int] = field(default_factory=dict)
    removed_counts: dict[str, int] = field(default_factory=dict)
    added_by_node_type: dict[str, dict[str, int]] = field(default_factory=dict)
    removed_by_node_type: dict[str, dict[str, int]] = field(default_factory=dict)
    tier_counts: dict[str, int] = field(default_factory=dict)
    score_distributions: dict[str, ScoreDistribution] = field(default_factory=dict)
    deltas: tuple[NodeDelta, ...] = ()
    unresolved_nodes: tuple[str, ...] = ()
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status == "success"

    @property
    def nodes_changed(self) -> int:
        return len(self.deltas)


def _percentile(ordered: list[float], q: float) -> float:
    """Linear interpolation between closest ranks; ordered must be sorted and non-empty."""
    if len(ordered) == 1:
        return ordered[0]
    pos = (len(ordered) - 1) * q
    lo = math.floor(pos)
    hi = math.ceil(pos)
    if lo == hi:
        return ordered[lo]
    return ordered[lo] + (ordered[hi] - ordered[lo]) * (pos - lo)


def compute_distribution(values: Iterable[float]) -> ScoreDistribution:
    """Distribution of values; all-zero distribution when empty."""
    ordered = sorted(float(v) for v in values)
    if not ordered:
        return ScoreDistribution(0, 0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    return ScoreDistribution(
        count=len(ordered),
        min=ordered[0],
        mean=sum(ordered) / len(ordered),
        max=ordered[-1],
        p50=_percentile(ordered, 0.50),
        p90=_percentile(ordered, 0.90),
        p99=_percentile(ordered, 0.99),
    )


def _nested_sorted(d: dict[str, dict[str, int]]) -> dict[str, dict[str, int]]:
    return {k: dict(sorted(v.items())) for k, v in sorted(d.items())}


def cycle_report_to_dict(report: CycleReport, *, include_deltas: bool = True) -> dict:
    """
    Return a JSON-serializable dict with deterministic ordering.
    Same CycleReport -> same dict (and same JSON with sort_keys=True).
    """
    base = {
        "schema_version": REPORT_SCHEMA_VERSION,
        "cycle_id": report.cycle_id,
        "status": report.status,
        "cause": report.cause,
        "phases": list(report.phases),
        "snapshot_version": report.snapshot_version,
        "nodes_changed": report.nodes_changed,
        "added_counts": dict(sorted(report.added_counts.items())),
        "removed_counts": dict(sorted(report.removed_counts.items())),
        "added_by_node_type": _nested_sorted(report.added_by_node_type),
        "removed_by_node_type": _nested_sorted(report.removed_by_node_type),
        "tier_counts": dict(sorted(report.tier_counts.items())),
        "score_distributions": {
            name: {
                "count": d.count,
                "min": d.min,
                "mean": round(d.mean, 6),
                "max": d.max,
                "p50": round(d.p50, 6),
                "p90": round(d.p90, 6),
                "p99": round(d.p99, 6),
            }
            for name, d in sorted(report.score_distributions.items())
        },
        "unresolved_nodes": sorted(report.unresolved_nodes),
        "duration_seconds": round(report.duration_seconds, 6),
    }
    if include_deltas:
        base["deltas"] = [
            {
                "node_id": d.node_id,
                "node_type": d.node_type,
                "add": sorted(d.add),
                "remove": sorted(d.remove),
            }
            for d in sorted(report.deltas, key=lambda d: d.node_id)
        ]
    return base
