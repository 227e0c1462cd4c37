"""
Scoring data model: analytics configuration and per-node fusion results.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from identigraph.graph.nodes import RiskTier

# Managed label kinds; the controller never adds or removes any other label
SUPER_CONNECTOR = "SuperConnector"
MONITOR_NODE = "MonitorNode"
INFORMATION_HUB = "InformationHub"
CRITICAL_HUB = "CriticalHub"
BRIDGE_NODE = "BridgeNode"

MANAGED_LABELS = frozenset(
    {SUPER_CONNECTOR, MONITOR_NODE, INFORMATION_HUB, CRITICAL_HUB, BRIDGE_NODE}
)


@dataclass(frozen=True)
class DegreeThresholds:
    """monitor <= degree < super_connector -> MonitorNode; degree >= super_connector -> SuperConnector."""

    monitor: int = 5
    super_connector: int = 10


@dataclass(frozen=True)
class ClosenessThresholds:
    """closeness >= information_hub -> InformationHub; closeness >= critical -> CriticalHub."""

    information_hub: float = 0.6
    critical: float = 0.8


@dataclass(frozen=True)
class RiskWeights:
    """Non-negative weights; fractional values are allowed."""

    closeness: float = 3.0
    degree: float = 3.0
    articulation: float = 2.0


@dataclass(frozen=True)
class RiskTriggers:
    """A weight counts toward the risk score when the metric is strictly above its trigger."""

    closeness: float = 0.6
    degree: int = 50


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Every tunable threshold for one deployment.

    risk_tier_bands: ascending (monitor, review, exclude) lower bounds;
    a risk score equal to a bound belongs to that bound's tier.
    edge_type_filters: node type -> edge types counted by the degree engine.
    labeled_node_types: node types that may receive labels (None = all).
    """

    degree_thresholds: DegreeThresholds = field(default_factory=DegreeThresholds)
    closeness_thresholds: ClosenessThresholds = field(default_factory=ClosenessThresholds)
    risk_weights: RiskWeights = field(default_factory=RiskWeights)
    risk_triggers: RiskTriggers = field(default_factory=RiskTriggers)
    risk_tier_bands: tuple[int, int, int] = (2, 3, 5)
    max_nodes_for_closeness_computation: int = 10_000
    edge_type_filters: dict[str, frozenset[str]] = field(default_factory=dict)
    labeled_node_types: frozenset[str] | None = None
    max_apply_retries: int = 3
    parallel_engines: bool = True

    def __post_init__(self) -> None:
        bands = self.risk_tier_bands
        if len(bands) != 3 or not (bands[0] <= bands[1] <= bands[2]):
            raise ValueError(
                f"risk_tier_bands must be three ascending values, got {bands!r}"
            )
        if self.max_nodes_for_closeness_computation < 1:
            raise ValueError("max_nodes_for_closeness_computation must be positive")
        if self.max_apply_retries < 0:
            raise ValueError("max_apply_retries must be >= 0")


@dataclass(frozen=True)
class FusionResult:
    """Per-node output of score fusion."""

    node_id: str
    degree_score: int
    closeness_score: float
    is_articulation_point: bool
    risk_score: float
    risk_tier: RiskTier
    labels: frozenset[str]
    excluded: bool  # tier is Exclude
    critical: bool  # closeness at or above the critical threshold
