"""Score fusion and analytics configuration."""

from identigraph.scoring.config_loader import default_config, load_config
from identigraph.scoring.data_model import (
    BRIDGE_NODE,
    CRITICAL_HUB,
    INFORMATION_HUB,
    MANAGED_LABELS,
    MONITOR_NODE,
    SUPER_CONNECTOR,
    AnalyticsConfig,
    ClosenessThresholds,
    DegreeThresholds,
    FusionResult,
    RiskTriggers,
    RiskWeights,
)
from identigraph.scoring.fusion import classify_tier, fuse, labels_for, risk_score

__all__ = [
    "AnalyticsConfig",
    "BRIDGE_NODE",
    "CRITICAL_HUB",
    "ClosenessThresholds",
    "DegreeThresholds",
    "FusionResult",
    "INFORMATION_HUB",
    "MANAGED_LABELS",
    "MONITOR_NODE",
    "RiskTriggers",
    "RiskWeights",
    "SUPER_CONNECTOR",
    "classify_tier",
    "default_config",
    "fuse",
    "labels_for",
    "load_config",
    "risk_score",
]
