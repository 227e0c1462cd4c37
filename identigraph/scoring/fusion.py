"""
Score fusion: combine degree, closeness, and articulation status into a
weighted risk score, a risk tier, and a label set. Pure functions of the
inputs and the configuration.
"""

from __future__ import annotations

from identigraph.graph.nodes import RISK_TIERS, RiskTier
from identigraph.scoring.data_model import (
    BRIDGE_NODE,
    CRITICAL_HUB,
    INFORMATION_HUB,
    MONITOR_NODE,
    SUPER_CONNECTOR,
    AnalyticsConfig,
    FusionResult,
)


def risk_score(
    degree: int,
    closeness: float,
    is_articulation_point: bool,
    config: AnalyticsConfig,
) -> float:
    """w_c * [closeness > t_c] + w_d * [degree > t_d] + w_a * [articulation]."""
    w = config.risk_weights
    t = config.risk_triggers
    score = 0.0
    if closeness > t.closeness:
        score += w.closeness
    if degree > t.degree:
        score += w.degree
    if is_articulation_point:
        score += w.articulation
    return score


def classify_tier(score: float, bands: tuple[int, int, int]) -> RiskTier:
    """
    Highest tier whose lower bound is <= score. A score exactly on a bound
    goes to the higher tier.
    """
    tier: RiskTier = RISK_TIERS[0]
    for bound, candidate in zip(bands, RISK_TIERS[1:]):
        if score >= bound:
            tier = candidate
    return tier


def labels_for(
    degree: int,
    closeness: float,
    is_articulation_point: bool,
    config: AnalyticsConfig,
) -> frozenset[str]:
    """Every label whose predicate holds; predicates are independent."""
    dt = config.degree_thresholds
    ct = config.closeness_thresholds
    labels: set[str] = set()
    if degree >= dt.super_connector:
        labels.add(SUPER_CONNECTOR)
    elif degree >= dt.monitor:
        labels.add(MONITOR_NODE)
    if closeness >= ct.information_hub:
        labels.add(INFORMATION_HUB)
    if closeness >= ct.critical:
        labels.add(CRITICAL_HUB)
    if is_articulation_point:
        labels.add(BRIDGE_NODE)
    return frozenset(labels)


def fuse(
    node_id: str,
    degree: int,
    closeness: float,
    is_articulation_point: bool,
    config: AnalyticsConfig,
) -> FusionResult:
    """Full fusion for one node."""
    score = risk_score(degree, closeness, is_articulation_point, config)
    tier = classify_tier(score, config.risk_tier_bands)
    return FusionResult(
        node_id=node_id,
        degree_score=degree,
        closeness_score=closeness,
        is_articulation_point=is_articulation_point,
        risk_score=score,
        risk_tier=tier,
        labels=labels_for(degree, closeness, is_articulation_point, config),
        excluded=tier == "Exclude",
        critical=closeness >= config.closeness_thresholds.critical,
    )
