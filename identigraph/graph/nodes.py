"""Node types for the identity graph."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# Extensible: any string is accepted as a type tag unless a vocabulary is enforced
CUSTOMER = "Customer"
EMAIL = "Email"
PHONE = "Phone"
SSN = "SSN"
ACCOUNT = "Account"
TRANSACTION = "Transaction"
BANK = "Bank"
MERCHANT = "Merchant"

NODE_TYPES = frozenset(
    {CUSTOMER, EMAIL, PHONE, SSN, ACCOUNT, TRANSACTION, BANK, MERCHANT}
)

RiskTier = Literal["None", "Monitor", "Review", "Exclude"]

# Ascending order; index is the tier rank
RISK_TIERS: tuple[RiskTier, ...] = ("None", "Monitor", "Review", "Exclude")


@dataclass(frozen=True)
class NodeView:
    """Read-only node as seen by one analytics cycle."""

    node_id: str
    node_type: str
    value: str | None = None


@dataclass
class Node:
    """
    Live node held by a Graph. Identity fields are fixed at creation; the
    score fields and label set are written only by the maintenance controller.
    """

    node_id: str
    node_type: str
    value: str | None = None
    degree_score: int | None = None
    closeness_score: float | None = None
    is_articulation_point: bool = False
    risk_tier: RiskTier = "None"
    labels: frozenset[str] = field(default_factory=frozenset)

    def view(self) -> NodeView:
        return NodeView(self.node_id, self.node_type, self.value)
