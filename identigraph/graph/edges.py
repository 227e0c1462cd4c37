"""Edge types for the identity graph."""

from __future__ import annotations

from dataclasses import dataclass

HAS_EMAIL = "HAS_EMAIL"
HAS_PHONE = "HAS_PHONE"
HAS_SSN = "HAS_SSN"
HAS_ACCOUNT = "HAS_ACCOUNT"
PERFORMS = "PERFORMS"
BENEFITS_TO = "BENEFITS_TO"

EDGE_TYPES = frozenset(
    {HAS_EMAIL, HAS_PHONE, HAS_SSN, HAS_ACCOUNT, PERFORMS, BENEFITS_TO}
)


@dataclass(frozen=True)
class Edge:
    """
    A stored edge (source -> target). Direction is kept as ingested; analytics
    use the undirected projection. edge_id keeps parallel edges distinct.
    """

    source: str
    target: str
    edge_type: str
    edge_id: str = ""
