"""Identity graph model: nodes, edges, mutable Graph, immutable GraphSnapshot."""

from identigraph.graph.edges import EDGE_TYPES, Edge
from identigraph.graph.graph import Graph
from identigraph.graph.nodes import NODE_TYPES, RISK_TIERS, Node, NodeView, RiskTier
from identigraph.graph.snapshot import (
    GraphSnapshot,
    build_snapshot,
    graph_snapshot_to_dict,
)

__all__ = [
    "EDGE_TYPES",
    "Edge",
    "Graph",
    "GraphSnapshot",
    "NODE_TYPES",
    "Node",
    "NodeView",
    "RISK_TIERS",
    "RiskTier",
    "build_snapshot",
    "graph_snapshot_to_dict",
]
