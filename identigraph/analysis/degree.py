"""
Degree engine: distinct-neighbor counts over the undirected projection,
optionally restricted by node type and edge type.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from identigraph.graph.snapshot import GraphSnapshot


@dataclass(frozen=True)
class DegreeFilter:
    """
    node_type: only score nodes of this type (None = every node).
    edge_types: only count neighbors reached through these edge types (None = all).
    """

    node_type: str | None = None
    edge_types: frozenset[str] | None = None


def run_degree(graph: GraphSnapshot, filter: DegreeFilter | None = None) -> dict[str, int]:
    """
    Map every node matching the filter's node type to its count of distinct
    neighbors via the filter's edge types. Parallel edges count once; nodes
    with no qualifying neighbor score 0.
    """
    flt = filter or DegreeFilter()
    result: dict[str, int] = {}
    for node_id in graph.node_ids():
        if flt.node_type is not None and graph.node(node_id).node_type != flt.node_type:
            continue
        result[node_id] = len(graph.neighbors(node_id, flt.edge_types))
    return result


def run_filtered_degree(
    graph: GraphSnapshot,
    edge_type_filters: Mapping[str, frozenset[str]] | None = None,
) -> dict[str, int]:
    """
    Degree for every node, using the per-node-type edge-type filter when one
    is configured for the node's type and all edge types otherwise.
    """
    filters = edge_type_filters or {}
    result: dict[str, int] = {}
    for node_id in graph.node_ids():
        edge_types = filters.get(graph.node(node_id).node_type)
        result[node_id] = len(graph.neighbors(node_id, edge_types))
    return result
