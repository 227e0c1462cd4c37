"""
Closeness engine: BFS from every node over the undirected projection with
reachable-set normalization for disconnected graphs.
"""

from __future__ import annotations

import logging
from collections import deque

from identigraph.errors import ScaleLimitExceeded
from identigraph.graph.snapshot import GraphSnapshot

logger = logging.getLogger(__name__)


def _bfs_distances(graph: GraphSnapshot, source: str) -> tuple[int, int]:
    """BFS from source. Returns (reachable count excluding source, summed hop distance)."""
    dist: dict[str, int] = {source: 0}
    q: deque[str] = deque([source])
    total = 0
    while q:
        node = q.popleft()
        d = dist[node] + 1
        for nbr, _, _ in graph.edges_of(node):
            if nbr not in dist:
                dist[nbr] = d
                total += d
                q.append(nbr)
    return len(dist) - 1, total


def closeness_from_totals(reachable: int, total_distance: int, node_count: int) -> float:
    """
    (reachable / total_distance) scaled by reachable / (node_count - 1).
    0.0 for isolated nodes and single-node graphs.
    """
    if reachable == 0 or total_distance == 0 or node_count <= 1:
        return 0.0
    return (reachable / total_distance) * (reachable / (node_count - 1))


def run_closeness(graph: GraphSnapshot, max_nodes: int | None = None) -> dict[str, float]:
    """
    Closeness centrality in [0, 1] for every node. Unit-length edges.

    Raises ScaleLimitExceeded when the node count is above max_nodes;
    the O(V * (V + E)) computation is refused rather than attempted.
    """
    n = graph.node_count
    if max_nodes is not None and n > max_nodes:
        raise ScaleLimitExceeded(n, max_nodes)

    result: dict[str, float] = {}
    for node_id in graph.node_ids():
        reachable, total = _bfs_distances(graph, node_id)
        result[node_id] = closeness_from_totals(reachable, total, n)
    logger.debug("Closeness computed for %d nodes", n)
    return result
