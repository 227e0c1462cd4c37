"""
Mutable, thread-safe identity graph. Ingestion writers mutate it; analytics
cycles read it only through snapshot().
"""

from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Iterable

from identigraph.errors import InvariantViolation
from identigraph.graph.edges import Edge
from identigraph.graph.nodes import Node, NodeView, RiskTier
from identigraph.graph.snapshot import GraphSnapshot, build_snapshot

logger = logging.getLogger(__name__)


class Graph:
    """
    Node and edge store with a structural version counter.

    Every structural mutation (add/remove/replace) increments version.
    Annotations written by the maintenance controller do not.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._nodes: dict[str, Node] = {}
        self._edges: dict[str, Edge] = {}
        self._incident: dict[str, set[str]] = {}
        self._version = 0
        self._edge_seq = itertools.count(1)

    @property
    def version(self) -> int:
        return self._version

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def add_node(self, node_id: str, node_type: str, value: str | None = None) -> Node:
        with self._lock:
            if node_id in self._nodes:
                raise InvariantViolation(f"Duplicate node id: {node_id}", {"node_id": node_id})
            node = Node(node_id=node_id, node_type=node_type, value=value)
            self._nodes[node_id] = node
            self._incident[node_id] = set()
            self._version += 1
            return node

    def _next_edge_id(self) -> str:
        while True:
            candidate = f"e{next(self._edge_seq)}"
            if candidate not in self._edges:
                return candidate

    def add_edge(
        self,
        source: str,
        target: str,
        edge_type: str,
        edge_id: str | None = None,
    ) -> Edge:
        """Add an edge. Rejects self-loops, dangling endpoints, and duplicate edge ids."""
        with self._lock:
            if source == target:
                raise InvariantViolation(
                    f"Self-loop on node {source}", {"node_id": source}
                )
            for endpoint in (source, target):
                if endpoint not in self._nodes:
                    raise InvariantViolation(
                        f"Edge references missing node {endpoint}", {"node_id": endpoint}
                    )
            if edge_id is None:
                edge_id = self._next_edge_id()
            elif edge_id in self._edges:
                raise InvariantViolation(f"Duplicate edge id: {edge_id}", {"edge_id": edge_id})
            edge = Edge(source, target, edge_type, edge_id)
            self._edges[edge_id] = edge
            self._incident[source].add(edge_id)
            self._incident[target].add(edge_id)
            self._version += 1
            return edge

    def remove_edge(self, edge_id: str) -> Edge:
        with self._lock:
            edge = self._edges.pop(edge_id)
            self._incident[edge.source].discard(edge_id)
            self._incident[edge.target].discard(edge_id)
            self._version += 1
            return edge

    def remove_node(self, node_id: str) -> Node:
        """Remove a node and every edge incident to it."""
        with self._lock:
            node = self._nodes.pop(node_id)
            for edge_id in self._incident.pop(node_id):
                edge = self._edges.pop(edge_id)
                other = edge.target if edge.source == node_id else edge.source
                self._incident[other].discard(edge_id)
            self._version += 1
            return node

    def replace(self, nodes: Iterable[Node | NodeView], edges: Iterable[Edge]) -> None:
        """
        Whole-graph replacement. The new content is validated first; on
        InvariantViolation the current graph is left untouched.
        """
        snap = build_snapshot(nodes, edges)
        with self._lock:
            self._nodes = {
                nid: Node(view.node_id, view.node_type, view.value)
                for nid, view in snap.nodes.items()
            }
            self._edges = {e.edge_id: e for e in snap.edges}
            self._incident = {nid: set() for nid in self._nodes}
            for e in snap.edges:
                self._incident[e.source].add(e.edge_id)
                self._incident[e.target].add(e.edge_id)
            self._version += 1
            logger.debug(
                "Graph replaced: %d nodes, %d edges (version %d)",
                len(self._nodes), len(self._edges), self._version,
            )

    def annotate(
        self,
        node_id: str,
        *,
        degree_score: int | None = None,
        closeness_score: float | None = None,
        is_articulation_point: bool = False,
        risk_tier: RiskTier = "None",
        labels: frozenset[str] | None = None,
    ) -> bool:
        """Write computed fields onto a live node. Returns False if the node no longer exists."""
        with self._lock:
            node = self._nodes.get(node_id)
            if node is None:
                return False
            node.degree_score = degree_score
            node.closeness_score = closeness_score
            node.is_articulation_point = is_articulation_point
            node.risk_tier = risk_tier
            if labels is not None:
                node.labels = frozenset(labels)
            return True

    def snapshot(self) -> GraphSnapshot:
        """
        Consistent point-in-time copy. The lock is held only while copying
        the node views and edge list; the index is built outside it.
        """
        with self._lock:
            version = self._version
            views = [n.view() for n in self._nodes.values()]
            edges = list(self._edges.values())
        return build_snapshot(views, edges, version)
