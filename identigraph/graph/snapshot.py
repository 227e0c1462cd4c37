"""
Immutable point-in-time graph view with an undirected adjacency index, plus
validation and deterministic JSON serialization.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType

from identigraph.errors import InvariantViolation
from identigraph.graph.edges import Edge
from identigraph.graph.nodes import Node, NodeView

# (neighbor_id, edge_id, edge_type)
Incidence = tuple[str, str, str]


@dataclass(frozen=True)
class GraphSnapshot:
    """
    Read-only graph for one analytics cycle. Every edge appears in the
    incidence lists of both endpoints regardless of stored direction.
    """

    version: int
    nodes: Mapping[str, NodeView]
    edges: tuple[Edge, ...]
    incidence: Mapping[str, tuple[Incidence, ...]]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def node_ids(self) -> list[str]:
        """All node ids, sorted."""
        return sorted(self.nodes)

    def node(self, node_id: str) -> NodeView:
        return self.nodes[node_id]

    def edges_of(self, node_id: str) -> tuple[Incidence, ...]:
        """Incident (neighbor, edge_id, edge_type) triples in the undirected projection."""
        return self.incidence.get(node_id, ())

    def neighbors(
        self,
        node_id: str,
        edge_types: Iterable[str] | None = None,
    ) -> frozenset[str]:
        """Distinct neighbor ids, optionally restricted to the given edge types."""
        if edge_types is None:
            return frozenset(nbr for nbr, _, _ in self.edges_of(node_id))
        allowed = frozenset(edge_types)
        return frozenset(
            nbr for nbr, _, etype in self.edges_of(node_id) if etype in allowed
        )


def _as_view(node: Node | NodeView) -> NodeView:
    if isinstance(node, Node):
        return node.view()
    return node


def build_snapshot(
    nodes: Iterable[Node | NodeView],
    edges: Iterable[Edge],
    version: int = 0,
    *,
    node_types: frozenset[str] | None = None,
) -> GraphSnapshot:
    """
    Validate nodes and edges and build a GraphSnapshot.

    Raises InvariantViolation on duplicate node or edge ids, unknown node
    types (only when node_types is given), self-loops, and dangling endpoints.
    Edges without an edge_id get the next free id of the form "#<n>"; ids
    given explicitly are never reused for generated ones.
    """
    node_map: dict[str, NodeView] = {}
    for raw in nodes:
        view = _as_view(raw)
        if view.node_id in node_map:
            raise InvariantViolation(
                f"Duplicate node id: {view.node_id}", {"node_id": view.node_id}
            )
        if node_types is not None and view.node_type not in node_types:
            raise InvariantViolation(
                f"Node {view.node_id} has unknown type {view.node_type}",
                {"node_id": view.node_id, "node_type": view.node_type},
            )
        node_map[view.node_id] = view

    incidence: dict[str, list[Incidence]] = {nid: [] for nid in node_map}
    edge_list: list[Edge] = []
    seen_edge_ids: set[str] = set()
    edges = list(edges)
    explicit_ids = {e.edge_id for e in edges if e.edge_id}
    next_id = 0
    for e in edges:
        if not e.edge_id:
            while f"#{next_id}" in explicit_ids:
                next_id += 1
            e = replace(e, edge_id=f"#{next_id}")
            next_id += 1
        if e.edge_id in seen_edge_ids:
            raise InvariantViolation(
                f"Duplicate edge id: {e.edge_id}", {"edge_id": e.edge_id}
            )
        if e.source == e.target:
            raise InvariantViolation(
                f"Self-loop on node {e.source} (edge {e.edge_id})",
                {"edge_id": e.edge_id, "node_id": e.source},
            )
        for endpoint in (e.source, e.target):
            if endpoint not in node_map:
                raise InvariantViolation(
                    f"Edge {e.edge_id} references missing node {endpoint}",
                    {"edge_id": e.edge_id, "node_id": endpoint},
                )
        seen_edge_ids.add(e.edge_id)
        edge_list.append(e)
        incidence[e.source].append((e.target, e.edge_id, e.edge_type))
        incidence[e.target].append((e.source, e.edge_id, e.edge_type))

    return GraphSnapshot(
        version=version,
        nodes=MappingProxyType(node_map),
        edges=tuple(edge_list),
        incidence=MappingProxyType(
            {nid: tuple(inc) for nid, inc in incidence.items()}
        ),
    )


def graph_snapshot_to_dict(snapshot: GraphSnapshot) -> dict:
    """
    Return a JSON-serializable dict with deterministic ordering.
    Same snapshot -> same dict (and same JSON with sort_keys=True).
    """
    nodes_sorted = sorted(snapshot.nodes.values(), key=lambda n: n.node_id)
    edges_sorted = sorted(
        snapshot.edges, key=lambda e: (e.source, e.target, e.edge_type, e.edge_id)
    )
    return {
        "version": snapshot.version,
        "nodes": [
            {"id": n.node_id, "type": n.node_type, "value": n.value}
            for n in nodes_sorted
        ],
        "edges": [
            {"id": e.edge_id, "source": e.source, "target": e.target, "type": e.edge_type}
            for e in edges_sorted
        ],
    }
