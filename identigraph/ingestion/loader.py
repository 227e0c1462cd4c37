"""
Graph input loading: JSON or YAML documents of the form
{nodes: [{id, type, value?}], edges: [{source, target, type, id?}]}.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from identigraph.graph.edges import Edge
from identigraph.graph.graph import Graph
from identigraph.graph.nodes import NodeView
from identigraph.graph.snapshot import GraphSnapshot, build_snapshot


def read_graph_document(path: str | Path) -> dict:
    """Read a graph document; .json files are parsed as JSON, anything else as YAML."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Graph file not found: {file_path}")
    text = file_path.read_text(encoding="utf-8")
    try:
        if file_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to parse graph file {file_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Graph file {file_path}: expected dict, got {type(data).__name__}")
    return data


def _require(entry: Any, key: str, kind: str, index: int) -> str:
    if not isinstance(entry, dict):
        raise ValueError(f"{kind} #{index} must be a dict, got {type(entry).__name__}")
    value = entry.get(key)
    if value is None:
        raise ValueError(f"{kind} #{index} is missing '{key}'")
    return str(value)


def parse_graph_document(data: dict) -> tuple[list[NodeView], list[Edge]]:
    """Turn a graph document into node views and edges. Structural invariants are not checked here."""
    nodes = [
        NodeView(
            node_id=_require(n, "id", "node", i),
            node_type=_require(n, "type", "node", i),
            value=None if n.get("value") is None else str(n["value"]),
        )
        for i, n in enumerate(data.get("nodes") or [])
    ]
    edges = [
        Edge(
            source=_require(e, "source", "edge", i),
            target=_require(e, "target", "edge", i),
            edge_type=_require(e, "type", "edge", i),
            edge_id="" if e.get("id") is None else str(e["id"]),
        )
        for i, e in enumerate(data.get("edges") or [])
    ]
    return nodes, edges


def graph_from_dict(data: dict) -> Graph:
    """Build a Graph; raises InvariantViolation if the document breaks a graph invariant."""
    nodes, edges = parse_graph_document(data)
    graph = Graph()
    graph.replace(nodes, edges)
    return graph


def load_graph(source: str | Path | dict) -> Graph:
    """Build a Graph from a file path or an already-parsed document."""
    if isinstance(source, dict):
        return graph_from_dict(source)
    return graph_from_dict(read_graph_document(source))


@dataclass(frozen=True)
class SnapshotProvider:
    """
    Snapshot source over raw, unvalidated input. Validation happens in
    snapshot(), so a bad document fails the Snapshotting step of a cycle.
    """

    nodes: tuple[NodeView, ...]
    edges: tuple[Edge, ...]
    version: int = 0

    @classmethod
    def from_document(cls, data: dict, version: int = 0) -> SnapshotProvider:
        nodes, edges = parse_graph_document(data)
        return cls(tuple(nodes), tuple(edges), version)

    def snapshot(self) -> GraphSnapshot:
        return build_snapshot(self.nodes, self.edges, self.version)
