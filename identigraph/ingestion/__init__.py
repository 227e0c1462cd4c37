"""Graph input loading from JSON/YAML documents."""

from identigraph.ingestion.loader import (
    SnapshotProvider,
    graph_from_dict,
    load_graph,
    parse_graph_document,
    read_graph_document,
)

__all__ = [
    "SnapshotProvider",
    "graph_from_dict",
    "load_graph",
    "parse_graph_document",
    "read_graph_document",
]
