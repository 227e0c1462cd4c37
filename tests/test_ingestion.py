"""Tests for graph document loading: JSON, YAML, dicts, and lazily validated snapshot providers."""

import json
import tempfile
from pathlib import Path

import pytest

from identigraph.errors import InvariantViolation
from identigraph.ingestion import SnapshotProvider, graph_from_dict, load_graph, read_graph_document

_DOC = {
    "nodes": [
        {"id": "c1", "type": "Customer"},
        {"id": "c2", "type": "Customer"},
        {"id": "e1", "type": "Email", "value": "x@example.com"},
    ],
    "edges": [
        {"source": "c1", "target": "e1", "type": "HAS_EMAIL"},
        {"source": "c2", "target": "e1", "type": "HAS_EMAIL", "id": "link-2"},
    ],
}


def test_graph_from_dict():
    g = graph_from_dict(_DOC)
    assert g.node_count == 3
    assert g.edge_count == 2
    assert g.get_node("e1").value == "x@example.com"
    snap = g.snapshot()
    assert snap.neighbors("e1") == frozenset({"c1", "c2"})
    assert "link-2" in {e.edge_id for e in snap.edges}


def test_load_graph_json_file():
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "graph.json"
        path.write_text(json.dumps(_DOC))
        g = load_graph(path)
    assert g.node_count == 3


def test_load_graph_yaml_file():
    content = """
nodes:
  - {id: c1, type: Customer}
  - {id: p1, type: Phone, value: "555-0100"}
edges:
  - {source: c1, target: p1, type: HAS_PHONE}
"""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "graph.yaml"
        path.write_text(content)
        g = load_graph(str(path))
    assert g.get_node("p1").value == "555-0100"
    assert g.snapshot().neighbors("c1") == frozenset({"p1"})


def test_load_graph_dict_passthrough():
    assert load_graph(_DOC).node_count == 3


def test_read_graph_document_errors():
    with pytest.raises(FileNotFoundError):
        read_graph_document("/nonexistent/graph.json")
    with tempfile.TemporaryDirectory() as tmp:
        bad = Path(tmp) / "bad.json"
        bad.write_text("{not json")
        with pytest.raises(ValueError, match="Failed to parse"):
            read_graph_document(bad)
        listing = Path(tmp) / "list.yaml"
        listing.write_text("- a\n- b\n")
        with pytest.raises(ValueError, match="expected dict"):
            read_graph_document(listing)


def test_missing_required_keys():
    with pytest.raises(ValueError, match="missing 'type'"):
        graph_from_dict({"nodes": [{"id": "c1"}]})
    with pytest.raises(ValueError, match="missing 'target'"):
        graph_from_dict(
            {"nodes": [{"id": "c1", "type": "Customer"}], "edges": [{"source": "c1", "type": "HAS_SSN"}]}
        )


def test_graph_from_dict_dangling_edge():
    doc = {"nodes": [{"id": "c1", "type": "Customer"}], "edges": [{"source": "c1", "target": "x", "type": "HAS_SSN"}]}
    with pytest.raises(InvariantViolation):
        graph_from_dict(doc)


def test_snapshot_provider_validates_lazily():
    """Construction accepts bad data; snapshot() raises."""
    doc = {"nodes": [{"id": "c1", "type": "Customer"}], "edges": [{"source": "c1", "target": "c1", "type": "HAS_SSN"}]}
    provider = SnapshotProvider.from_document(doc, version=4)
    with pytest.raises(InvariantViolation):
        provider.snapshot()
    good = SnapshotProvider.from_document(_DOC, version=4).snapshot()
    assert good.version == 4
    assert good.node_count == 3
