"""Tests for the label maintenance controller: full cycles, idempotency, aborts, retries, cancellation."""

import json

import pytest

from identigraph.analysis import GraphAnalyzer
from identigraph.errors import LabelStoreWriteFailure
from identigraph.graph import Graph
from identigraph.ingestion import SnapshotProvider
from identigraph.maintenance import (
    CancellationToken,
    InMemoryLabelStore,
    LabelMaintenanceController,
    cycle_report_to_dict,
    run_maintenance_cycle,
)
from identigraph.scoring import AnalyticsConfig, load_config


def _placeholder_ssn_graph() -> Graph:
    """
    Twelve customers share the placeholder SSN s0 ("000-00-0000").
    c1 and c2 also share email e1; c3 alone has phone p1.
    """
    g = Graph()
    g.add_node("s0", "SSN", "000-00-0000")
    for i in range(1, 13):
        g.add_node(f"c{i}", "Customer")
        g.add_edge(f"c{i}", "s0", "HAS_SSN")
    g.add_node("e1", "Email", "noreply@example.com")
    g.add_edge("c1", "e1", "HAS_EMAIL")
    g.add_edge("c2", "e1", "HAS_EMAIL")
    g.add_node("p1", "Phone", "555-0100")
    g.add_edge("c3", "p1", "HAS_PHONE")
    return g


class FlakyLabelStore(InMemoryLabelStore):
    """Fails the first N writes for selected nodes, alternating False returns and exceptions."""

    def __init__(self, failures: dict[str, int], initial=None) -> None:
        super().__init__(initial)
        self.failures = dict(failures)
        self.attempts: dict[str, int] = {}

    def apply_delta(self, node_id, add, remove):
        self.attempts[node_id] = self.attempts.get(node_id, 0) + 1
        remaining = self.failures.get(node_id, 0)
        if remaining:
            self.failures[node_id] = remaining - 1
            if remaining % 2:
                raise LabelStoreWriteFailure(node_id, "simulated")
            return False
        return super().apply_delta(node_id, add, remove)


class UnreachableBackendStore(InMemoryLabelStore):
    """Writes for nodes in `down` raise ConnectionError; once writes begin, reads may fail too."""

    def __init__(self, down, fail_reads_after_write=False) -> None:
        super().__init__()
        self.down = set(down)
        self.fail_reads_after_write = fail_reads_after_write
        self.writing = False

    def read_labels(self, node_id):
        if self.writing and self.fail_reads_after_write:
            raise ConnectionError("store down")
        return super().read_labels(node_id)

    def apply_delta(self, node_id, add, remove):
        self.writing = True
        if node_id in self.down:
            raise ConnectionError("store down")
        return super().apply_delta(node_id, add, remove)


class ExplodingAnalyzer(GraphAnalyzer):
    def analyze(self, snapshot, config):
        raise RuntimeError("engine crashed")


def test_first_cycle_applies_expected_labels():
    """The placeholder SSN is a super connector, hub, and bridge; c3 bridges to its phone."""
    store = InMemoryLabelStore()
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, store)

    assert report.status == "success"
    assert report.phases == ("Snapshotting", "Computing", "Diffing", "Applying", "Reporting")
    assert store.read_labels("s0") == frozenset(
        {"SuperConnector", "InformationHub", "CriticalHub", "BridgeNode"}
    )
    assert store.read_labels("c3") == frozenset({"BridgeNode"})
    assert store.read_labels("c1") == frozenset()
    assert report.added_counts == {
        "SuperConnector": 1,
        "InformationHub": 1,
        "CriticalHub": 1,
        "BridgeNode": 2,
    }
    assert report.removed_counts == {}
    assert report.added_by_node_type["Customer"] == {"BridgeNode": 1}
    assert report.added_by_node_type["SSN"]["SuperConnector"] == 1
    assert report.tier_counts == {"Exclude": 1, "Monitor": 1, "None": 13}


def test_score_distributions_reported():
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, InMemoryLabelStore())
    degree = report.score_distributions["degree"]
    assert degree.count == 15
    assert degree.max == 12.0
    assert degree.min == 1.0
    closeness = report.score_distributions["closeness"]
    assert closeness.max == pytest.approx(0.875)
    assert 0.0 <= closeness.min <= closeness.max <= 1.0
    assert report.score_distributions["risk_score"].max == 5.0


def test_second_cycle_is_empty_and_deterministic():
    """Two cycles over an unchanged graph: identical scores and an empty second diff."""
    graph = _placeholder_ssn_graph()
    store = InMemoryLabelStore()
    controller = LabelMaintenanceController(store)
    first = controller.run_cycle(graph)
    labels_after_first = store.all_labels()
    second = controller.run_cycle(graph)

    assert second.status == "success"
    assert second.deltas == ()
    assert second.added_counts == {}
    assert second.removed_counts == {}
    assert second.score_distributions == first.score_distributions
    assert second.tier_counts == first.tier_counts
    assert store.all_labels() == labels_after_first


def test_reapplying_report_deltas_is_idempotent():
    """Applying a report's deltas twice leaves the same labels as applying them once."""
    store = InMemoryLabelStore()
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, store)
    expected = store.all_labels()

    replay = InMemoryLabelStore()
    for _ in range(2):
        for delta in report.deltas:
            replay.apply_delta(delta.node_id, delta.add, delta.remove)
    assert replay.all_labels() == expected


def test_parallel_and_sequential_engines_agree():
    graph = _placeholder_ssn_graph()
    par_store, seq_store = InMemoryLabelStore(), InMemoryLabelStore()
    par = run_maintenance_cycle(graph, {"parallel_engines": True}, par_store)
    seq = run_maintenance_cycle(graph, {"parallel_engines": False}, seq_store)
    assert par_store.all_labels() == seq_store.all_labels()
    assert par.score_distributions == seq.score_distributions


def test_graph_mutation_removes_stale_labels():
    """Once c3 loses its phone it is no longer a bridge; the label is removed."""
    graph = _placeholder_ssn_graph()
    store = InMemoryLabelStore()
    controller = LabelMaintenanceController(store)
    controller.run_cycle(graph)
    graph.remove_node("p1")
    report = controller.run_cycle(graph)

    assert report.status == "success"
    assert report.removed_counts == {"BridgeNode": 1}
    assert report.removed_by_node_type == {"Customer": {"BridgeNode": 1}}
    assert store.read_labels("c3") == frozenset()
    assert "BridgeNode" in store.read_labels("s0")


def test_unmanaged_labels_untouched():
    """Labels the controller does not own survive every cycle."""
    store = InMemoryLabelStore({"c1": ["ManualReview"], "s0": ["KnownPlaceholder"]})
    run_maintenance_cycle(_placeholder_ssn_graph(), None, store)
    assert store.read_labels("c1") == frozenset({"ManualReview"})
    assert "KnownPlaceholder" in store.read_labels("s0")
    assert "SuperConnector" in store.read_labels("s0")


def test_stale_managed_label_removed():
    store = InMemoryLabelStore({"c5": ["SuperConnector"]})
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, store)
    assert store.read_labels("c5") == frozenset()
    assert report.removed_counts == {"SuperConnector": 1}


def test_annotations_written_to_graph():
    graph = _placeholder_ssn_graph()
    run_maintenance_cycle(graph, None, InMemoryLabelStore())
    s0 = graph.get_node("s0")
    assert s0.degree_score == 12
    assert s0.closeness_score == pytest.approx(0.875)
    assert s0.is_articulation_point is True
    assert s0.risk_tier == "Exclude"
    assert "SuperConnector" in s0.labels
    c1 = graph.get_node("c1")
    assert c1.degree_score == 2
    assert c1.risk_tier == "None"


def test_edge_type_filters_and_labeled_node_types():
    """Filters change degree per node type; unlisted node types get no labels."""
    cfg = load_config(
        {
            "edge_type_filters": {"SSN": ["HAS_EMAIL"]},
            "labeled_node_types": ["Customer"],
        }
    )
    graph = _placeholder_ssn_graph()
    store = InMemoryLabelStore()
    report = run_maintenance_cycle(graph, cfg, store)
    assert graph.get_node("s0").degree_score == 0
    assert store.read_labels("s0") == frozenset()
    assert store.read_labels("c3") == frozenset({"BridgeNode"})
    assert report.added_counts == {"BridgeNode": 1}


def test_scale_limit_leaves_store_unmodified():
    """More nodes than the closeness ceiling: status scale_limit_exceeded, nothing written."""
    store = InMemoryLabelStore({"s0": ["MonitorNode"]})
    before = store.all_labels()
    graph = _placeholder_ssn_graph()
    report = run_maintenance_cycle(
        graph, {"max_nodes_for_closeness_computation": 10}, store
    )
    assert report.status == "scale_limit_exceeded"
    assert "15" in report.cause and "10" in report.cause
    assert "Applying" not in report.phases
    assert report.deltas == ()
    assert store.all_labels() == before
    assert graph.get_node("s0").degree_score is None


def test_invariant_violation_aborts_at_snapshot():
    """A dangling edge fails Snapshotting; the label store is untouched."""
    provider = SnapshotProvider.from_document(
        {
            "nodes": [{"id": "c1", "type": "Customer"}],
            "edges": [{"source": "c1", "target": "ghost", "type": "HAS_EMAIL"}],
        }
    )
    store = InMemoryLabelStore({"c1": ["BridgeNode"]})
    report = run_maintenance_cycle(provider, None, store)
    assert report.status == "invariant_violation"
    assert "ghost" in report.cause
    assert report.phases == ("Snapshotting",)
    assert report.snapshot_version is None
    assert store.read_labels("c1") == frozenset({"BridgeNode"})


def test_self_loop_in_provider_is_invariant_violation():
    provider = SnapshotProvider.from_document(
        {
            "nodes": [{"id": "c1", "type": "Customer"}],
            "edges": [{"source": "c1", "target": "c1", "type": "BENEFITS_TO"}],
        }
    )
    report = run_maintenance_cycle(provider, None, InMemoryLabelStore())
    assert report.status == "invariant_violation"


def test_engine_failure_reported_not_raised():
    store = InMemoryLabelStore()
    controller = LabelMaintenanceController(store, analyzer=ExplodingAnalyzer())
    report = controller.run_cycle(_placeholder_ssn_graph())
    assert report.status == "failed"
    assert "RuntimeError" in report.cause
    assert store.all_labels() == {}
    assert controller.state == "Idle"


def test_cancelled_before_start():
    token = CancellationToken()
    token.cancel()
    store = InMemoryLabelStore()
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, store, token)
    assert report.status == "cancelled"
    assert report.phases == ()
    assert store.all_labels() == {}


def test_cancelled_during_diffing():
    """Cancellation requested while diffing stops the cycle before Applying."""
    token = CancellationToken()
    store = InMemoryLabelStore()

    def listener(phase):
        if phase == "Diffing":
            token.cancel()

    controller = LabelMaintenanceController(store, phase_listener=listener)
    report = controller.run_cycle(_placeholder_ssn_graph(), token)
    assert report.status == "cancelled"
    assert report.phases == ("Snapshotting", "Computing", "Diffing")
    assert store.all_labels() == {}


def test_cancel_after_applying_has_no_effect():
    token = CancellationToken()
    store = InMemoryLabelStore()

    def listener(phase):
        if phase == "Applying":
            token.cancel()

    controller = LabelMaintenanceController(store, phase_listener=listener)
    report = controller.run_cycle(_placeholder_ssn_graph(), token)
    assert report.status == "success"
    assert store.read_labels("c3") == frozenset({"BridgeNode"})


def test_write_failure_retried_then_succeeds():
    store = FlakyLabelStore({"s0": 2})
    report = run_maintenance_cycle(
        _placeholder_ssn_graph(), AnalyticsConfig(max_apply_retries=3), store
    )
    assert report.status == "success"
    assert store.attempts["s0"] == 3
    assert "SuperConnector" in store.read_labels("s0")


def test_write_failure_unresolved_other_nodes_commit():
    """A node failing every retry is reported unresolved; other nodes still commit."""
    store = FlakyLabelStore({"s0": 100})
    report = run_maintenance_cycle(
        _placeholder_ssn_graph(), AnalyticsConfig(max_apply_retries=2), store
    )
    assert report.status == "partial"
    assert report.unresolved_nodes == ("s0",)
    assert store.attempts["s0"] == 3
    assert store.read_labels("s0") == frozenset()
    assert store.read_labels("c3") == frozenset({"BridgeNode"})
    assert report.added_counts == {"BridgeNode": 1}
    assert "unresolved" in report.cause


def test_report_serializes_to_json():
    report = run_maintenance_cycle(_placeholder_ssn_graph(), None, InMemoryLabelStore())
    data = json.loads(json.dumps(cycle_report_to_dict(report)))
    assert data["status"] == "success"
    assert data["nodes_changed"] == 2
    assert data["tier_counts"]["Exclude"] == 1


def test_snapshot_input_accepted():
    """A GraphSnapshot can be passed directly; no annotation happens."""
    graph = _placeholder_ssn_graph()
    store = InMemoryLabelStore()
    report = run_maintenance_cycle(graph.snapshot(), None, store)
    assert report.status == "success"
    assert report.snapshot_version == graph.version
    assert graph.get_node("s0").degree_score is None


def test_backend_error_during_apply_marks_node_unresolved():
    """Arbitrary store exceptions count as failed attempts; the cycle still returns a report."""
    store = UnreachableBackendStore({"s0"})
    report = run_maintenance_cycle(_placeholder_ssn_graph(), AnalyticsConfig(max_apply_retries=1), store)
    assert report.status == "partial"
    assert report.unresolved_nodes == ("s0",)
    assert store.read_labels("c3") == frozenset({"BridgeNode"})
    assert report.added_counts == {"BridgeNode": 1}


def test_backend_error_while_annotating_keeps_scores():
    """Label reads failing after Applying do not escape; scores are still annotated."""
    graph = _placeholder_ssn_graph()
    store = UnreachableBackendStore(set(), fail_reads_after_write=True)
    report = run_maintenance_cycle(graph, None, store)
    assert report.status == "success"
    assert graph.get_node("s0").degree_score == 12
    assert graph.get_node("s0").labels == frozenset()
