"""
Label maintenance controller: one refresh cycle
Idle -> Snapshotting -> Computing -> Diffing -> Applying -> Reporting -> Idle.

The controller is the only writer of label state. Nothing is written before
Applying, so an aborted or cancelled cycle leaves the label store untouched.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import Counter, defaultdict
from collections.abc import Callable
from typing import Protocol, Union

from identigraph.analysis.analyzer import EngineResults, GraphAnalyzer
from identigraph.errors import (
    CycleCancelled,
    InvariantViolation,
    LabelStoreWriteFailure,
    ScaleLimitExceeded,
)
from identigraph.graph.graph import Graph
from identigraph.graph.snapshot import GraphSnapshot
from identigraph.maintenance.label_store import LabelStore
from identigraph.maintenance.report import (
    CycleReport,
    CycleStatus,
    NodeDelta,
    Phase,
    compute_distribution,
)
from identigraph.scoring.config_loader import load_config
from identigraph.scoring.data_model import MANAGED_LABELS, AnalyticsConfig, FusionResult
from identigraph.scoring.fusion import fuse

logger = logging.getLogger(__name__)


class SnapshotSource(Protocol):
    def snapshot(self) -> GraphSnapshot:
        ...


GraphSource = Union[GraphSnapshot, SnapshotSource]


class CancellationToken:
    """Set from any thread; honored by the controller up to the start of Applying."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class LabelMaintenanceController:
    """Runs maintenance cycles against one label store, one cycle at a time."""

    def __init__(
        self,
        label_store: LabelStore,
        config: AnalyticsConfig | None = None,
        *,
        analyzer: GraphAnalyzer | None = None,
        phase_listener: Callable[[Phase], None] | None = None,
    ) -> None:
        self.label_store = label_store
        self.config = config or load_config(None)
        self.analyzer = analyzer or GraphAnalyzer()
        self.phase_listener = phase_listener
        self._cycle_lock = threading.Lock()
        self._state: Phase = "Idle"

    @property
    def state(self) -> Phase:
        return self._state

    def _enter(self, phase: Phase, trail: list[Phase]) -> None:
        self._state = phase
        trail.append(phase)
        logger.debug("Cycle phase: %s", phase)
        if self.phase_listener is not None:
            self.phase_listener(phase)

    @staticmethod
    def _check_cancel(token: CancellationToken | None) -> None:
        if token is not None and token.cancelled:
            raise CycleCancelled("Cycle cancelled before Applying")

    def run_cycle(
        self,
        source: GraphSource,
        cancel_token: CancellationToken | None = None,
    ) -> CycleReport:
        """
        Run one full cycle and return its CycleReport. Never raises for
        invariant violations, scale limits, cancellation, engine errors, or
        label-store errors; those come back as a report with a non-success
        status and a cause.
        """
        with self._cycle_lock:
            try:
                return self._run(source, cancel_token)
            finally:
                self._state = "Idle"

    def _run(self, source: GraphSource, cancel_token: CancellationToken | None) -> CycleReport:
        cycle_id = uuid.uuid4().hex[:12]
        started = time.monotonic()
        trail: list[Phase] = []
        snapshot: GraphSnapshot | None = None
        logger.info("Maintenance cycle %s started", cycle_id)

        def aborted(status: CycleStatus, cause: str) -> CycleReport:
            logger.error("Maintenance cycle %s aborted (%s): %s", cycle_id, status, cause)
            return CycleReport(
                cycle_id=cycle_id,
                status=status,
                cause=cause,
                phases=tuple(trail),
                snapshot_version=snapshot.version if snapshot is not None else None,
                duration_seconds=time.monotonic() - started,
            )

        try:
            self._check_cancel(cancel_token)
            self._enter("Snapshotting", trail)
            snapshot = source if isinstance(source, GraphSnapshot) else source.snapshot()
            self._check_cancel(cancel_token)

            self._enter("Computing", trail)
            results = self.analyzer.analyze(snapshot, self.config)
            self._check_cancel(cancel_token)

            self._enter("Diffing", trail)
            fused = self._fuse_all(snapshot, results)
            deltas = self._diff(snapshot, fused)
            self._check_cancel(cancel_token)
        except InvariantViolation as e:
            return aborted("invariant_violation", str(e))
        except ScaleLimitExceeded as e:
            return aborted("scale_limit_exceeded", str(e))
        except CycleCancelled as e:
            return aborted("cancelled", str(e))
        except Exception as e:
            logger.exception("Maintenance cycle %s failed before Applying", cycle_id)
            return aborted("failed", f"{type(e).__name__}: {e}")

        # From here on the cycle runs to completion
        self._enter("Applying", trail)
        applied, unresolved = self._apply(deltas)
        if isinstance(source, Graph):
            self._annotate(source, fused)

        self._enter("Reporting", trail)
        report = self._build_report(
            cycle_id, trail, snapshot, fused, applied, unresolved, started
        )
        logger.info(
            "Maintenance cycle %s finished: status=%s, %d nodes changed, %d unresolved",
            cycle_id, report.status, report.nodes_changed, len(unresolved),
        )
        return report

    def _fuse_all(self, snapshot: GraphSnapshot, results: EngineResults) -> dict[str, FusionResult]:
        return {
            node_id: fuse(
                node_id,
                results.degree.get(node_id, 0),
                results.closeness.get(node_id, 0.0),
                node_id in results.articulation_points,
                self.config,
            )
            for node_id in snapshot.node_ids()
        }

    def _diff(self, snapshot: GraphSnapshot, fused: dict[str, FusionResult]) -> list[NodeDelta]:
        """Managed labels only: labels the controller does not own are never added or removed."""
        labeled_types = self.config.labeled_node_types
        deltas: list[NodeDelta] = []
        for node_id, result in fused.items():
            node_type = snapshot.node(node_id).node_type
            if labeled_types is None or node_type in labeled_types:
                desired = result.labels
            else:
                desired = frozenset()
            current = self.label_store.read_labels(node_id) & MANAGED_LABELS
            add = desired - current
            remove = current - desired
            if add or remove:
                deltas.append(NodeDelta(node_id, node_type, add, remove))
        return deltas

    def _apply(self, deltas: list[NodeDelta]) -> tuple[list[NodeDelta], list[str]]:
        """Apply each node's delta with bounded retries; other nodes still commit when one fails."""
        applied: list[NodeDelta] = []
        unresolved: list[str] = []
        attempts_allowed = 1 + self.config.max_apply_retries
        for delta in deltas:
            ok = False
            for attempt in range(1, attempts_allowed + 1):
                try:
                    ok = bool(self.label_store.apply_delta(delta.node_id, delta.add, delta.remove))
                except LabelStoreWriteFailure as e:
                    logger.warning("Attempt %d/%d: %s", attempt, attempts_allowed, e)
                    ok = False
                except Exception as e:
                    logger.warning(
                        "Attempt %d/%d for node %s: store error %s: %s",
                        attempt, attempts_allowed, delta.node_id, type(e).__name__, e,
                    )
                    ok = False
                if ok:
                    break
            if ok:
                applied.append(delta)
            else:
                logger.warning(
                    "Label delta for node %s unresolved after %d attempts",
                    delta.node_id, attempts_allowed,
                )
                unresolved.append(delta.node_id)
        return applied, unresolved

    def _annotate(self, graph: Graph, fused: dict[str, FusionResult]) -> None:
        for node_id, result in fused.items():
            try:
                labels = self.label_store.read_labels(node_id)
            except Exception as e:
                # scores are still written; the node keeps its previous label mirror
                logger.warning(
                    "Could not read labels for node %s after Applying: %s: %s",
                    node_id, type(e).__name__, e,
                )
                labels = None
            written = graph.annotate(
                node_id,
                degree_score=result.degree_score,
                closeness_score=result.closeness_score,
                is_articulation_point=result.is_articulation_point,
                risk_tier=result.risk_tier,
                labels=labels,
            )
            if not written:
                logger.debug("Node %s removed since snapshot; annotation skipped", node_id)

    def _build_report(
        self,
        cycle_id: str,
        trail: list[Phase],
        snapshot: GraphSnapshot,
        fused: dict[str, FusionResult],
        applied: list[NodeDelta],
        unresolved: list[str],
        started: float,
    ) -> CycleReport:
        added: Counter[str] = Counter()
        removed: Counter[str] = Counter()
        added_by_type: dict[str, Counter[str]] = defaultdict(Counter)
        removed_by_type: dict[str, Counter[str]] = defaultdict(Counter)
        for delta in applied:
            added.update(delta.add)
            removed.update(delta.remove)
            if delta.add:
                added_by_type[delta.node_type].update(delta.add)
            if delta.remove:
                removed_by_type[delta.node_type].update(delta.remove)

        results = list(fused.values())
        return CycleReport(
            cycle_id=cycle_id,
            status="partial" if unresolved else "success",
            cause=(
                f"{len(unresolved)} node(s) unresolved after retries" if unresolved else None
            ),
            phases=tuple(trail),
            snapshot_version=snapshot.version,
            added_counts=dict(added),
            removed_counts=dict(removed),
            added_by_node_type={t: dict(c) for t, c in added_by_type.items()},
            removed_by_node_type={t: dict(c) for t, c in removed_by_type.items()},
            tier_counts=dict(Counter(r.risk_tier for r in results)),
            score_distributions={
                "degree": compute_distribution(r.degree_score for r in results),
                "closeness": compute_distribution(r.closeness_score for r in results),
                "risk_score": compute_distribution(r.risk_score for r in results),
            },
            deltas=tuple(applied),
            unresolved_nodes=tuple(unresolved),
            duration_seconds=time.monotonic() - started,
        )


def run_maintenance_cycle(
    graph: GraphSource,
    config: AnalyticsConfig | str | dict | None,
    label_store: LabelStore,
    cancel_token: CancellationToken | None = None,
) -> CycleReport:
    """Convenience: one cycle with a fresh LabelMaintenanceController."""
    controller = LabelMaintenanceController(label_store, load_config(config))
    return controller.run_cycle(graph, cancel_token)
