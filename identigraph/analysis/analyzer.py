"""
GraphAnalyzer: run the degree, articulation, and closeness engines against one snapshot -> EngineResults.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from identigraph.analysis.articulation import run_articulation_points
from identigraph.analysis.closeness import run_closeness
from identigraph.analysis.degree import run_filtered_degree
from identigraph.errors import ScaleLimitExceeded
from identigraph.graph.snapshot import GraphSnapshot
from identigraph.scoring.data_model import AnalyticsConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngineResults:
    """Private outputs of the three engines for one snapshot version."""

    snapshot_version: int
    degree: dict[str, int]
    articulation_points: frozenset[str]
    closeness: dict[str, float]


class GraphAnalyzer:
    """Runs the three independent engines; all results or none."""

    def analyze(self, snapshot: GraphSnapshot, config: AnalyticsConfig) -> EngineResults:
        """
        Compute all three metrics for a snapshot.

        The scale ceiling is checked before any engine starts. With
        config.parallel_engines the engines run in worker threads; each
        writes only to its own result. The first engine exception is
        re-raised and every other engine's result is discarded.
        """
        limit = config.max_nodes_for_closeness_computation
        if snapshot.node_count > limit:
            raise ScaleLimitExceeded(snapshot.node_count, limit)

        if config.parallel_engines:
            with ThreadPoolExecutor(max_workers=3, thread_name_prefix="engine") as pool:
                degree_f = pool.submit(run_filtered_degree, snapshot, config.edge_type_filters)
                articulation_f = pool.submit(run_articulation_points, snapshot)
                closeness_f = pool.submit(run_closeness, snapshot, limit)
                # result() re-raises the engine's exception; pool shutdown waits for the rest
                degree = degree_f.result()
                articulation = articulation_f.result()
                closeness = closeness_f.result()
        else:
            degree = run_filtered_degree(snapshot, config.edge_type_filters)
            articulation = run_articulation_points(snapshot)
            closeness = run_closeness(snapshot, limit)

        logger.debug(
            "Engines finished for snapshot v%d: %d nodes, %d articulation points",
            snapshot.version, len(degree), len(articulation),
        )
        return EngineResults(
            snapshot_version=snapshot.version,
            degree=degree,
            articulation_points=frozenset(articulation),
            closeness=closeness,
        )


def analyze(snapshot: GraphSnapshot, config: AnalyticsConfig) -> EngineResults:
    """Convenience: run GraphAnalyzer().analyze(snapshot, config)."""
    return GraphAnalyzer().analyze(snapshot, config)
