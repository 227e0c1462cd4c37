"""Label maintenance: label stores, the cycle controller, and cycle reports."""

from identigraph.maintenance.controller import (
    CancellationToken,
    LabelMaintenanceController,
    run_maintenance_cycle,
)
from identigraph.maintenance.label_store import (
    InMemoryLabelStore,
    JsonFileLabelStore,
    LabelStore,
)
from identigraph.maintenance.report import (
    CycleReport,
    NodeDelta,
    ScoreDistribution,
    compute_distribution,
    cycle_report_to_dict,
)

__all__ = [
    "CancellationToken",
    "CycleReport",
    "InMemoryLabelStore",
    "JsonFileLabelStore",
    "LabelMaintenanceController",
    "LabelStore",
    "NodeDelta",
    "ScoreDistribution",
    "compute_distribution",
    "cycle_report_to_dict",
    "run_maintenance_cycle",
]
