"""
identigraph CLI: run a maintenance cycle or print per-node scores for a graph file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Sequence

from identigraph.analysis import analyze
from identigraph.errors import IdentigraphError
from identigraph.ingestion import load_graph
from identigraph.maintenance import (
    InMemoryLabelStore,
    JsonFileLabelStore,
    LabelMaintenanceController,
    cycle_report_to_dict,
)
from identigraph.scoring import fuse, load_config


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code: 0 on success, 1 on errors or a non-success cycle
    """
    parser = argparse.ArgumentParser(
        description="identigraph: connectivity analytics and label maintenance for identity graphs"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    run_parser = subparsers.add_parser("run", help="Run one label maintenance cycle")
    run_parser.add_argument("graph", help="Graph file (JSON or YAML)")
    run_parser.add_argument("--config", help="Config YAML file path (default: built-in defaults)")
    run_parser.add_argument(
        "--labels",
        help="Label state JSON file; read and updated in place (default: in-memory, empty)",
    )
    run_parser.add_argument("--output", help="Output JSON file path (default: print to stdout)")

    scores_parser = subparsers.add_parser("scores", help="Print per-node scores, tiers, and labels")
    scores_parser.add_argument("graph", help="Graph file (JSON or YAML)")
    scores_parser.add_argument("--config", help="Config YAML file path (default: built-in defaults)")
    scores_parser.add_argument("--output", help="Output JSON file path (default: print to stdout)")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.command == "run":
        return _run_cycle(args.graph, args.config, args.labels, args.output)
    elif args.command == "scores":
        return _run_scores(args.graph, args.config, args.output)
    else:
        parser.print_help()
        return 1


def _emit(payload, output: str | None) -> None:
    output_json = json.dumps(payload, indent=2, sort_keys=True)
    if output:
        Path(output).write_text(output_json, encoding="utf-8")
    else:
        print(output_json)


def _run_cycle(graph_path: str, config: str | None, labels: str | None, output: str | None) -> int:
    """
    Run the run command.

    Returns:
        Exit code: 0 when the cycle succeeded, 1 otherwise
    """
    try:
        graph = load_graph(graph_path)
        store = JsonFileLabelStore(labels) if labels else InMemoryLabelStore()
        controller = LabelMaintenanceController(store, load_config(config))
        report = controller.run_cycle(graph)
        _emit(cycle_report_to_dict(report), output)
        if not report.succeeded:
            print(f"Error: cycle {report.status}: {report.cause}", file=sys.stderr)
            return 1
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except (IdentigraphError, OSError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _run_scores(graph_path: str, config: str | None, output: str | None) -> int:
    """Run the scores command: engines and fusion only, no label writes."""
    try:
        cfg = load_config(config)
        snapshot = load_graph(graph_path).snapshot()
        results = analyze(snapshot, cfg)
        payload = []
        for node_id in snapshot.node_ids():
            r = fuse(
                node_id,
                results.degree[node_id],
                results.closeness[node_id],
                node_id in results.articulation_points,
                cfg,
            )
            payload.append(
                {
                    "node_id": node_id,
                    "node_type": snapshot.node(node_id).node_type,
                    "degree_score": r.degree_score,
                    "closeness_score": round(r.closeness_score, 6),
                    "is_articulation_point": r.is_articulation_point,
                    "risk_score": r.risk_score,
                    "risk_tier": r.risk_tier,
                    "labels": sorted(r.labels),
                    "excluded": r.excluded,
                    "critical": r.critical,
                }
            )
        _emit(payload, output)
        return 0
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130
    except (IdentigraphError, OSError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
