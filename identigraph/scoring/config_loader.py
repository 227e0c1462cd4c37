"""
Analytics configuration loader: supports YAML files, dicts, AnalyticsConfig instances, and defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from identigraph.scoring.data_model import (
    AnalyticsConfig,
    ClosenessThresholds,
    DegreeThresholds,
    RiskTriggers,
    RiskWeights,
)

# camelCase names accepted as aliases of the snake_case keys
_ALIASES = {
    "degreeThresholds": "degree_thresholds",
    "closenessThresholds": "closeness_thresholds",
    "riskWeights": "risk_weights",
    "riskTriggers": "risk_triggers",
    "riskTierBands": "risk_tier_bands",
    "maxNodesForClosenessComputation": "max_nodes_for_closeness_computation",
    "edgeTypeFilters": "edge_type_filters",
    "labeledNodeTypes": "labeled_node_types",
    "maxApplyRetries": "max_apply_retries",
    "parallelEngines": "parallel_engines",
    "superConnector": "super_connector",
    "informationHub": "information_hub",
}

_KNOWN_KEYS = frozenset(
    {
        "degree_thresholds",
        "closeness_thresholds",
        "risk_weights",
        "risk_triggers",
        "risk_tier_bands",
        "max_nodes_for_closeness_computation",
        "edge_type_filters",
        "labeled_node_types",
        "max_apply_retries",
        "parallel_engines",
    }
)


def default_config() -> AnalyticsConfig:
    """
    Return the default configuration.

    Returns:
        AnalyticsConfig with degree thresholds 5/10, closeness thresholds 0.6/0.8,
        risk weights 3/3/2, triggers closeness > 0.6 and degree > 50,
        tier bands (2, 3, 5), closeness ceiling 10000 nodes.
    """
    return AnalyticsConfig()


def load_config(
    source: AnalyticsConfig | str | Path | dict | None,
) -> AnalyticsConfig:
    """
    Load an AnalyticsConfig from various sources.

    Args:
        source: Can be:
            - AnalyticsConfig instance: returned as-is
            - str or Path: treated as YAML file path
            - dict: constructed directly from dict keys
            - None: returns default_config()

    Returns:
        AnalyticsConfig instance

    Raises:
        FileNotFoundError: If source is a file path that doesn't exist
        ValueError: If the YAML is invalid, or keys are unknown or have invalid values
    """
    if source is None:
        return default_config()

    if isinstance(source, AnalyticsConfig):
        return source

    if isinstance(source, (str, Path)):
        return _load_from_yaml_file(source)

    if isinstance(source, dict):
        return _load_from_dict(source)

    raise TypeError(
        f"Unsupported source type for load_config: {type(source).__name__}"
    )


def _load_from_yaml_file(path: str | Path) -> AnalyticsConfig:
    """Load AnalyticsConfig from a YAML file."""
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Config file not found: {file_path}")

    try:
        data = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML file {file_path}: {e}") from e

    if data is None:
        return default_config()
    if not isinstance(data, dict):
        raise ValueError(f"YAML file {file_path}: expected dict, got {type(data).__name__}")

    # Either root-level keys or nested under an "identigraph" section
    if "identigraph" in data:
        section = data["identigraph"]
        if not isinstance(section, dict):
            raise ValueError(f"YAML file {file_path}: 'identigraph' must be a dict")
        return _load_from_dict(section)
    return _load_from_dict(data)


def _normalize(data: dict) -> dict:
    return {_ALIASES.get(k, k): v for k, v in data.items()}


def _number(section: str, key: str, value: Any, *, integer: bool = False) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(
            f"Config '{section}.{key}' must be a number, got {type(value).__name__}"
        )
    if value < 0:
        raise ValueError(f"Config '{section}.{key}' must be non-negative, got {value}")
    if integer:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Config '{section}.{key}' must be an integer, got {value}")
        return int(value)
    return float(value)


def _section(data: dict, name: str, cls: type, integer_keys: frozenset[str]) -> Any:
    raw = data.get(name)
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ValueError(f"Config '{name}' must be a dict, got {type(raw).__name__}")
    defaults = cls()
    kwargs = {}
    for key, value in _normalize(raw).items():
        if not hasattr(defaults, key):
            raise ValueError(f"Unknown key '{name}.{key}'")
        kwargs[key] = _number(name, key, value, integer=key in integer_keys)
    return cls(**kwargs)


def _load_from_dict(data: dict) -> AnalyticsConfig:
    """
    Construct AnalyticsConfig from a dict.

    Missing sections fall back to their defaults; unknown keys are rejected.
    """
    data = _normalize(data)
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise ValueError(f"Unknown config keys: {', '.join(unknown)}")

    kwargs: dict[str, Any] = {
        "degree_thresholds": _section(
            data, "degree_thresholds", DegreeThresholds, frozenset({"monitor", "super_connector"})
        ),
        "closeness_thresholds": _section(
            data, "closeness_thresholds", ClosenessThresholds, frozenset()
        ),
        "risk_weights": _section(
            data, "risk_weights", RiskWeights, frozenset()
        ),
        "risk_triggers": _section(data, "risk_triggers", RiskTriggers, frozenset({"degree"})),
    }

    if "risk_tier_bands" in data:
        bands = data["risk_tier_bands"]
        if not isinstance(bands, (list, tuple)) or len(bands) != 3:
            raise ValueError("Config 'risk_tier_bands' must be a list of three integers")
        kwargs["risk_tier_bands"] = tuple(
            _number("risk_tier_bands", str(i), b, integer=True) for i, b in enumerate(bands)
        )

    if "max_nodes_for_closeness_computation" in data:
        kwargs["max_nodes_for_closeness_computation"] = _number(
            "config", "max_nodes_for_closeness_computation",
            data["max_nodes_for_closeness_computation"], integer=True,
        )

    if "max_apply_retries" in data:
        kwargs["max_apply_retries"] = _number(
            "config", "max_apply_retries", data["max_apply_retries"], integer=True
        )

    if "parallel_engines" in data:
        if not isinstance(data["parallel_engines"], bool):
            raise ValueError("Config 'parallel_engines' must be a boolean")
        kwargs["parallel_engines"] = data["parallel_engines"]

    filters = data.get("edge_type_filters")
    if filters is not None:
        if not isinstance(filters, dict):
            raise ValueError("Config 'edge_type_filters' must be a dict of node type -> edge types")
        parsed: dict[str, frozenset[str]] = {}
        for node_type, edge_types in filters.items():
            if not isinstance(edge_types, (list, tuple, set, frozenset)):
                raise ValueError(
                    f"Config 'edge_type_filters.{node_type}' must be a list of edge types"
                )
            parsed[str(node_type)] = frozenset(str(t) for t in edge_types)
        kwargs["edge_type_filters"] = parsed

    labeled = data.get("labeled_node_types")
    if labeled is not None:
        if not isinstance(labeled, (list, tuple, set, frozenset)):
            raise ValueError("Config 'labeled_node_types' must be a list of node types")
        kwargs["labeled_node_types"] = frozenset(str(t) for t in labeled)

    return AnalyticsConfig(**kwargs)
