"""Connectivity engines: degree, articulation points, closeness, and the GraphAnalyzer."""

from identigraph.analysis.analyzer import EngineResults, GraphAnalyzer, analyze
from identigraph.analysis.articulation import run_articulation_points
from identigraph.analysis.closeness import run_closeness
from identigraph.analysis.degree import DegreeFilter, run_degree, run_filtered_degree

__all__ = [
    "DegreeFilter",
    "EngineResults",
    "GraphAnalyzer",
    "analyze",
    "run_articulation_points",
    "run_closeness",
    "run_degree",
    "run_filtered_degree",
]
