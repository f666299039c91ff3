"""
Qlik Visualization Module

Turns engine results into display-ready structures: lineage tiers, sampled
chart series from hypercubes, insight text and JPEG chart images.
"""

from .chart_generator import ChartGenerator
from .themes import QLIK_THEME, CLEAN_THEME
from .auto_detection import CHART_TYPE_MAP, detect_chart_type, resolve_chart_type, render_kind
from .hypercube import ChartGeometry, Series, resolve_geometry, transform, table_from_matrix
from .insights import generate_insight, table_insight
from .lineage import LineageNode, LineageEdge, LineageGroups, classify, parse_lineage_graph, node_kind
from .utils import format_number

__all__ = [
    'ChartGenerator',
    'QLIK_THEME',
    'CLEAN_THEME',
    'CHART_TYPE_MAP',
    'detect_chart_type',
    'resolve_chart_type',
    'render_kind',
    'ChartGeometry',
    'Series',
    'resolve_geometry',
    'transform',
    'table_from_matrix',
    'generate_insight',
    'table_insight',
    'LineageNode',
    'LineageEdge',
    'LineageGroups',
    'classify',
    'parse_lineage_graph',
    'node_kind',
    'format_number'
]
