"""
Auto-detection of the chart type a question asks for.
"""

from typing import Optional

# Phrases checked in order; more specific requests first
CHART_PHRASES = (
    ('polar', ('polar',)),
    ('radar', ('radar',)),
    ('pie', ('pie',)),
    ('bar', ('bar chart', 'bar graph')),
    ('line', ('line chart', 'line graph')),
    ('donut', ('donut', 'doughnut')),
    ('scatter', ('scatter',)),
    ('area', ('area chart', 'area graph')),
    ('treemap', ('treemap',)),
    ('table', ('table',)),
)

# Short chart names to engine visualization types
CHART_TYPE_MAP = {
    'pie': 'piechart',
    'bar': 'barchart',
    'line': 'linechart',
    'donut': 'donutchart',
    'doughnut': 'donutchart',
    'area': 'areachart',
    'treemap': 'treemap',
    'scatter': 'scatterplot',
    'combo': 'combochart',
    'table': 'table',
    'polar': 'polarArea',
    'radar': 'radar',
}

DEFAULT_CHART_TYPE = 'barchart'


def detect_chart_type(text: Optional[str]) -> Optional[str]:
    """
    Find an explicit chart request in a natural language question.

    Args:
        text: The question, e.g. "revenue by region as a pie chart"

    Returns:
        Short chart name ("pie", "bar", ...) or None when nothing is requested
    """
    lowered = (text or '').lower()
    for chart, phrases in CHART_PHRASES:
        if any(phrase in lowered for phrase in phrases):
            return chart
    return None


def resolve_chart_type(requested: Optional[str], text: Optional[str],
                       recommended: Optional[str] = None) -> str:
    """
    Engine chart type for an insight.

    An explicit request wins, then a chart named in the question, then the
    recommendation's own type, then "barchart". Short names are mapped
    through CHART_TYPE_MAP; unknown names pass through unchanged.
    """
    chart = (requested or '').lower() or detect_chart_type(text)
    if chart:
        return CHART_TYPE_MAP.get(chart, chart)
    return recommended or DEFAULT_CHART_TYPE


def render_kind(chart_type: Optional[str], geometry: str) -> str:
    """
    Matplotlib rendering technique for a chart type and series geometry.

    Returns one of "scatter", "line", "pie", "doughnut" or "bar".
    """
    text = (chart_type or '').lower()
    if geometry == 'scatter':
        return 'scatter'
    if any(word in text for word in ('line', 'trend', 'combo', 'area')):
        return 'line'
    if 'pie' in text:
        return 'pie'
    if any(word in text for word in ('donut', 'ring', 'treemap', 'tree')):
        return 'doughnut'
    if geometry == 'line':
        return 'line'
    return 'bar'


def is_table(chart_type: Optional[str]) -> bool:
    return (chart_type or '').lower() == 'table'
