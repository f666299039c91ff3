"""
One-line insights summarizing a chart series or table.
"""

from typing import Any, Dict, List, Optional, Sequence

from .utils import format_number


def generate_insight(labels: Sequence[str], values: Sequence[float], measure_name: Optional[str] = None) -> str:
    """
    Describe the leading item of a series and the series totals.

    Args:
        labels: Category labels, index-aligned with values
        values: Measure values
        measure_name: Measure title used for single-value series

    Returns:
        e.g. "Sweden leads with 1.2M (34% of total). 12 items, total: 3.5M, avg: 291.7K."
        or an empty string for an empty series
    """
    if not values:
        return ""

    total = sum(values)
    top = max(values)
    top_index = list(values).index(top)

    if len(values) == 1:
        return f"Total {measure_name or 'value'}: {format_number(total)}"

    top_label = labels[top_index] if top_index < len(labels) and labels[top_index] else "Top item"
    share = f"{top / total * 100:.0f}" if total else "0"
    average = total / len(values)

    return (
        f"{top_label} leads with {format_number(top)} ({share}% of total). "
        f"{len(values)} items, total: {format_number(total)}, avg: {format_number(average)}."
    )


def table_insight(table: Dict[str, List[Any]]) -> str:
    rows = table.get("rows") or []
    headers = table.get("headers") or []
    return f"Table with {len(rows)} rows and {len(headers)} columns."
