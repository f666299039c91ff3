"""
Hypercube to chart series transformation.

Turns the row-major cell matrix the engine returns for a hypercube (first
column the dimension, second the primary measure, optional third a secondary
measure) into a sampled label/value series ready for a chart renderer.
"""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.logging import get_logger

logger = get_logger('INSIGHT')

BAR_CAP = 30
LINE_CAP = 100
DEFAULT_CAP = 50

BAR_WORDS = ("bar", "column", "histogram")
LINE_WORDS = ("line", "trend", "area")
SCATTER_WORDS = ("scatter", "point")

_NON_NUMERIC = re.compile(r"[^\d.-]")
_LEADING_FLOAT = re.compile(r"-?(\d+(\.\d*)?|\.\d+)")


@dataclass(frozen=True)
class ChartGeometry:
    """
    Keyword families found in a chart type hint.

    The flags are independent; a hint such as "barlinecombo" is both bar-like
    and line-like.
    """

    barlike: bool = False
    linelike: bool = False
    scatterlike: bool = False

    @property
    def cap(self) -> int:
        if self.barlike:
            return BAR_CAP
        if self.linelike:
            return LINE_CAP
        return DEFAULT_CAP

    def final(self, has_secondary: bool) -> str:
        """Rendering geometry; scatter needs a secondary measure and otherwise falls back to line."""
        if self.scatterlike and has_secondary:
            return "scatter"
        if self.linelike or self.scatterlike:
            return "line"
        return "bar"


def resolve_geometry(hint: Optional[str]) -> ChartGeometry:
    """Case-insensitive keyword match of a free-form chart type hint."""
    text = (hint or "").lower()
    return ChartGeometry(
        barlike=any(word in text for word in BAR_WORDS),
        linelike=any(word in text for word in LINE_WORDS),
        scatterlike=any(word in text for word in SCATTER_WORDS),
    )


@dataclass
class Series:
    """A chart-ready series extracted from a hypercube."""

    labels: List[str]
    values: List[float]
    secondary_values: Optional[List[float]]
    geometry: str
    row_count: int
    sampled: bool = False

    def to_payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"labels": self.labels, "values": self.values}
        if self.secondary_values is not None:
            data["values2"] = self.secondary_values
        return data


def parse_text_number(text: Any) -> float:
    """
    Parse a display string such as "$1,234.50" or "12%".

    Every character other than digits, '.' and '-' is stripped and the longest
    leading float is read. Unparsable text yields 0.
    """
    if text is None:
        return 0.0
    cleaned = _NON_NUMERIC.sub("", str(text))
    match = _LEADING_FLOAT.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def _numeric(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return float(value)


def parse_value(cell: Any) -> float:
    """
    Numeric value of a measure cell.

    ``qNum`` is used when it is a finite number (the engine sends NaN, or the
    string "NaN", for text-only cells); otherwise ``qText`` is parsed.
    A missing cell is 0.
    """
    if not isinstance(cell, dict):
        return 0.0
    number = _numeric(cell.get("qNum"))
    if number is not None:
        return number
    return parse_text_number(cell.get("qText"))


def _label(cell: Any) -> Optional[str]:
    if not isinstance(cell, dict):
        return None
    text = cell.get("qText")
    if text is None or text == "":
        return None
    return str(text)


def extract_series(matrix: Optional[Sequence[Any]]) -> Tuple[List[str], List[float], Optional[List[float]]]:
    """
    Pull labels and measure values out of a cell matrix.

    Rows shorter than two cells or without label text are dropped whole. The
    secondary series exists when any row carries a third cell; kept rows
    missing it contribute 0.
    """
    rows = [row for row in (matrix or []) if isinstance(row, (list, tuple))]
    has_secondary = any(len(row) > 2 for row in rows)

    labels: List[str] = []
    values: List[float] = []
    secondary: List[float] = []

    for row in rows:
        if len(row) < 2:
            continue
        label = _label(row[0])
        if label is None:
            continue
        labels.append(label)
        values.append(parse_value(row[1]))
        if has_secondary:
            secondary.append(parse_value(row[2]) if len(row) > 2 else 0.0)

    return labels, values, (secondary if has_secondary else None)


def _sample(labels: List[str], values: List[float], secondary: Optional[List[float]],
            geometry: ChartGeometry) -> Tuple[List[str], List[float], Optional[List[float]]]:
    cap = geometry.cap
    if geometry.barlike:
        # Top N by primary value; sorted() is stable so ties keep row order
        indexes = sorted(range(len(labels)), key=lambda i: values[i], reverse=True)[:cap]
    else:
        stride = math.ceil(len(labels) / cap)
        indexes = list(range(0, len(labels), stride))

    return (
        [labels[i] for i in indexes],
        [values[i] for i in indexes],
        [secondary[i] for i in indexes] if secondary is not None else None,
    )


def transform(matrix: Optional[Sequence[Any]], hint: Optional[str] = None) -> Series:
    """
    Convert a hypercube cell matrix into a chart series.

    Sampling applies when the row count exceeds the geometry cap and the hint
    is not scatter-like: bar-like hints keep the top rows by value, anything
    else keeps every ``ceil(n / cap)``-th row in order.

    Args:
        matrix: Rows of engine cells (``qText``/``qNum`` dicts)
        hint: Chart type hint, e.g. "barchart", "linechart", "scatterplot"

    Returns:
        Series tagged with the final geometry ("bar", "line" or "scatter")
    """
    geometry = resolve_geometry(hint)
    labels, values, secondary = extract_series(matrix)
    row_count = len(labels)

    sampled = False
    if row_count > geometry.cap and not geometry.scatterlike:
        labels, values, secondary = _sample(labels, values, secondary, geometry)
        sampled = True
        logger.debug(f"series sampled | rows:{row_count} | kept:{len(labels)} | hint:{hint}")

    return Series(
        labels=labels,
        values=values,
        secondary_values=secondary,
        geometry=geometry.final(secondary is not None),
        row_count=row_count,
        sampled=sampled,
    )


def table_from_matrix(matrix: Optional[Sequence[Any]], headers: Sequence[str]) -> Dict[str, Any]:
    """Render a cell matrix as a plain table of display strings."""
    rows = []
    for row in matrix or []:
        if not isinstance(row, (list, tuple)):
            continue
        rows.append([
            str(cell.get("qText", "")) if isinstance(cell, dict) else ""
            for cell in row
        ])
    return {"headers": list(headers), "rows": rows}
