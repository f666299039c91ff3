#!/usr/bin/env python3
"""
Test script for chart rendering.
Renders each chart kind from hypercube series and checks the JPEG output.
"""

import io

import pytest
from PIL import Image

from src.visualization import ChartGenerator
from src.visualization.hypercube import Series, transform
from src.visualization.utils import format_axis_labels, format_number, optimize_image_size


def matrix(count, secondary=False):
    rows = []
    for i in range(count):
        row = [{"qText": f"Region {i}"}, {"qText": str(i * 10), "qNum": i * 10}]
        if secondary:
            row.append({"qText": str(i), "qNum": i})
        rows.append(row)
    return rows


def assert_jpeg(image_bytes):
    image = Image.open(io.BytesIO(image_bytes))
    assert image.format == "JPEG"
    assert image.size[0] > 100 and image.size[1] > 100


@pytest.mark.parametrize("hint,chart_type", [
    ("barchart", "barchart"),
    ("linechart", "linechart"),
    ("barchart", "piechart"),
    ("barchart", "donutchart"),
])
def test_renders_chart_kinds(hint, chart_type):
    series = transform(matrix(12), hint)

    image_bytes = ChartGenerator().render(series, chart_type, "Sales by Region", ["Sales"])

    assert_jpeg(image_bytes)


def test_renders_scatter_with_clean_theme():
    series = transform(matrix(40, secondary=True), "scatterplot")

    image_bytes = ChartGenerator(theme="clean").render(series, "scatterplot", "", ["Sales", "Margin"])

    assert series.geometry == "scatter"
    assert_jpeg(image_bytes)


def test_empty_series_raises():
    with pytest.raises(ValueError):
        ChartGenerator().render(Series([], [], None, "bar", 0), "barchart")


def test_pie_without_positive_values_raises():
    series = Series(["a", "b"], [0.0, -5.0], None, "bar", 2)

    with pytest.raises(ValueError):
        ChartGenerator().render(series, "piechart")


def test_format_helpers():
    assert format_number(1234567) == "1.2M"
    assert format_number(4500) == "4.5K"
    assert format_number(42) == "42"
    assert format_axis_labels(["short", "a very long region name indeed"], max_length=10) == ["short", "a very lo…"]


def test_optimize_keeps_small_images():
    data = b"\xff\xd8small"

    assert optimize_image_size(data) == data
