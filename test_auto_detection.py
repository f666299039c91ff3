#!/usr/bin/env python3
"""
Tests for chart type detection and the one-line insight text.
"""

from src.visualization.auto_detection import detect_chart_type, is_table, render_kind, resolve_chart_type
from src.visualization.insights import generate_insight, table_insight


def test_detect_chart_type_from_question():
    assert detect_chart_type("revenue by region as a pie chart") == "pie"
    assert detect_chart_type("Show a LINE CHART of sales") == "line"
    assert detect_chart_type("sales by product in a donut") == "donut"
    assert detect_chart_type("top customers") is None
    assert detect_chart_type(None) is None


def test_explicit_request_wins():
    assert resolve_chart_type("pie", "revenue as a bar chart", "linechart") == "piechart"
    assert resolve_chart_type("Doughnut", None) == "donutchart"
    assert resolve_chart_type("kpi", None) == "kpi"


def test_question_then_recommendation_then_default():
    assert resolve_chart_type(None, "sales as a line chart", "barchart") == "linechart"
    assert resolve_chart_type(None, "sales by region", "combochart") == "combochart"
    assert resolve_chart_type(None, "sales by region") == "barchart"


def test_render_kind():
    assert render_kind("piechart", "bar") == "pie"
    assert render_kind("donutchart", "bar") == "doughnut"
    assert render_kind("combochart", "bar") == "line"
    assert render_kind("radar", "line") == "line"
    assert render_kind("polar", "bar") == "bar"
    assert render_kind("piechart", "scatter") == "scatter"


def test_is_table():
    assert is_table("Table")
    assert not is_table("pivot-table")
    assert not is_table(None)


def test_generate_insight_names_the_leader():
    text = generate_insight(["Sweden", "Norway", "Denmark"], [600.0, 300.0, 100.0])

    assert text.startswith("Sweden leads with 600 (60% of total).")
    assert "3 items" in text
    assert "total: 1.0K" in text


def test_generate_insight_single_value_and_empty():
    assert generate_insight(["Total"], [1500000.0], "Revenue") == "Total Revenue: 1.5M"
    assert generate_insight([], []) == ""


def test_table_insight():
    table = {"headers": ["A", "B"], "rows": [["1", "2"], ["3", "4"], ["5", "6"]]}

    assert table_insight(table) == "Table with 3 rows and 2 columns."
