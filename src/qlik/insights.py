"""
Insight Advisor: natural language question to a chart with real data.

The recommend endpoint picks an analysis and its hypercube definition; the
data itself is then evaluated through the engine and sampled for display.
Engine failures do not fail the tool: the recommendation is returned with
empty series and the error message.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

from websockets.exceptions import WebSocketException

from src.logging import get_logger
from src.telemetry.metrics import record_error
from src.visualization.auto_detection import resolve_chart_type
from src.visualization.chart_generator import ChartGenerator
from src.visualization.hypercube import extract_series, table_from_matrix, transform
from src.visualization.insights import generate_insight, table_insight

from .client import QlikClient
from .engine import EngineError
from .hypercubes import fetch_chart_data
from .results import ToolPayload, error_payload, payload

logger = get_logger('INSIGHT')


async def recommend(client: QlikClient, app_id: str, text: str) -> List[Dict[str, Any]]:
    """Recommended analyses for a question, best first."""
    result = await client.request(
        f"/apps/{app_id}/insight-analyses/actions/recommend",
        method="POST",
        json_data={"text": text},
    )
    return list(result.get("recAnalyses") or (result.get("data") or {}).get("recAnalyses") or [])


async def insight(
    client: QlikClient,
    app_id: str,
    text: str,
    chart_type: Optional[str] = None,
    render_image: bool = False,
    connector: Optional[Callable[..., Any]] = None,
) -> ToolPayload:
    """
    Answer a question with the top recommendation's chart.

    Args:
        client: REST client; its config also opens the engine session
        app_id: App to analyze
        text: Natural language question
        chart_type: Explicit chart request ("pie", "bar", "line", ...)
        render_image: Attach a JPEG rendering of the chart
    """
    recommendations = await recommend(client, app_id, text)
    if not recommendations:
        return error_payload("No insights found for this question", summary="No insights found")

    rec = recommendations[0]
    options = rec.get("options") or {}
    definition = options.get("qHyperCubeDef") or rec.get("qHyperCubeDef")
    resolved_type = resolve_chart_type(chart_type, text, rec.get("chartType"))
    title = options.get("title") or (rec.get("analysis") or {}).get("title") or text
    app_link = f"{client.config.base_url}/sense/app/{app_id}/insight-advisor"
    logger.info(f"recommendation chosen | app:{app_id} | chart:{resolved_type} | title:{title}")

    try:
        data = await fetch_chart_data(client.config, app_id, definition, resolved_type, connector=connector)
    except (EngineError, WebSocketException, ValueError, OSError, asyncio.TimeoutError) as e:
        logger.warning(f"chart data unavailable | app:{app_id} | {type(e).__name__}: {e}")
        record_error(type(e).__name__, "insight_chart_data", app_id=app_id)
        return payload(
            f"Chart recommendation: {title}",
            "chart",
            chartType=resolved_type,
            title=title,
            labels=[],
            values=[],
            error=str(e),
            question=text,
            appLink=app_link,
        )

    if data.is_table:
        table = table_from_matrix(data.matrix, data.headers)
        summary_text = table_insight(table)
        return payload(
            f"{title}\n\nInsight: {summary_text}",
            "chart",
            chartType=resolved_type,
            title=title,
            labels=[],
            values=[],
            tableData=table,
            measureNames=data.measure_names,
            question=text,
            insight=summary_text,
            appLink=app_link,
        )

    labels, values, _ = extract_series(data.matrix)
    summary_text = generate_insight(labels, values, data.measure_names[0] if data.measure_names else None)
    series = transform(data.matrix, resolved_type)

    result = payload(
        f"{title}\n\nInsight: {summary_text}",
        "chart",
        chartType=resolved_type,
        title=title,
        geometry=series.geometry,
        measureNames=data.measure_names,
        totalRows=data.total_rows,
        sampled=series.sampled,
        question=text,
        insight=summary_text,
        appLink=app_link,
        **series.to_payload(),
    )

    if render_image and series.labels:
        try:
            result.image = ChartGenerator().render(series, resolved_type, title, data.measure_names)
        except ValueError as e:
            logger.warning(f"chart not rendered | app:{app_id} | {e}")

    return result
