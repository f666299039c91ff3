"""
Hypercube data fetch through the engine

Insight Advisor recommendations carry a hypercube definition but no data.
The definition is replayed as a temporary session object and one page of its
cells is read back.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from src.logging import get_logger

from .config import QlikConfig
from .engine import open_app

logger = get_logger('ENGINE')

# Rows beyond this are silently dropped
MAX_FETCH_ROWS = 1000


@dataclass
class ChartData:
    """Cells and column titles of a fetched hypercube."""

    matrix: List[List[Dict[str, Any]]]
    measure_names: List[str]
    dimension_names: List[str] = field(default_factory=list)
    total_rows: int = 0
    total_columns: int = 0
    is_table: bool = False

    @property
    def headers(self) -> List[str]:
        return self.dimension_names + self.measure_names


def simplify_hypercube_def(definition: Dict[str, Any], is_table: bool = False) -> Dict[str, Any]:
    """
    Reduce a recommended hypercube to what the chart needs.

    Tables keep every dimension and measure; charts keep the first dimension
    and all measures, sorted dimension first.
    """
    dimensions = list(definition.get("qDimensions") or [])
    measures = list(definition.get("qMeasures") or [])

    simplified: Dict[str, Any] = {
        "qDimensions": dimensions if is_table else dimensions[:1],
        "qMeasures": measures,
        "qSuppressZero": True,
        "qSuppressMissing": True,
    }
    if not is_table:
        simplified["qInterColumnSortOrder"] = [0, 1]
    return simplified


async def fetch_chart_data(
    config: QlikConfig,
    app_id: str,
    definition: Optional[Dict[str, Any]],
    chart_type: Optional[str] = None,
    connector: Optional[Callable[..., Any]] = None,
) -> ChartData:
    """
    Evaluate a hypercube definition in an app and return its first page.

    Args:
        config: Tenant configuration
        app_id: App holding the data model
        definition: ``qHyperCubeDef`` of a recommendation
        chart_type: Engine chart type; "table" keeps all columns
        connector: WebSocket connector override for tests

    Raises:
        ValueError: If the definition has no dimensions and no measures
        EngineError: If the engine rejects a request
    """
    if not definition or (not definition.get("qDimensions") and not definition.get("qMeasures")):
        raise ValueError("Chart type not supported - no hypercube definition available")

    is_table = (chart_type or "").lower() == "table"
    cube_def = simplify_hypercube_def(definition, is_table)
    logger.info(
        f"hypercube requested | app:{app_id} | dims:{len(cube_def['qDimensions'])} | "
        f"measures:{len(cube_def['qMeasures'])} | table:{is_table}"
    )

    async with open_app(config, app_id, connector=connector) as doc:
        cube = await doc.create_session_object({
            "qInfo": {"qType": "temp-hypercube"},
            "qHyperCubeDef": cube_def,
        })
        layout = await cube.get_layout()
        hypercube = layout.get("qHyperCube")
        if not hypercube:
            raise ValueError("No hypercube in layout")

        size = hypercube.get("qSize") or {}
        total_rows = size.get("qcy") or 0
        total_columns = size.get("qcx") or 0

        result = await cube.call("GetHyperCubeData", "/qHyperCubeDef", [{
            "qTop": 0,
            "qLeft": 0,
            "qWidth": total_columns,
            "qHeight": min(total_rows, MAX_FETCH_ROWS),
        }])
        pages = result.get("qDataPages") or []
        matrix = (pages[0].get("qMatrix") if pages else None) or []

        await doc.destroy_session_object(cube.id)

    if total_rows > MAX_FETCH_ROWS:
        logger.info(f"hypercube truncated | rows:{total_rows} | fetched:{len(matrix)}")
    else:
        logger.debug(f"hypercube fetched | rows:{len(matrix)} | cols:{total_columns}")

    return ChartData(
        matrix=matrix,
        measure_names=[m.get("qFallbackTitle") or "Value" for m in hypercube.get("qMeasureInfo") or []],
        dimension_names=[d.get("qFallbackTitle") or "Dimension" for d in hypercube.get("qDimensionInfo") or []],
        total_rows=total_rows,
        total_columns=total_columns,
        is_table=is_table,
    )
