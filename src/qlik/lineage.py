"""
Lineage of apps and datasets.

App ids (UUIDs) are answered from the engine data model; dataset ids are
resolved to their secure QRI and looked up in the lineage-graphs API, whose
graph is then grouped into tiers.
"""

import re
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

from src.logging import get_logger
from src.visualization.lineage import classify, parse_lineage_graph

from .app_objects import get_connections
from .client import QlikAPIError, QlikClient
from .config import QlikConfig
from .datasets import get_dataset
from .engine import EngineError, open_app
from .results import ToolPayload, error_payload, payload

logger = get_logger('LINEAGE')

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

DIRECTIONS = ("upstream", "downstream", "both")
DEFAULT_LEVELS = 5


def is_app_id(value: Optional[str]) -> bool:
    return bool(value and UUID_PATTERN.match(value))


def lineage_params(direction: str = "both", levels: int = DEFAULT_LEVELS) -> Dict[str, Any]:
    """Query parameters of a lineage-graphs request; -1 levels means unlimited."""
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {', '.join(DIRECTIONS)}, got {direction}")
    up = levels if direction in ("upstream", "both") else 0
    down = levels if direction in ("downstream", "both") else 0
    return {"up": up, "down": down, "level": "resource", "collapse": "false"}


async def fetch_lineage_graph(client: QlikClient, qri: str, direction: str = "both",
                              levels: int = DEFAULT_LEVELS) -> Dict[str, Any]:
    result = await client.request(
        f"/lineage-graphs/nodes/{quote(qri, safe='')}",
        params=lineage_params(direction, levels),
    )
    graph = result.get("graph") or {}
    logger.info(
        f"graph fetched | qri:{qri} | direction:{direction} | levels:{levels} | "
        f"nodes:{len(graph.get('nodes') or {})} | edges:{len(graph.get('edges') or [])}"
    )
    return result


async def app_lineage(config: QlikConfig, app_id: str, connector: Optional[Callable[..., Any]] = None) -> ToolPayload:
    """Tables of the app's data model and the connections it loads from."""
    async with open_app(config, app_id, connector) as doc:
        tables_and_keys = await doc.call("GetTablesAndKeys", {}, {}, 0, True, False)

        sources = []
        try:
            for conn in await get_connections(doc):
                sources.append({
                    "type": conn.get("qType") or "Connection",
                    "name": conn.get("qName"),
                    "connectionString": conn.get("qConnectionString"),
                    "provider": conn.get("qDriverName"),
                })
        except EngineError as e:
            logger.warning(f"connections unavailable | app:{app_id} | {e}")

    tables = [
        {
            "name": table.get("qName"),
            "rows": table.get("qNoOfRows"),
            "fields": len(table.get("qFields") or []),
            "keyFields": len(table.get("qKeyFields") or []),
            "isSynthetic": bool(table.get("qIsSynthetic")),
        }
        for table in tables_and_keys.get("qtr") or []
    ]
    logger.info(f"app lineage | app:{app_id} | tables:{len(tables)} | sources:{len(sources)}")

    return payload(
        f"App lineage: {len(sources)} data sources found, {len(tables)} tables",
        "app-lineage",
        appId=app_id,
        sources=sources,
        internal=[],
        tables=tables,
    )


async def lineage(
    client: QlikClient,
    node_id: str,
    app_id: Optional[str] = None,
    direction: str = "both",
    levels: int = DEFAULT_LEVELS,
    connector: Optional[Callable[..., Any]] = None,
) -> ToolPayload:
    """
    Lineage of an app, a dataset item or a QRI.

    Args:
        client: REST client; its config also opens engine sessions
        node_id: App id, dataset item id, or a ``qri:`` identifier
        app_id: Explicit app id, takes precedence when it is a UUID
        direction: "upstream", "downstream" or "both"
        levels: Levels to traverse in each requested direction
    """
    target_app = app_id or node_id
    if is_app_id(target_app):
        logger.debug(f"app id detected | app:{target_app}")
        return await app_lineage(client.config, target_app, connector)

    qri = node_id
    if not node_id.startswith("qri:"):
        try:
            dataset = await get_dataset(client, node_id)
        except QlikAPIError as e:
            logger.warning(f"dataset lookup failed | dataset:{node_id} | {e}")
            return error_payload(
                str(e),
                summary=f"Error: Could not fetch dataset details for {node_id}: {e}",
            )
        qri = dataset.get("secureQri")
        if not qri:
            return error_payload(
                "Dataset missing secureQri",
                summary=f"Error: Dataset {node_id} does not have a secureQri for lineage lookup",
            )
        logger.debug(f"secure qri resolved | dataset:{node_id} | qri:{qri}")

    result = await fetch_lineage_graph(client, qri, direction, levels)
    nodes, edges = parse_lineage_graph(result)
    groups = classify(nodes, edges)

    if groups.standalone:
        summary = "Lineage: resource has no upstream or downstream connections"
    else:
        summary = (
            f"Lineage: {len(groups.sources)} sources, {len(groups.processors)} processors, "
            f"{len(groups.outputs)} outputs"
        )

    return payload(
        summary,
        "lineage",
        qri=qri,
        direction=direction,
        levels=levels,
        graph=result.get("graph") or {},
        nodeCount=len(nodes),
        edgeCount=len(edges),
        **groups.to_dict(),
    )
