"""
Data model and selection state of an app, read and changed through the engine.
"""

from typing import Any, Callable, Dict, List, Optional

from src.logging import get_logger

from .config import QlikConfig
from .engine import EngineObject, open_app
from .results import ToolPayload, payload

logger = get_logger('ENGINE')

KEY_TYPES = ("PERFECT_KEY", "PRIMARY_KEY", "ANY_KEY")

# Upper bound of distinct values scanned when matching requested values
SELECT_SCAN_ROWS = 10000

Connector = Optional[Callable[..., Any]]


async def get_app_fields(config: QlikConfig, app_id: str, connector: Connector = None) -> List[Dict[str, Any]]:
    """Tables of the data model with their fields."""
    async with open_app(config, app_id, connector) as doc:
        result = await doc.call("GetTablesAndKeys", {}, {}, 0, True, False)

    tables = [
        {
            "name": table.get("qName"),
            "rows": table.get("qNoOfRows"),
            "isSynthetic": bool(table.get("qIsSynthetic")),
            "fields": [
                {
                    "name": f.get("qName"),
                    "tags": f.get("qTags") or [],
                    "isKey": f.get("qKeyType") in KEY_TYPES,
                    "cardinal": f.get("qnTotalDistinctValues") or 0,
                }
                for f in table.get("qFields") or []
            ],
        }
        for table in result.get("qtr") or []
    ]
    logger.info(f"data model read | app:{app_id} | tables:{len(tables)}")
    return tables


async def fields(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    tables = await get_app_fields(config, app_id, connector)
    total_fields = sum(len(t["fields"]) for t in tables)

    summary = f"Data model: {len(tables)} tables, {total_fields} total fields"
    if tables:
        largest = max(tables, key=lambda t: len(t["fields"]))
        summary += f", largest table: {largest['name']} ({len(largest['fields'])} fields)"

    return payload(
        summary,
        "app-fields",
        appId=app_id,
        tables=[{"name": t["name"], "fields": [f["name"] for f in t["fields"]]} for t in tables],
        totalFields=total_fields,
    )


async def current_selections(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        selection_object = await doc.create_session_object({
            "qInfo": {"qType": "CurrentSelections"},
            "qSelectionObjectDef": {},
        })
        layout = await selection_object.get_layout()
        app_name = await doc.get_app_title(app_id)

    selections = [
        {
            "field": sel.get("qField"),
            "selected": sel.get("qSelected"),
            "total": sel.get("qTotal"),
            "selectedCount": sel.get("qSelectedCount"),
            "isNumeric": sel.get("qIsNum"),
            "stateCounts": sel.get("qStateCounts"),
        }
        for sel in (layout.get("qSelectionObject") or {}).get("qSelections") or []
    ]

    if selections:
        described = ", ".join(f"{s['field']}: {s['selected']}" for s in selections)
    else:
        described = "No active selections"

    return payload(
        f"{app_name}: {described}",
        "app-selections",
        appId=app_id,
        appName=app_name,
        selections=selections,
        selectionCount=len(selections),
    )


async def clear_selections(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        await doc.call("ClearAll")
        app_name = await doc.get_app_title(app_id)

    logger.info(f"selections cleared | app:{app_id}")
    return payload(
        f'Cleared all selections in "{app_name}"',
        "action-success",
        action="clear_selections",
        appId=app_id,
        appName=app_name,
        message="All selections cleared",
    )


async def _select_field_values(doc: EngineObject, field_name: str, values: List[str]) -> Dict[str, Any]:
    field = await doc.get_object_handle("GetField", field_name)
    await field.call("Clear")

    list_object = await doc.create_session_object({
        "qInfo": {"qType": "temp-list"},
        "qListObjectDef": {
            "qDef": {"qFieldDefs": [field_name]},
            "qInitialDataFetch": [{"qTop": 0, "qLeft": 0, "qHeight": SELECT_SCAN_ROWS, "qWidth": 1}],
        },
    })
    layout = await list_object.get_layout()
    pages = (layout.get("qListObject") or {}).get("qDataPages") or []
    matrix = (pages[0].get("qMatrix") if pages else None) or []

    by_text = {}
    for row in matrix:
        cell = row[0] if row else None
        if cell and cell.get("qText") is not None:
            by_text.setdefault(str(cell["qText"]).lower(), cell)

    elem_numbers = []
    found = []
    for requested in values:
        cell = by_text.get(str(requested).lower())
        if cell is not None:
            elem_numbers.append(cell.get("qElemNumber"))
            found.append(cell.get("qText"))

    if elem_numbers:
        await list_object.call("SelectListObjectValues", "/qListObjectDef", elem_numbers, False)
    await doc.destroy_session_object(list_object.id)

    logger.info(f"values selected | field:{field_name} | requested:{len(values)} | found:{len(found)}")
    return {
        "field": field_name,
        "selectedCount": len(elem_numbers),
        "requestedValues": list(values),
        "foundValues": found,
    }


async def select(config: QlikConfig, app_id: str, selections: List[Dict[str, Any]], connector: Connector = None) -> ToolPayload:
    """
    Select values in one or more fields.

    Each entry is ``{"field": name, "values": [...]}``; values match the field's
    display text case-insensitively and entries without values are skipped.
    Previous selections in each touched field are cleared first.
    """
    results = []
    async with open_app(config, app_id, connector) as doc:
        for selection in selections:
            values = selection.get("values") or []
            if values:
                results.append(await _select_field_values(doc, selection["field"], values))

    described = ", ".join(f"{r['field']}: {r['selectedCount']} values" for r in results)
    return payload(
        f"Applied selections: {described}",
        "action-success",
        action="select",
        appId=app_id,
        selections=results,
    )


async def field_values(
    config: QlikConfig,
    app_id: str,
    field_name: str,
    search_text: Optional[str] = None,
    limit: int = 100,
    connector: Connector = None,
) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        list_object = await doc.create_session_object({
            "qInfo": {"qType": "FieldValueList"},
            "qListObjectDef": {
                "qDef": {"qFieldDefs": [field_name]},
                "qInitialDataFetch": [{"qTop": 0, "qLeft": 0, "qWidth": 1, "qHeight": limit}],
            },
        })
        if search_text:
            await list_object.call("SearchListObjectFor", "/qListObjectDef", search_text)
        layout = await list_object.get_layout()

    list_layout = layout.get("qListObject") or {}
    pages = list_layout.get("qDataPages") or []
    matrix = (pages[0].get("qMatrix") if pages else None) or []
    values = []
    for row in matrix:
        cell = (row[0] if row else None) or {}
        values.append({
            "text": cell.get("qText") or "",
            "num": cell.get("qNum"),
            "state": cell.get("qState"),
            "elemNumber": cell.get("qElemNumber"),
        })
    total_count = (list_layout.get("qDimensionInfo") or {}).get("qCardinal") or len(values)

    sample = ", ".join(v["text"] for v in values[:5])
    summary = f'Field "{field_name}" has {total_count} unique values'
    if search_text:
        summary += f' (filtered by "{search_text}")'
    summary += f". Sample: {sample}{'...' if len(values) > 5 else ''}"

    return payload(
        summary,
        "field-values",
        appId=app_id,
        fieldName=field_name,
        values=values,
        totalCount=total_count,
        searchText=search_text,
        summary=summary,
    )
