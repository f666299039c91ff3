"""
App objects read through the engine: sheets, master items, bookmarks,
variables, stories, load script and connections.
"""

from collections import Counter
from typing import Any, Callable, Dict, List, Optional

from src.logging import get_logger

from .config import QlikConfig
from .engine import EngineError, list_app_objects, open_app
from .results import ToolPayload, payload

logger = get_logger('ENGINE')

Connector = Optional[Callable[..., Any]]

SHEET_LIST_DEF = {
    "qType": "sheet",
    "qData": {
        "title": "/qMetaDef/title",
        "description": "/qMetaDef/description",
        "rank": "/rank",
        "thumbnail": "/thumbnail",
    },
}

DIMENSION_LIST_DEF = {
    "qType": "dimension",
    "qData": {
        "title": "/qMetaDef/title",
        "description": "/qMetaDef/description",
        "tags": "/qMetaDef/tags",
        "grouping": "/qDim/qGrouping",
        "fieldDefs": "/qDim/qFieldDefs",
    },
}

MEASURE_LIST_DEF = {
    "qType": "measure",
    "qData": {
        "title": "/qMetaDef/title",
        "description": "/qMetaDef/description",
        "tags": "/qMetaDef/tags",
        "expression": "/qMeasure/qDef",
    },
}

BOOKMARK_LIST_DEF = {
    "qType": "bookmark",
    "qData": {
        "title": "/qMetaDef/title",
        "description": "/qMetaDef/description",
        "sheetId": "/sheetId",
        "selectionFields": "/qBookmark/qStateData/0/qFieldItems/*/qDef/qName",
    },
}

VARIABLE_LIST_DEF = {"qType": "variable", "qData": {"tags": "/tags"}}

STORY_LIST_DEF = {
    "qType": "story",
    "qData": {
        "title": "/qMetaDef/title",
        "description": "/qMetaDef/description",
        "thumbnail": "/thumbnail",
    },
}


def _item_id(item: Dict[str, Any]) -> Optional[str]:
    return (item.get("qInfo") or {}).get("qId")


def _item_title(item: Dict[str, Any]) -> str:
    return (item.get("qData") or {}).get("title") or (item.get("qMeta") or {}).get("title") or "Untitled"


def _preview(titles: List[str], limit: int) -> str:
    text = ", ".join(titles[:limit])
    return f"{text}..." if len(titles) > limit else text


async def _read_list(config: QlikConfig, app_id: str, info_type: str, list_key: str,
                     definition: Dict[str, Any], connector: Connector) -> List[Dict[str, Any]]:
    async with open_app(config, app_id, connector) as doc:
        items = await list_app_objects(doc, info_type, list_key, definition)
    logger.debug(f"list read | app:{app_id} | type:{info_type} | items:{len(items)}")
    return items


async def list_sheets(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "SheetList", "qAppObjectListDef", SHEET_LIST_DEF, connector)
    sheets = []
    for item in items:
        data = item.get("qData") or {}
        thumbnail = ((data.get("thumbnail") or {}).get("qStaticContentUrl") or {}).get("qUrl")
        sheets.append({
            "id": _item_id(item),
            "title": _item_title(item),
            "description": data.get("description") or "",
            "rank": data.get("rank") or 0,
            "thumbnail": thumbnail or None,
        })

    summary = f"Found {len(sheets)} sheets: {_preview([s['title'] for s in sheets], 3)}"
    return payload(summary, "sheets", appId=app_id, sheets=sheets, summary=summary, tenantUrl=config.base_url)


async def sheet_details(config: QlikConfig, app_id: str, sheet_id: str, connector: Connector = None) -> ToolPayload:
    """Sheet title and the objects placed on it, with each object's own title."""
    async with open_app(config, app_id, connector) as doc:
        sheet = await doc.get_object_handle("GetObject", sheet_id)
        layout = await sheet.get_layout()

        objects = []
        for cell in layout.get("cells") or []:
            name = cell.get("name")
            title = name
            try:
                child = await doc.get_object_handle("GetObject", name)
                child_layout = await child.get_layout()
                title = child_layout.get("title") or (child_layout.get("qMeta") or {}).get("title") or name
            except EngineError as e:
                logger.debug(f"object title unavailable | object:{name} | {e}")
            objects.append({
                "id": name,
                "type": cell.get("type"),
                "title": title,
                "col": cell.get("col"),
                "row": cell.get("row"),
                "colspan": cell.get("colspan"),
                "rowspan": cell.get("rowspan"),
            })

    meta = layout.get("qMeta") or {}
    title = meta.get("title") or layout.get("title") or "Sheet"
    counts = Counter(obj["type"] for obj in objects)
    breakdown = ", ".join(f"{count} {kind}" for kind, count in counts.items())

    return payload(
        f'Sheet "{title}" has {len(objects)} objects: {breakdown}',
        "sheet-detail",
        appId=app_id,
        sheetId=sheet_id,
        tenantUrl=config.base_url,
        id=sheet_id,
        title=title,
        description=meta.get("description") or "",
        objects=objects,
    )


async def master_dimensions(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "DimensionList", "qDimensionListDef", DIMENSION_LIST_DEF, connector)
    dimensions = []
    for item in items:
        data = item.get("qData") or {}
        dimensions.append({
            "id": _item_id(item),
            "title": _item_title(item),
            "description": data.get("description") or "",
            "tags": data.get("tags") or [],
            "fields": data.get("fieldDefs") or [],
            "grouping": data.get("grouping"),
        })

    summary = f"Found {len(dimensions)} master dimensions: {_preview([d['title'] for d in dimensions], 5)}"
    return payload(summary, "master-dimensions", appId=app_id, dimensions=dimensions, summary=summary)


async def master_measures(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "MeasureList", "qMeasureListDef", MEASURE_LIST_DEF, connector)
    measures = []
    for item in items:
        data = item.get("qData") or {}
        measures.append({
            "id": _item_id(item),
            "title": _item_title(item),
            "description": data.get("description") or "",
            "tags": data.get("tags") or [],
            "expression": data.get("expression") or "",
        })

    summary = f"Found {len(measures)} master measures: {_preview([m['title'] for m in measures], 5)}"
    return payload(summary, "master-measures", appId=app_id, measures=measures, summary=summary)


async def bookmarks(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "BookmarkList", "qBookmarkListDef", BOOKMARK_LIST_DEF, connector)
    mapped = [
        {
            "id": _item_id(item),
            "title": _item_title(item),
            "description": (item.get("qData") or {}).get("description") or "",
            "sheetId": (item.get("qData") or {}).get("sheetId"),
        }
        for item in items
    ]
    summary = f"Found {len(mapped)} bookmarks" if mapped else "No bookmarks in this app"
    return payload(summary, "bookmarks", appId=app_id, bookmarks=mapped)


async def apply_bookmark(config: QlikConfig, app_id: str, bookmark_id: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        result = await doc.call("ApplyBookmark", bookmark_id)

    success = bool(result.get("qSuccess"))
    logger.info(f"bookmark applied | app:{app_id} | bookmark:{bookmark_id} | success:{success}")
    return payload(
        "Bookmark applied successfully" if success else "Bookmark could not be applied",
        "action-success",
        action="apply_bookmark",
        appId=app_id,
        bookmarkId=bookmark_id,
        success=success,
    )


async def variables(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "VariableList", "qVariableListDef", VARIABLE_LIST_DEF, connector)
    mapped = [
        {
            "id": _item_id(item),
            "name": item.get("qName"),
            "definition": item.get("qDefinition"),
            "isScriptCreated": bool(item.get("qIsScriptCreated")),
            "tags": (item.get("qData") or {}).get("tags") or [],
        }
        for item in items
    ]
    summary = f"Found {len(mapped)} variables" if mapped else "No variables in this app"
    return payload(summary, "variables", appId=app_id, variables=mapped)


async def set_variable(config: QlikConfig, app_id: str, name: str, value: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        variable = await doc.get_object_handle("GetVariableByName", name)
        await variable.call("SetStringValue", value)

    logger.info(f"variable set | app:{app_id} | variable:{name}")
    return payload(
        f'Variable "{name}" set to "{value}"',
        "action-success",
        action="set_variable",
        appId=app_id,
        variableName=name,
        value=value,
        success=True,
    )


async def stories(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    items = await _read_list(config, app_id, "StoryList", "qAppObjectListDef", STORY_LIST_DEF, connector)
    mapped = [
        {
            "id": _item_id(item),
            "title": _item_title(item),
            "thumbnail": (item.get("qData") or {}).get("thumbnail"),
        }
        for item in items
    ]
    summary = f"Found {len(mapped)} stories" if mapped else "No stories in this app"
    return payload(summary, "stories", appId=app_id, stories=mapped)


async def app_script(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        result = await doc.call("GetScript")

    script = result.get("qScript") or ""
    line_count = len(script.split("\n"))
    return payload(
        f"Script retrieved ({line_count} lines)",
        "app-script",
        appId=app_id,
        script=script,
        lineCount=line_count,
    )


async def get_connections(doc) -> List[Dict[str, Any]]:
    result = await doc.call("GetConnections")
    return list(result.get("qConnections") or [])


async def app_connections(config: QlikConfig, app_id: str, connector: Connector = None) -> ToolPayload:
    async with open_app(config, app_id, connector) as doc:
        connections = await get_connections(doc)

    mapped = [
        {
            "id": c.get("qId"),
            "name": c.get("qName"),
            "type": c.get("qType"),
            "connectionString": c.get("qConnectionString"),
        }
        for c in connections
    ]
    summary = f"Found {len(mapped)} connections" if mapped else "No connections in this app"
    return payload(summary, "app-connections", appId=app_id, connections=mapped)
