"""
Spaces catalog and space contents.
"""

from typing import Optional

from .client import QlikClient
from .items import type_breakdown
from .pagination import SPACE_ITEMS_CEILING, SPACES_CEILING
from .results import ToolPayload, payload


async def list_spaces(client: QlikClient, query: Optional[str] = None, space_type: Optional[str] = None) -> ToolPayload:
    params = {"name": query, "type": space_type if space_type and space_type != "all" else None}
    spaces = await client.paginate("/spaces", params, hard_ceiling=SPACES_CEILING)
    mapped = [
        {
            "id": s.get("id"),
            "name": s.get("name"),
            "type": s.get("type"),
            "owner": s.get("ownerId"),
            "description": s.get("description"),
        }
        for s in spaces
    ]
    return payload(f"Found {len(mapped)} spaces", "spaces", spaces=mapped)


async def space_details(client: QlikClient, space_id: str) -> ToolPayload:
    space = await client.request(f"/spaces/{space_id}")
    items = await client.paginate(
        "/items",
        {"spaceId": space_id, "sort": "-updatedAt"},
        hard_ceiling=SPACE_ITEMS_CEILING,
    )
    mapped = [
        {
            "id": item.get("id"),
            "name": item.get("name"),
            "resourceType": item.get("resourceType"),
            "description": item.get("description"),
            "updatedAt": item.get("updatedAt"),
            "createdAt": item.get("createdAt"),
            "ownerId": item.get("ownerId"),
        }
        for item in items
    ]

    breakdown = type_breakdown(mapped, default="item") or "empty"
    summary = f"{space.get('type') or 'Space'} \"{space.get('name')}\" contains {len(mapped)} items: {breakdown}"
    return payload(
        summary,
        "space-detail",
        id=space.get("id"),
        name=space.get("name"),
        description=space.get("description"),
        spaceType=space.get("type"),
        createdAt=space.get("createdAt"),
        updatedAt=space.get("updatedAt"),
        ownerId=space.get("ownerId"),
        items=mapped,
        summary=summary,
    )
