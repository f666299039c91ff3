"""
Catalog search and app details.
"""

import asyncio
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional

from src.logging import get_logger

from .client import QlikClient
from .lookups import get_space_name, get_user_name
from .pagination import SEARCH_CEILING
from .results import ToolPayload, payload

logger = get_logger('TOOLS')


def type_breakdown(items: Iterable[Dict[str, Any]], default: str = "unknown") -> str:
    """Summarize items per resource type, e.g. "3 apps, 1 dataset"."""
    counts = Counter(item.get("resourceType") or default for item in items)
    return ", ".join(f"{count} {kind}{'s' if count > 1 else ''}" for kind, count in counts.items())


async def search_items(
    client: QlikClient,
    query: Optional[str] = None,
    types: Optional[List[str]] = None,
    space_id: Optional[str] = None,
    sort: str = "-updatedAt",
) -> List[Dict[str, Any]]:
    """
    Search the items catalog.

    Args:
        client: REST client
        query: Free text matched against name, description and tags
        types: Resource types; empty or containing "all" means no filter
        space_id: Restrict to one space
        sort: Sort expression, e.g. "-updatedAt"

    Returns:
        Raw catalog items, at most SEARCH_CEILING
    """
    params: Dict[str, Any] = {"sort": sort, "query": query, "spaceId": space_id}
    if types and "all" not in types:
        params["resourceType"] = ",".join(types)
    return await client.paginate("/items", params, hard_ceiling=SEARCH_CEILING)


async def search(
    client: QlikClient,
    query: Optional[str] = None,
    types: Optional[List[str]] = None,
    space_id: Optional[str] = None,
    sort: str = "-updatedAt",
) -> ToolPayload:
    items = await search_items(client, query, types, space_id, sort)
    mapped = [
        {
            "id": item.get("resourceId") or item.get("id"),
            "name": item.get("name"),
            "description": item.get("description") or "",
            "resourceType": item.get("resourceType"),
            "owner": item.get("ownerId"),
            "space": item.get("spaceId"),
            "updatedAt": item.get("updatedAt"),
        }
        for item in items
    ]

    summary = f"Found {len(mapped)} items: {type_breakdown(mapped)}" if mapped else "No results found"
    logger.info(f"search complete | query:{query} | results:{len(mapped)}")
    return payload(summary, "apps", apps=mapped, query=query, summary=summary, tenantUrl=client.config.base_url)


async def app_details(client: QlikClient, app_id: str) -> ToolPayload:
    app = await client.request(f"/apps/{app_id}")
    attrs = app.get("attributes") or app

    owner_name, space_name = await asyncio.gather(
        get_user_name(client, attrs.get("ownerId")),
        get_space_name(client, attrs.get("spaceId")),
    )

    return payload(
        f"App: {attrs.get('name')}",
        "app-detail",
        id=attrs.get("id") or app_id,
        name=attrs.get("name"),
        description=attrs.get("description"),
        createdDate=attrs.get("createdDate"),
        modifiedDate=attrs.get("modifiedDate"),
        lastReloadTime=attrs.get("lastReloadTime"),
        published=attrs.get("published"),
        publishTime=attrs.get("publishTime"),
        owner=attrs.get("owner") or {"name": owner_name, "id": attrs.get("ownerId")},
        ownerId=attrs.get("ownerId"),
        ownerName=owner_name,
        spaceId=attrs.get("spaceId"),
        spaceName=space_name,
        tenantUrl=client.config.base_url,
    )
