"""
Name lookups used to decorate detail payloads.

Lookups never fail the calling tool: any API error yields None.
"""

from typing import Optional

from src.logging import get_logger

from .client import QlikAPIError, QlikClient

logger = get_logger('HTTP')


async def get_user_name(client: QlikClient, user_id: Optional[str]) -> Optional[str]:
    if not user_id:
        return None
    try:
        user = await client.request(f"/users/{user_id}")
    except QlikAPIError as e:
        logger.debug(f"user lookup failed | user:{user_id} | status:{e.status_code}")
        return None
    return user.get("name") or None


async def get_space_name(client: QlikClient, space_id: Optional[str]) -> Optional[str]:
    if not space_id:
        return None
    try:
        space = await client.request(f"/spaces/{space_id}")
    except QlikAPIError as e:
        logger.debug(f"space lookup failed | space:{space_id} | status:{e.status_code}")
        return None
    return space.get("name") or None


async def get_item_id_for_app(client: QlikClient, app_id: Optional[str]) -> Optional[str]:
    """Find the items-catalog id of an app, used to build links into the hub."""
    if not app_id:
        return None
    try:
        result = await client.request("/items", params={"resourceId": app_id, "resourceType": "app", "limit": 1})
    except QlikAPIError:
        return None
    data = result.get("data") or []
    return data[0].get("id") if data else None
