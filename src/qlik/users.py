"""
Tenant users.
"""

from typing import Optional

from .client import QlikClient
from .pagination import USERS_CEILING
from .results import ToolPayload, payload


async def list_users(client: QlikClient, query: Optional[str] = None) -> ToolPayload:
    """List every user, or those whose name or email contains ``query``."""
    params = {"filter": f'name co "{query}" or email co "{query}"'} if query else {}
    users = await client.paginate("/users", params, hard_ceiling=USERS_CEILING)
    mapped = [
        {
            "id": u.get("id"),
            "name": u.get("name"),
            "email": u.get("email"),
            "status": u.get("status"),
            "picture": u.get("picture"),
            "roles": u.get("roles"),
            "lastUpdated": u.get("lastUpdatedAt"),
            "created": u.get("createdAt"),
        }
        for u in users
    ]
    return payload(f"Found {len(mapped)} users", "users", users=mapped, query=query or "")


async def user_details(client: QlikClient, user_id: str) -> ToolPayload:
    user = await client.request(f"/users/{user_id}")
    return payload(f"User: {user.get('name')}", "user-detail", **user)
