"""
Scope-based authorization for MCP tools.

Checks the scopes carried by the caller's JWT before a tool runs. Scope checks
only apply when bearer auth is configured (PUBLIC_KEY_PEM set); a stdio server
has no access token and runs every tool.
"""

import os
from functools import wraps
from typing import List

from fastmcp.exceptions import ToolError
from fastmcp.server.dependencies import get_access_token

from src.logging import get_logger

logger = get_logger('AUTH')

READ_SCOPES = ['admin', 'write', 'read']
WRITE_SCOPES = ['admin', 'write']


def auth_enabled() -> bool:
    return bool(os.getenv("PUBLIC_KEY_PEM", ""))


def get_user_scopes() -> List[str]:
    """Scopes of the current access token, empty when there is none."""
    access_token = get_access_token()
    if access_token is None:
        return []
    return list(access_token.scopes or [])


def requires_scopes(required_scopes: List[str]):
    """
    Decorator that rejects a tool call unless the caller holds one of the scopes.

    Args:
        required_scopes: Any one of these scopes grants access

    Example:
        @mcp.tool(name="reload")
        @requires_scopes(WRITE_SCOPES)
        @trace_mcp_tool(tool_name="reload")
        async def reload(app_id: str) -> ToolResult: ...
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            if auth_enabled():
                user_scopes = get_user_scopes()
                if not any(scope in user_scopes for scope in required_scopes):
                    logger.warning(
                        f"access denied | tool:{func.__name__} | required:{required_scopes} | scopes:{user_scopes}"
                    )
                    raise ToolError(
                        f"Access denied: you don't have the required permissions. Required: {required_scopes}"
                    )
            return await func(*args, **kwargs)
        return wrapper
    return decorator
