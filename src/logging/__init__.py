"""
Logging utilities for the Qlik MCP server.
"""

from .mcp_logger import (
    get_logger,
    set_session_context,
    log_tool_call,
    session_logger,
    tools_logger
)

__all__ = [
    'get_logger',
    'set_session_context',
    'log_tool_call',
    'session_logger',
    'tools_logger'
]
