"""
Authentication and authorization package for the Qlik MCP server.

Provides scope-based tool authorization and FastMCP authentication integration.
"""

# Scope-based authorization
from .scopes import (
    READ_SCOPES,
    WRITE_SCOPES,
    requires_scopes,
    get_user_scopes
)

# FastMCP integration
from .middleware import (
    setup_auth_provider,
    create_authenticated_mcp,
    validate_auth_configuration
)

__all__ = [
    # Scope-based authorization
    'READ_SCOPES',
    'WRITE_SCOPES',
    'requires_scopes',
    'get_user_scopes',

    # FastMCP integration
    'setup_auth_provider',
    'create_authenticated_mcp',
    'validate_auth_configuration'
]
