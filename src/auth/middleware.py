"""
FastMCP authentication integration.

Builds the FastMCP server instance, optionally protected by a JWT bearer
verifier when the server is exposed over HTTP.
"""

import os
from typing import Optional
from fastmcp import FastMCP
from fastmcp.server.auth.providers.jwt import JWTVerifier

from src.logging import get_logger

logger = get_logger('AUTH')


def setup_auth_provider(public_key_pem: Optional[str] = None) -> Optional[JWTVerifier]:
    """
    Set up the JWTVerifier for FastMCP.

    Args:
        public_key_pem: PEM-encoded public key. If None, will read from environment.

    Returns:
        Configured JWTVerifier, or None when no public key is configured
    """
    if public_key_pem is None:
        public_key_pem = os.getenv("PUBLIC_KEY_PEM", "")

    if not public_key_pem:
        logger.info("PUBLIC_KEY_PEM not set | MCP endpoint runs without bearer auth")
        return None

    logger.info(f"bearer auth enabled | key_length:{len(public_key_pem)}")
    return JWTVerifier(public_key=public_key_pem)


def create_authenticated_mcp(server_name: str = "qlik-mcp", public_key_pem: Optional[str] = None) -> FastMCP:
    """
    Create a FastMCP instance with authentication configured when available.

    Args:
        server_name: Name for the MCP server
        public_key_pem: PEM-encoded public key. If None, will read from environment.

    Returns:
        Configured FastMCP instance
    """
    auth_provider = setup_auth_provider(public_key_pem)
    if auth_provider is None:
        return FastMCP(name=server_name)
    return FastMCP(name=server_name, auth=auth_provider)


def validate_auth_configuration() -> dict:
    """
    Validate authentication configuration and return status.

    Returns:
        Dictionary with configuration status and recommendations
    """
    public_key_pem = os.getenv("PUBLIC_KEY_PEM", "")

    status = {
        "configured": bool(public_key_pem),
        "public_key_length": len(public_key_pem),
        "warnings": [],
        "recommendations": []
    }

    if not public_key_pem:
        status["warnings"].append("PUBLIC_KEY_PEM not set, HTTP transport is unauthenticated")
        status["recommendations"].append("Set PUBLIC_KEY_PEM before exposing the server over HTTP")
    elif not public_key_pem.startswith("-----BEGIN"):
        status["warnings"].append("PUBLIC_KEY_PEM does not appear to be in PEM format")
        status["recommendations"].append("Ensure PUBLIC_KEY_PEM is a properly formatted PEM-encoded public key")

    return status
