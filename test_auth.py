#!/usr/bin/env python3
"""
Tests for scope-based tool authorization.
"""

import inspect
from types import SimpleNamespace

import pytest
from fastmcp.exceptions import ToolError

from src.auth import scopes
from src.auth.scopes import READ_SCOPES, WRITE_SCOPES, requires_scopes


@requires_scopes(READ_SCOPES)
async def read_tool(app_id):
    return f"read {app_id}"


@requires_scopes(WRITE_SCOPES)
async def write_tool(app_id):
    return f"reloaded {app_id}"


def token_with(monkeypatch, *granted):
    monkeypatch.setenv("PUBLIC_KEY_PEM", "-----BEGIN PUBLIC KEY-----")
    monkeypatch.setattr(scopes, "get_access_token", lambda: SimpleNamespace(scopes=list(granted)))


async def test_no_auth_runs_every_tool(monkeypatch):
    monkeypatch.delenv("PUBLIC_KEY_PEM", raising=False)

    def no_token_lookup():
        raise AssertionError("token looked up without auth")

    monkeypatch.setattr(scopes, "get_access_token", no_token_lookup)

    assert await write_tool("a1") == "reloaded a1"


async def test_read_scope_allows_read_tools(monkeypatch):
    token_with(monkeypatch, "read")

    assert await read_tool(app_id="a1") == "read a1"


async def test_read_scope_cannot_write(monkeypatch):
    token_with(monkeypatch, "read")

    with pytest.raises(ToolError, match="Access denied"):
        await write_tool("a1")


async def test_admin_scope_can_write(monkeypatch):
    token_with(monkeypatch, "admin")

    assert await write_tool("a1") == "reloaded a1"


async def test_missing_token_is_denied(monkeypatch):
    monkeypatch.setenv("PUBLIC_KEY_PEM", "-----BEGIN PUBLIC KEY-----")
    monkeypatch.setattr(scopes, "get_access_token", lambda: None)

    with pytest.raises(ToolError):
        await read_tool("a1")


def test_wrapper_keeps_tool_signature():
    assert read_tool.__name__ == "read_tool"
    assert list(inspect.signature(read_tool).parameters) == ["app_id"]
