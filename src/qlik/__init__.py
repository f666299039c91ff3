"""
Qlik Cloud client package

Provides the REST client, the engine JSON-RPC session, cursor pagination and
the resource modules (catalog, spaces, reloads, automations, lineage, ...)
that back the MCP tools.
"""

from .client import QlikClient, QlikAPIError, QlikNotConfiguredError
from .config import QlikConfig, load_qlik_config
from .engine import EngineSession, EngineObject, EngineError, open_app
from .hypercubes import ChartData, fetch_chart_data, simplify_hypercube_def
from .pagination import Page, PageWalker, collect, extract_cursor, rest_page_fetcher
from .results import ToolPayload, payload, error_payload

__all__ = [
    # Client
    'QlikClient',
    'QlikAPIError',
    'QlikNotConfiguredError',

    # Configuration
    'QlikConfig',
    'load_qlik_config',

    # Engine
    'EngineSession',
    'EngineObject',
    'EngineError',
    'open_app',
    'ChartData',
    'fetch_chart_data',
    'simplify_hypercube_def',

    # Pagination
    'Page',
    'PageWalker',
    'collect',
    'extract_cursor',
    'rest_page_fetcher',

    # Tool results
    'ToolPayload',
    'payload',
    'error_payload'
]
