"""
OpenTelemetry instrumentation package for the Qlik MCP server

Provides centralized configuration and initialization for OpenTelemetry
tracing and metrics across the MCP server application.
"""

from .config import (
    initialize_telemetry,
    get_tracer,
    get_meter,
    shutdown_telemetry,
    is_telemetry_enabled
)

from .decorators import (
    trace_mcp_tool,
    trace_qlik_api_call,
    trace_engine_call
)

from .metrics import (
    initialize_metrics,
    record_tool_invocation,
    record_api_request,
    record_engine_call,
    record_error
)

__all__ = [
    # Core configuration
    'initialize_telemetry',
    'get_tracer',
    'get_meter',
    'shutdown_telemetry',
    'is_telemetry_enabled',

    # Decorators
    'trace_mcp_tool',
    'trace_qlik_api_call',
    'trace_engine_call',

    # Metrics
    'initialize_metrics',
    'record_tool_invocation',
    'record_api_request',
    'record_engine_call',
    'record_error'
]
