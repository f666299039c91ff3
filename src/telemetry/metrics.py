"""
OpenTelemetry metrics collection for MCP server operations

Provides metrics for monitoring MCP tool usage, Qlik Cloud API traffic
and the fallbacks taken when the engine or API misbehaves.
"""

from src.logging import get_logger

logger = get_logger('TELEMETRY_METRICS')

# Global metrics state
_meter = None
_metrics_enabled = False

# Metric instruments
_tool_invocation_counter = None
_tool_duration_histogram = None
_api_request_counter = None
_api_duration_histogram = None
_engine_call_counter = None
_engine_duration_histogram = None
_error_counter = None


def initialize_metrics():
    """Initialize OpenTelemetry metrics instruments."""
    global _meter, _metrics_enabled
    global _tool_invocation_counter, _tool_duration_histogram
    global _api_request_counter, _api_duration_histogram
    global _engine_call_counter, _engine_duration_histogram
    global _error_counter

    try:
        from src.telemetry.config import get_meter
        _meter = get_meter()

        if not _meter:
            logger.debug("metrics not available | meter not initialized")
            return False

        _tool_invocation_counter = _meter.create_counter(
            name="mcp_tool_invocations_total",
            description="Total number of MCP tool invocations",
            unit="1"
        )

        _tool_duration_histogram = _meter.create_histogram(
            name="mcp_tool_duration_seconds",
            description="Duration of MCP tool executions",
            unit="s"
        )

        _api_request_counter = _meter.create_counter(
            name="qlik_api_requests_total",
            description="Total number of Qlik Cloud API requests",
            unit="1"
        )

        _api_duration_histogram = _meter.create_histogram(
            name="qlik_api_duration_seconds",
            description="Duration of Qlik Cloud API requests",
            unit="s"
        )

        _engine_call_counter = _meter.create_counter(
            name="qlik_engine_calls_total",
            description="Total number of Qlik Engine JSON-RPC calls",
            unit="1"
        )

        _engine_duration_histogram = _meter.create_histogram(
            name="qlik_engine_call_duration_seconds",
            description="Round trip time of Qlik Engine JSON-RPC calls",
            unit="s"
        )

        _error_counter = _meter.create_counter(
            name="mcp_errors_total",
            description="Total number of errors by type",
            unit="1"
        )

        _metrics_enabled = True
        logger.info("metrics initialization complete")
        return True

    except ImportError:
        logger.debug("metrics not available | opentelemetry not installed")
        return False
    except Exception as e:
        logger.error(f"metrics initialization failed | error: {e}")
        return False


def record_tool_invocation(tool_name: str, duration: float, success: bool, **attributes):
    """
    Record metrics for MCP tool invocations.

    Args:
        tool_name: Name of the MCP tool
        duration: Execution duration in seconds
        success: Whether the invocation was successful
        **attributes: Additional attributes to record
    """
    if not _metrics_enabled or not _tool_invocation_counter:
        return

    try:
        metric_attributes = {
            "tool_name": tool_name,
            "status": "success" if success else "error"
        }
        for key, value in attributes.items():
            if isinstance(value, (str, int, float, bool)):
                metric_attributes[f"tool.{key}"] = str(value)

        _tool_invocation_counter.add(1, metric_attributes)
        _tool_duration_histogram.record(duration, metric_attributes)

        logger.debug(f"recorded tool metrics | tool:{tool_name} | duration:{duration:.3f}s | success:{success}")

    except Exception as e:
        logger.debug(f"failed to record tool metrics | error: {e}")


def record_api_request(endpoint: str, method: str, status_code: int, duration: float):
    """
    Record metrics for Qlik Cloud API requests.

    Args:
        endpoint: API endpoint
        method: HTTP method
        status_code: HTTP status code (0 when no response was received)
        duration: Request duration in seconds
    """
    if not _metrics_enabled or not _api_request_counter:
        return

    try:
        metric_attributes = {
            "endpoint": endpoint,
            "method": method,
            "status_code": str(status_code),
            "status": "success" if 0 < status_code < 400 else "error"
        }

        _api_request_counter.add(1, metric_attributes)
        _api_duration_histogram.record(duration, metric_attributes)

        logger.debug(f"recorded API metrics | endpoint:{endpoint} | status:{status_code} | duration:{duration:.3f}s")

    except Exception as e:
        logger.debug(f"failed to record API metrics | error: {e}")


def record_engine_call(method: str, duration: float, success: bool):
    """
    Record metrics for one engine JSON-RPC round trip.

    Args:
        method: Engine method, e.g. "GetLayout"
        duration: Time until the matching response arrived, in seconds
        success: False when the engine answered with an error
    """
    if not _metrics_enabled or not _engine_call_counter:
        return

    try:
        metric_attributes = {"method": method, "status": "success" if success else "error"}
        _engine_call_counter.add(1, metric_attributes)
        _engine_duration_histogram.record(duration, metric_attributes)

    except Exception as e:
        logger.debug(f"failed to record engine metrics | error: {e}")


def record_error(error_type: str, operation: str, **attributes):
    """
    Record error occurrences.

    Args:
        error_type: Type/category of error
        operation: Operation where error occurred
        **attributes: Additional error context
    """
    if not _metrics_enabled or not _error_counter:
        return

    try:
        metric_attributes = {
            "error_type": error_type,
            "operation": operation
        }
        for key, value in attributes.items():
            if isinstance(value, (str, int, float, bool)):
                metric_attributes[f"error.{key}"] = str(value)

        _error_counter.add(1, metric_attributes)

        logger.debug(f"recorded error metric | type:{error_type} | operation:{operation}")

    except Exception as e:
        logger.debug(f"failed to record error metric | error: {e}")
