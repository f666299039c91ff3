"""
OpenTelemetry decorators for instrumenting MCP server operations

Provides decorators for adding tracing to MCP tools, Qlik Cloud REST calls
and Qlik Engine JSON-RPC calls.
"""

import functools
import inspect
import time
from typing import Callable, Optional
from src.logging import get_logger

logger = get_logger('TELEMETRY_DECORATORS')

# Tool arguments copied onto metric attributes when present
METRIC_ARGUMENTS = ('app_id', 'space_id', 'chart_type', 'direction')


def trace_mcp_tool(tool_name: Optional[str] = None,
                   record_args: bool = True,
                   record_result: bool = False):
    """
    Decorator to trace MCP tool execution.

    Args:
        tool_name: Custom name for the tool (defaults to function name)
        record_args: Whether to record function arguments as span attributes
        record_result: Whether to record the result as a span attribute
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from .metrics import record_tool_invocation

            start_time = time.time()
            success = True
            name = tool_name or func.__name__

            try:
                tracer = get_tracer()
                if not tracer:
                    return await func(*args, **kwargs)

                with tracer.start_as_current_span(f"mcp_tool.{name}") as span:
                    from opentelemetry import trace

                    span.set_attribute("mcp.tool.name", name)
                    span.set_attribute("mcp.operation.type", "tool_execution")
                    if record_args:
                        _record_function_args(span, func, args, kwargs)

                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        span.set_attribute("mcp.tool.error", True)
                        span.set_attribute("mcp.tool.error_type", type(e).__name__)
                        status_code = getattr(e, 'status_code', None)
                        if status_code is not None:
                            span.set_attribute("mcp.api.error_status", status_code)
                        error_message = str(e)
                        if len(error_message) <= 1000:
                            span.set_attribute("mcp.tool.error_message", error_message)
                        else:
                            span.set_attribute("mcp.tool.error_message_size", len(error_message))
                        raise

                    if record_result and result is not None:
                        result_str = str(result)
                        if len(result_str) <= 1000:
                            span.set_attribute("mcp.tool.result", result_str)
                        else:
                            span.set_attribute("mcp.tool.result_size", len(result_str))

                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result

            except Exception:
                success = False
                raise
            finally:
                attributes = {k: kwargs[k] for k in METRIC_ARGUMENTS if kwargs.get(k)}
                record_tool_invocation(name, time.time() - start_time, success, **attributes)

        return wrapper
    return decorator


def trace_qlik_api_call(operation: Optional[str] = None):
    """
    Decorator to trace Qlik Cloud REST calls.

    Args:
        operation: Description of the API operation
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from .metrics import record_api_request

            start_time = time.time()
            status_code = 200
            endpoint = kwargs.get('endpoint') or (args[1] if len(args) > 1 else 'unknown')

            try:
                tracer = get_tracer()
                if not tracer:
                    return await func(*args, **kwargs)

                with tracer.start_as_current_span(f"qlik_api.{operation or func.__name__}") as span:
                    from opentelemetry import trace

                    span.set_attribute("qlik.operation.type", "api_call")
                    span.set_attribute("qlik.function.name", func.__name__)
                    if operation:
                        span.set_attribute("qlik.operation.name", operation)
                    span.set_attribute("qlik.api.endpoint", str(endpoint))
                    if 'method' in kwargs:
                        span.set_attribute("qlik.api.method", kwargs['method'])

                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        span.set_attribute("qlik.api.error", True)
                        span.set_attribute("qlik.api.error_type", type(e).__name__)
                        if getattr(e, 'status_code', None) is not None:
                            span.set_attribute("qlik.api.status_code", e.status_code)
                            span.add_event(
                                name="qlik_api_error_response",
                                attributes={
                                    "qlik.error.status_code": e.status_code,
                                    "qlik.error.message": str(e)[:1000],
                                }
                            )
                        raise

                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result

            except Exception as e:
                status_code = getattr(e, 'status_code', None) or 0
                raise
            finally:
                record_api_request(str(endpoint), kwargs.get('method', 'GET'), status_code, time.time() - start_time)

        return wrapper
    return decorator


def trace_engine_call(operation: Optional[str] = None):
    """
    Decorator to trace Qlik Engine JSON-RPC calls.

    Expects the wrapped coroutine to take ``(self, handle, method, ...)``.

    Args:
        operation: Description of the engine operation
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            from .config import get_tracer
            from .metrics import record_engine_call

            start_time = time.time()
            success = True
            method = args[2] if len(args) > 2 and isinstance(args[2], str) else kwargs.get('method', 'unknown')

            try:
                tracer = get_tracer()
                if not tracer:
                    return await func(*args, **kwargs)

                with tracer.start_as_current_span(f"qlik_engine.{operation or func.__name__}") as span:
                    from opentelemetry import trace

                    span.set_attribute("qlik.operation.type", "engine_call")
                    span.set_attribute("qlik.engine.method", method)
                    if len(args) > 1 and isinstance(args[1], int):
                        span.set_attribute("qlik.engine.handle", args[1])
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                        span.record_exception(e)
                        span.set_attribute("qlik.engine.error", True)
                        if getattr(e, 'code', None) is not None:
                            span.set_attribute("qlik.engine.error_code", e.code)
                        raise
                    span.set_status(trace.Status(trace.StatusCode.OK))
                    return result

            except Exception:
                success = False
                raise
            finally:
                record_engine_call(method, time.time() - start_time, success)

        return wrapper
    return decorator


def _record_function_args(span, func: Callable, args: tuple, kwargs: dict):
    """
    Record function arguments as span attributes with sensitive data filtering.

    Args:
        span: OpenTelemetry span
        func: Function being traced
        args: Positional arguments
        kwargs: Keyword arguments
    """
    try:
        sig = inspect.signature(func)

        sensitive_params = {
            'token', 'password', 'secret', 'key', 'auth', 'authorization',
            'access_token', 'api_key', 'private_key', 'public_key_pem'
        }

        bound_args = sig.bind_partial(*args, **kwargs)
        bound_args.apply_defaults()

        for param_name, value in bound_args.arguments.items():
            if param_name.lower() in sensitive_params:
                span.set_attribute(f"mcp.args.{param_name}", "[REDACTED]")
            elif param_name == 'ctx':
                if hasattr(value, 'session_id'):
                    span.set_attribute("mcp.session.id", value.session_id)
            else:
                value_str = str(value)
                if len(value_str) <= 200:
                    span.set_attribute(f"mcp.args.{param_name}", value_str)
                else:
                    span.set_attribute(f"mcp.args.{param_name}_size", len(value_str))

    except Exception as e:
        # Argument recording must never fail the traced call
        logger.debug(f"failed to record function args | error: {e}")
