"""
Standardized logging setup for the Qlik MCP server.
Uses Python's built-in logging with structured session correlation.
"""

import logging
import sys
import os
from typing import Optional


class ColoredFormatter(logging.Formatter):
    """Colored logging formatter with timestamps."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'      # Reset
    }

    def __init__(self, use_colors=True):
        super().__init__(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stderr.isatty()

    def _colorize(self, record, render):
        if not self.use_colors:
            return render(record)

        level_color = self.COLORS.get(record.levelname, '')
        original_levelname = record.levelname
        record.levelname = f"{level_color}{record.levelname}{self.COLORS['RESET']}"
        try:
            return render(record)
        finally:
            record.levelname = original_levelname

    def format(self, record):
        return self._colorize(record, super().format)


class SessionColoredFormatter(ColoredFormatter):
    """Colored formatter that places session and app context after the component name."""

    def __init__(self, use_colors=True):
        super().__init__(use_colors)
        self._session_fmt = logging.Formatter(
            '%(asctime)s - %(name)s%(session_part)s%(app_part)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def format(self, record):
        session = getattr(record, 'session', '')
        app = getattr(record, 'app', '')
        record.session_part = f" {session}" if session else ""
        record.app_part = f" {app}" if app else ""
        return self._colorize(record, self._session_fmt.format)


# stdout carries the MCP stdio transport, so everything goes to stderr
log_level = os.getenv('LOG_LEVEL', 'INFO').upper()
log_level_value = getattr(logging, log_level, logging.INFO)

use_colors = os.getenv('LOG_COLORS', 'true').lower() in ('true', '1', 'yes', 'on')

# Leave third-party loggers alone unless nothing is configured yet
if not logging.getLogger().handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(levelname)s:%(name)s:%(message)s'))
    logging.getLogger().addHandler(handler)
    logging.getLogger().setLevel(logging.WARNING)


class SessionContextFilter(logging.Filter):
    """Add session and app context to log records."""

    def __init__(self):
        super().__init__()
        self.session_id = None
        self.app_id = None

    def set_context(self, session_id: Optional[str] = None, app_id: Optional[str] = None):
        """Set context for the current request."""
        self.session_id = session_id
        self.app_id = app_id

    def filter(self, record):
        record.session = f"session:{self.session_id[:8]}..." if self.session_id else ""
        record.app = f"app:{self.app_id[:8]}" if self.app_id else ""
        return True


class SessionHandler(logging.StreamHandler):
    """Handler that applies session formatting and colors to our loggers."""

    def __init__(self, use_colors=True):
        super().__init__(sys.stderr)
        self.setFormatter(SessionColoredFormatter(use_colors=use_colors))


session_filter = SessionContextFilter()


def get_logger(name: str) -> logging.Logger:
    """Get a logger with session context and colored formatting."""
    logger = logging.getLogger(name)
    if session_filter not in logger.filters:
        logger.addFilter(session_filter)
        if not any(isinstance(h, SessionHandler) for h in logger.handlers):
            logger.addHandler(SessionHandler(use_colors=use_colors))
            logger.propagate = False
            logger.setLevel(log_level_value)
    return logger


def set_session_context(session_id: Optional[str] = None, app_id: Optional[str] = None):
    """Set session context for all loggers."""
    session_filter.set_context(session_id, app_id)


# Component-specific loggers
session_logger = get_logger('SESSION')
tools_logger = get_logger('TOOLS')


def log_tool_call(tool_name: str, app_id: Optional[str] = None, **params):
    """Helper to log tool execution."""
    set_session_context(session_filter.session_id, app_id)
    extra_str = " | ".join(f"{k}:{str(v)[:50]}" for k, v in params.items() if v is not None)
    tools_logger.info(f"executing {tool_name} | {extra_str}" if extra_str else f"executing {tool_name}")
