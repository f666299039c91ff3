"""
Qlik Cloud REST client

Provides the HTTP client for the Qlik Cloud REST API with error handling,
logging and tracing.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

import httpx

from src.logging import get_logger
from src.telemetry.decorators import trace_qlik_api_call

from .config import QlikConfig
from .pagination import DEFAULT_PAGE_SIZE, collect, rest_page_fetcher

logger = get_logger('HTTP')


class QlikAPIError(Exception):
    """Raised when the Qlik Cloud API answers with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class QlikNotConfiguredError(ValueError):
    """Raised when a request is attempted without tenant credentials."""


class QlikClient:
    """
    Async client for the Qlik Cloud REST API.

    Each request opens its own httpx.AsyncClient; an optional transport can be
    supplied (tests use httpx.MockTransport).
    """

    def __init__(self, config: QlikConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith("http"):
            return endpoint
        return f"{self.config.api_base}/{endpoint.lstrip('/')}"

    async def _send(
        self,
        endpoint: str,
        method: str,
        params: Optional[Dict[str, Any]],
        json_data: Optional[Any],
    ) -> httpx.Response:
        if not self.config.is_configured:
            raise QlikNotConfiguredError(self.config.validate())

        url = self._url(endpoint)
        clean_params = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug(f"{method} {url} | params:{clean_params} | data_size:{len(json.dumps(json_data)) if json_data else 0}")

        async with httpx.AsyncClient(transport=self._transport, timeout=self.config.http_timeout) as client:
            response = await client.request(
                method=method,
                url=url,
                params=clean_params or None,
                json=json_data,
                headers=self.config.auth_headers(),
            )

        if response.status_code >= 400:
            logger.warning(f"response {response.status_code} | endpoint:{endpoint} | size:{len(response.text)}")
            raise QlikAPIError(
                f"Qlik API error: {response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
                response_data=response.text,
            )

        logger.debug(f"response {response.status_code} | size:{len(response.text)}")
        return response

    @trace_qlik_api_call(operation="http_request")
    async def request(
        self,
        endpoint: str,
        method: str = "GET",
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Any] = None,
    ) -> Dict[str, Any]:
        """
        Make a request to the Qlik Cloud API.

        Args:
            endpoint: API path relative to /api/v1, or an absolute URL
            method: HTTP method
            params: Query parameters; None values are dropped
            json_data: JSON body

        Returns:
            Decoded JSON body; {"success": True} for an empty body and
            {"success": True, "raw": text} for a body that is not JSON

        Raises:
            QlikAPIError: For non-success responses
            QlikNotConfiguredError: If credentials are missing
        """
        response = await self._send(endpoint, method, params, json_data)
        text = response.text
        if not text:
            return {"success": True}
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return {"success": True, "raw": text}

    @trace_qlik_api_call(operation="http_request_text")
    async def request_text(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Fetch a plain-text resource such as a reload log."""
        response = await self._send(endpoint, "GET", params, None)
        return response.text

    async def paginate(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        hard_ceiling: int = 1000,
        items_keys: Iterable[str] = ("data",),
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> List[Dict[str, Any]]:
        """Collect a cursor-paginated collection up to hard_ceiling items."""
        fetch_page = rest_page_fetcher(self, endpoint, params, page_size, tuple(items_keys))
        return await collect(fetch_page, page_size, hard_ceiling)
