"""
Qlik Engine JSON-RPC session

The Qlik Associative Engine speaks JSON-RPC 2.0 over a WebSocket at
``wss://<tenant>/app/<appId>``. Every engine object is addressed by an integer
handle; the global object is handle -1 and OpenDoc returns the document
handle. One request is in flight at a time.
"""

import itertools
import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from websockets.asyncio.client import connect

from src.logging import get_logger
from src.telemetry.decorators import trace_engine_call

from .client import QlikNotConfiguredError
from .config import QlikConfig

logger = get_logger('ENGINE')

GLOBAL_HANDLE = -1


class EngineError(Exception):
    """Raised when the engine answers a request with a JSON-RPC error."""

    def __init__(self, message: str, code: Optional[int] = None, method: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.method = method


class EngineObject:
    """A remote engine object bound to a handle."""

    def __init__(self, session: "EngineSession", handle: int, object_type: str = "", object_id: str = ""):
        self.session = session
        self.handle = handle
        self.type = object_type
        self.id = object_id

    async def call(self, method: str, *params: Any) -> Dict[str, Any]:
        return await self.session.call(self.handle, method, *params)

    async def get_object_handle(self, method: str, *params: Any) -> "EngineObject":
        """Call a method whose ``qReturn`` is a new object handle."""
        result = await self.call(method, *params)
        ret = result.get("qReturn") or {}
        if "qHandle" not in ret or ret["qHandle"] is None:
            raise EngineError(f"{method} returned no object", method=method)
        return EngineObject(self.session, ret["qHandle"], ret.get("qType", ""), ret.get("qGenericId", ""))

    async def create_session_object(self, properties: Dict[str, Any]) -> "EngineObject":
        return await self.get_object_handle("CreateSessionObject", properties)

    async def destroy_session_object(self, object_id: str) -> bool:
        result = await self.call("DestroySessionObject", object_id)
        return bool(result.get("qSuccess"))

    async def get_layout(self) -> Dict[str, Any]:
        result = await self.call("GetLayout")
        return result.get("qLayout") or {}

    async def get_app_title(self, fallback: str) -> str:
        result = await self.call("GetAppLayout")
        return (result.get("qLayout") or {}).get("qTitle") or fallback


class EngineSession:
    """
    Async context manager around one engine WebSocket.

    Usage:
        async with EngineSession(config, app_id) as session:
            doc = await session.open_doc()
            layout = await (await doc.create_session_object(props)).get_layout()

    Args:
        config: Tenant configuration
        app_id: App to open
        connector: Callable with the signature of websockets' ``connect``;
            tests pass a fake
    """

    def __init__(self, config: QlikConfig, app_id: str, connector: Optional[Callable[..., Any]] = None):
        self.config = config
        self.app_id = app_id
        self._connector = connector or connect
        self._socket = None
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "EngineSession":
        if not self.config.is_configured:
            raise QlikNotConfiguredError(self.config.validate())
        url = self.config.engine_url(self.app_id)
        logger.debug(f"connecting | url:{url}")
        self._socket = await self._connector(
            url,
            additional_headers={"Authorization": f"Bearer {self.config.api_key}"},
            max_size=None,
        )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._socket is not None:
            socket, self._socket = self._socket, None
            await socket.close()
            logger.debug(f"session closed | app:{self.app_id}")

    @trace_engine_call(operation="rpc")
    async def call(self, handle: int, method: str, *params: Any) -> Dict[str, Any]:
        """
        Send one JSON-RPC request and wait for its response.

        Notifications and responses to other ids are skipped.

        Raises:
            EngineError: If the engine reports an error
        """
        if self._socket is None:
            raise EngineError("engine session is not open", method=method)

        request_id = next(self._ids)
        await self._socket.send(json.dumps({
            "jsonrpc": "2.0",
            "id": request_id,
            "method": method,
            "handle": handle,
            "params": list(params),
        }))

        while True:
            message = json.loads(await self._socket.recv())
            if message.get("id") != request_id:
                continue
            if "error" in message:
                error = message["error"] or {}
                detail = error.get("message") or "unknown engine error"
                if error.get("parameter"):
                    detail = f"{detail}: {error['parameter']}"
                logger.warning(f"rpc error | method:{method} | code:{error.get('code')} | {detail}")
                raise EngineError(detail, code=error.get("code"), method=method)
            return message.get("result") or {}

    async def open_doc(self) -> EngineObject:
        doc = await EngineObject(self, GLOBAL_HANDLE, "Global").get_object_handle("OpenDoc", self.app_id)
        logger.debug(f"doc opened | app:{self.app_id} | handle:{doc.handle}")
        return doc


async def list_app_objects(doc: EngineObject, info_type: str, list_key: str, definition: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Read a list object (sheets, stories, bookmarks, master items, variables).

    Args:
        doc: Open document
        info_type: qInfo.qType of the temporary list object
        list_key: Property holding the definition, e.g. "qAppObjectListDef"
        definition: The list definition

    Returns:
        The ``qItems`` of the list layout
    """
    list_object = await doc.create_session_object({"qInfo": {"qType": info_type}, list_key: definition})
    layout = await list_object.get_layout()
    layout_key = list_key[:-3] if list_key.endswith("Def") else list_key
    return list((layout.get(layout_key) or {}).get("qItems") or [])


@asynccontextmanager
async def open_app(config: QlikConfig, app_id: str, connector: Optional[Callable[..., Any]] = None) -> AsyncIterator[EngineObject]:
    """Open an engine session on an app and yield its document object."""
    async with EngineSession(config, app_id, connector=connector) as session:
        yield await session.open_doc()
