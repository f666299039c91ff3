"""
Shared fixtures: a scripted Qlik engine behind a fake WebSocket.
"""

import itertools
import json

import httpx

import pytest

from src.qlik import QlikClient, QlikConfig


BASE_URL = "https://tenant.example.qlikcloud.com"


class FakeEngine:
    """
    Answers engine JSON-RPC requests from a method table.

    ``responses`` maps a method name to a result dict or to a callable
    ``(handle, params) -> result``. A result of the form ``{"error": {...}}``
    is sent back as a JSON-RPC error. OpenDoc and CreateSessionObject hand
    out fresh handles unless overridden.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.connections = []
        self.closed = 0
        self._handles = itertools.count(1)

    def result_for(self, method, handle, params):
        self.calls.append((method, handle, params))
        response = self.responses.get(method)
        if callable(response):
            return response(handle, params)
        if response is not None:
            return response
        if method == "OpenDoc":
            return {"qReturn": {"qHandle": next(self._handles), "qType": "Doc", "qGenericId": params[0]}}
        if method == "CreateSessionObject":
            object_type = params[0].get("qInfo", {}).get("qType", "")
            handle = next(self._handles)
            return {"qReturn": {"qHandle": handle, "qType": "GenericObject", "qGenericId": f"{object_type}-{handle}"}}
        if method in ("GetField", "GetVariableByName", "GetObject"):
            return {"qReturn": {"qHandle": next(self._handles), "qType": method[3:], "qGenericId": params[0]}}
        return {}

    def methods(self):
        return [method for method, _, _ in self.calls]

    async def connect(self, url, **kwargs):
        self.connections.append((url, kwargs))
        return FakeSocket(self)


class FakeSocket:
    def __init__(self, engine):
        self.engine = engine
        self.outbox = []

    async def send(self, message):
        request = json.loads(message)
        result = self.engine.result_for(request["method"], request["handle"], request["params"])
        # Engine pushes change notifications between responses
        self.outbox.append({"jsonrpc": "2.0", "change": [request["handle"]]})
        if "error" in result:
            self.outbox.append({"jsonrpc": "2.0", "id": request["id"], "error": result["error"]})
        else:
            self.outbox.append({"jsonrpc": "2.0", "id": request["id"], "result": result})

    async def recv(self):
        return json.dumps(self.outbox.pop(0))

    async def close(self):
        self.engine.closed += 1


class Router:
    """
    MockTransport handler answering by "METHOD /path" (path below /api/v1).

    A route value is a JSON body, an httpx.Response, a list of either (served
    in order, the last one repeating) or a callable taking the request.
    """

    def __init__(self, routes):
        self.routes = dict(routes)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path.removeprefix('/api/v1')}"
        if key not in self.routes:
            return httpx.Response(404, json={"errors": [{"title": f"no route {key}"}]})
        route = self.routes[key]
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            route = route(request)
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route)

    def paths(self):
        return [f"{r.method} {r.url.path.removeprefix('/api/v1')}" for r in self.requests]


def make_client(routes):
    router = Router(routes)
    return QlikClient(QlikConfig(BASE_URL, "key"), transport=httpx.MockTransport(router)), router


@pytest.fixture
def qlik_config():
    return QlikConfig(BASE_URL, "test-key")


@pytest.fixture
def engine():
    return FakeEngine()
