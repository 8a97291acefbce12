"""
Shared test fixtures and helpers for the Temma test suite.

The ``sampleapp`` package next to this file holds the controllers and
plugins used by the dispatch tests (namespace ``sampleapp.controllers``).
"""

from typing import Any, Dict, List, Optional

import pytest

from temma.config import Config
from temma.framework import Framework
from temma.loader import Loader, ParameterCache
from temma.request import Request
from temma.response import Response
from temma.view import ResponseWriter

JSON_VIEW = "temma.views.json.JsonView"
NAMESPACE = "sampleapp.controllers"


# ============================================================================
# Request Helpers
# ============================================================================


def make_scope(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: Optional[List[tuple]] = None,
    scheme: str = "http",
    root_path: str = "",
) -> dict:
    """Build a minimal ASGI HTTP scope."""
    raw_headers = []
    if headers:
        for name, value in headers:
            raw_headers.append(
                (name.encode("latin-1") if isinstance(name, str) else name,
                 value.encode("latin-1") if isinstance(value, str) else value)
            )
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method,
        "path": path,
        "raw_path": path.encode("utf-8"),
        "query_string": query_string.encode("utf-8") if isinstance(query_string, str) else query_string,
        "headers": raw_headers,
        "scheme": scheme,
        "server": ("127.0.0.1", 8000),
        "client": ("127.0.0.1", 12345),
        "root_path": root_path,
    }


def make_receive(body: bytes = b"", *, chunks: Optional[List[bytes]] = None):
    """Create an ASGI receive callable from body bytes or chunked list."""
    if chunks is None:
        chunks = [body]
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]

    async def receive():
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive


def make_request(method: str = "GET", path: str = "/", **kw) -> Request:
    """Build a Request from a scope."""
    body = kw.pop("body", b"")
    return Request(make_scope(method=method, path=path, **kw), make_receive(body))


class CapturedSend:
    """ASGI send callable recording every message."""

    def __init__(self):
        self.messages: List[dict] = []
        self.request: Optional[Request] = None

    async def __call__(self, message: dict):
        self.messages.append(message)

    @property
    def status(self) -> Optional[int]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message["status"]
        return None

    @property
    def headers(self) -> Dict[str, str]:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return {name.decode("latin-1"): value.decode("latin-1") for name, value in message["headers"]}
        return {}

    @property
    def body(self) -> bytes:
        return b"".join(m.get("body", b"") for m in self.messages if m["type"] == "http.response.body")


# ============================================================================
# Configuration Helpers
# ============================================================================


def make_config(
    application: Optional[Dict[str, Any]] = None,
    app_path: Any = None,
    **sections: Any,
) -> Config:
    """
    Config for the sample application, with the JSON view by default.

    Extra keyword sections are added as-is; ``x_router`` becomes ``x-router``.
    """
    app = {"defaultNamespace": NAMESPACE, "defaultView": JSON_VIEW}
    app.update(application or {})
    data: Dict[str, Any] = {"application": app}
    for key, value in sections.items():
        data[key.replace("x_", "x-", 1) if key.startswith("x_") else key] = value
    return Config(data, app_path=app_path)


async def dispatch(framework: Framework, method: str = "GET", path: str = "/", **kw):
    """Run one request through a Framework; return (status, captured send).

    The request stays reachable as ``send.request``.
    """
    send = CapturedSend()
    send.request = make_request(method, path, **kw)
    status = await framework.process(send.request, ResponseWriter(send))
    return status, send


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def config(tmp_path):
    return make_config(app_path=tmp_path)


@pytest.fixture
def response():
    return Response()


@pytest.fixture
def loader(config, response):
    """Loader with the core bindings of a request."""
    request = make_request("GET", "/user/show/12")
    return Loader(
        {
            "config": config,
            "request": request,
            "response": response,
            "dataSources": {},
        },
        parameter_cache=ParameterCache(),
    )
