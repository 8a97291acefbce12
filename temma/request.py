"""
Request - inbound request facts.

Wraps an ASGI HTTP scope and splits the path into the requested
controller, action and positional parameters. Plugins rewrite these
through the setters; the dispatcher re-reads them after every plugin.
"""

from __future__ import annotations

import json as stdlib_json
from http.cookies import SimpleCookie
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Mapping, MutableMapping, Optional, Tuple
from urllib.parse import parse_qsl

from .utils.urls import split_path


class Headers:
    """
    Case-insensitive header access with raw preservation.
    """

    def __init__(self, raw: Optional[List[Tuple[bytes, bytes]]] = None):
        self.raw = list(raw or [])
        self._index: Dict[str, List[str]] = {}
        for name, value in self.raw:
            key = name.decode("latin-1").lower()
            self._index.setdefault(key, []).append(value.decode("latin-1"))

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get first value for header (case-insensitive)."""
        values = self._index.get(name.lower())
        if values:
            return values[0]
        return default

    def get_all(self, name: str) -> List[str]:
        return list(self._index.get(name.lower(), []))

    def has(self, name: str) -> bool:
        return name.lower() in self._index

    def items(self) -> Iterator[Tuple[str, str]]:
        for name, value in self.raw:
            yield name.decode("latin-1"), value.decode("latin-1")

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __getitem__(self, name: str) -> str:
        value = self.get(name)
        if value is None:
            raise KeyError(f"Header '{name}' not found")
        return value


class Request:
    """
    Request object.

    Attributes derived from the path (``/user/show/12``):
        controller: "user"
        action: "show"
        params: ["12"]
    """

    def __init__(
        self,
        scope: MutableMapping[str, Any],
        receive: Optional[Callable[..., Awaitable[dict]]] = None,
    ):
        self.scope = scope
        self._receive = receive

        self._method = str(scope.get("method", "GET")).upper()
        self.site_path = scope.get("root_path", "") or ""
        self.path_info = "/"
        self.controller: Optional[str] = None
        self.action: Optional[str] = None
        self.params: List[Any] = []
        # Per-request objects published by the dispatcher (loader, response),
        # kept in the per-request state namespace of the scope
        self.state: Dict[str, Any] = scope.setdefault("state", {})
        self.set_path_info(scope.get("path", "/") or "/")

        # Cached values
        self._body: Optional[bytes] = None
        self._headers: Optional[Headers] = None
        self._query_params: Optional[Dict[str, str]] = None
        self._cookies: Optional[Dict[str, str]] = None

    @classmethod
    def build(
        cls,
        path: str = "/",
        method: str = "GET",
        *,
        query_string: str = "",
        headers: Optional[Mapping[str, str]] = None,
        root_path: str = "",
        body: bytes = b"",
    ) -> "Request":
        """Build a request without an ASGI server (tests, sub-requests)."""
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "query_string": query_string.encode("utf-8"),
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "root_path": root_path,
            "scheme": "http",
        }

        async def receive() -> dict:
            return {"type": "http.request", "body": body, "more_body": False}

        return cls(scope, receive)

    # ========================================================================
    # Path, controller, action, parameters
    # ========================================================================

    def set_path_info(self, path: str) -> None:
        """Set the path and derive controller, action and params from it."""
        self.path_info = path if path.startswith("/") else f"/{path}"
        chunks = split_path(self.path_info)
        self.controller = chunks[0] if chunks else None
        self.action = chunks[1] if len(chunks) > 1 else None
        self.params = chunks[2:]

    def set_controller(self, name: Optional[str]) -> None:
        self.controller = name or None

    def set_action(self, name: Optional[str]) -> None:
        self.action = name or None

    def set_params(self, params: Optional[List[Any]]) -> None:
        self.params = list(params or [])

    @property
    def method(self) -> str:
        """HTTP method (GET, POST, etc.)."""
        return self._method

    def set_method(self, method: str) -> None:
        self._method = method.upper()

    @property
    def path(self) -> str:
        return self.path_info

    @property
    def scheme(self) -> str:
        return self.scope.get("scheme", "http")

    @property
    def client(self) -> Optional[tuple]:
        """Client address (host, port)."""
        return self.scope.get("client")

    # ========================================================================
    # Query, headers, cookies
    # ========================================================================

    @property
    def query_string(self) -> str:
        raw = self.scope.get("query_string", b"")
        return raw.decode("utf-8") if isinstance(raw, bytes) else raw

    @property
    def query_params(self) -> Dict[str, str]:
        """Parsed query parameters (last value wins)."""
        if self._query_params is None:
            self._query_params = dict(parse_qsl(self.query_string, keep_blank_values=True))
        return self._query_params

    @property
    def headers(self) -> Headers:
        if self._headers is None:
            self._headers = Headers(self.scope.get("headers", []))
        return self._headers

    def header(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get single header (case-insensitive)."""
        return self.headers.get(name, default)

    @property
    def cookies(self) -> Mapping[str, str]:
        if self._cookies is None:
            cookie_header = self.header("cookie", "")
            if cookie_header:
                cookie = SimpleCookie()
                cookie.load(cookie_header)
                self._cookies = {key: morsel.value for key, morsel in cookie.items()}
            else:
                self._cookies = {}
        return self._cookies

    def accepted_formats(self) -> List[str]:
        """MIME types of the Accept header, best first."""
        weighted = []
        for position, item in enumerate((self.header("accept") or "").split(",")):
            parts = [part.strip() for part in item.split(";")]
            if not parts[0]:
                continue
            quality = 1.0
            for part in parts[1:]:
                if part.startswith("q="):
                    try:
                        quality = float(part[2:])
                    except ValueError:
                        quality = 0.0
            weighted.append((-quality, position, parts[0].lower()))
        return [mime for _, _, mime in sorted(weighted)]

    # ========================================================================
    # Body
    # ========================================================================

    async def body(self) -> bytes:
        """Read the whole request body (cached)."""
        if self._body is None:
            chunks = []
            if self._receive is not None:
                while True:
                    message = await self._receive()
                    if message.get("type") == "http.disconnect":
                        break
                    chunks.append(message.get("body", b""))
                    if not message.get("more_body", False):
                        break
            self._body = b"".join(chunks)
        return self._body

    @property
    def received_body(self) -> Optional[bytes]:
        """Body already read by ``body()``, None before."""
        return self._body

    async def json(self) -> Any:
        raw = await self.body()
        return stdlib_json.loads(raw) if raw else None

    async def form(self) -> Dict[str, str]:
        """Parse an urlencoded body."""
        raw = await self.body()
        return dict(parse_qsl(raw.decode("utf-8"), keep_blank_values=True))

    def __repr__(self) -> str:
        return (
            f"<Request {self.method} {self.path_info} "
            f"controller={self.controller!r} action={self.action!r} params={self.params!r}>"
        )
