"""
View boundary.

The dispatcher builds the view selected by the response, gives it a
template when it uses one, then asks it for the headers and the body:

    view = ViewClass(datasources, config, response, writer)
    if view.uses_templates():
        view.set_template(config.templates_path, "user/show.html")
    view.init()
    await view.send_headers()
    await view.send_body()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .faults import FrameworkFault

if TYPE_CHECKING:
    from .config import Config
    from .response import Response

logger = logging.getLogger("temma.view")

HeaderItems = Union[Mapping[str, str], Iterable[Tuple[str, str]], None]


class ResponseWriter:
    """
    Thin wrapper over the ASGI ``send`` callable.

    Tracks whether the status line went out, so the caller knows if an
    error page can still be sent.
    """

    __slots__ = ("_send", "started", "finished", "status")

    def __init__(self, send: Callable[[dict], Awaitable[None]]):
        self._send = send
        self.started = False
        self.finished = False
        self.status: Optional[int] = None

    async def start(self, status: int, headers: Iterable[Tuple[str, str]] = ()) -> None:
        if self.started:
            raise FrameworkFault("Response headers already sent", code="RESPONSE_STARTED")
        await self._send({
            "type": "http.response.start",
            "status": status,
            "headers": [
                (name.lower().encode("latin-1"), str(value).encode("latin-1"))
                for name, value in headers
            ],
        })
        self.started = True
        self.status = status

    async def write(self, data: Union[bytes, str]) -> None:
        if not self.started:
            raise FrameworkFault("Response body written before headers", code="RESPONSE_NOT_STARTED")
        if isinstance(data, str):
            data = data.encode("utf-8")
        if not data:
            return
        await self._send({"type": "http.response.body", "body": data, "more_body": True})

    async def finish(self) -> None:
        if self.finished:
            return
        if not self.started:
            raise FrameworkFault("Response finished before headers", code="RESPONSE_NOT_STARTED")
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})
        self.finished = True


def _header_items(headers: HeaderItems) -> List[Tuple[str, str]]:
    if not headers:
        return []
    items = headers.items() if isinstance(headers, Mapping) else headers
    return [(str(name).strip(), str(value).strip()) for name, value in items]


class View:
    """
    Base class of views.

    Subclasses override ``render()`` (and ``uses_templates()`` /
    ``set_template()`` when they render templates).
    """

    GENERIC_HEADERS: Dict[str, str] = {
        "Content-Type": "text/html; charset=UTF-8",
        "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
        "Expires": "Mon, 26 Jul 1997 05:00:00 GMT",
        "Pragma": "no-cache",
    }

    def __init__(
        self,
        datasources: Mapping[str, Any],
        config: "Config",
        response: "Response",
        writer: Optional[ResponseWriter] = None,
    ):
        self.datasources = datasources
        self.config = config
        self.response = response
        self.writer = writer

    def uses_templates(self) -> bool:
        return False

    def set_template(self, path: Any, template: str) -> None:
        """Select the template file (``template`` relative to ``path``)."""

    def init(self) -> None:
        """Prepare rendering once the response is final."""

    def headers(self, extra: HeaderItems = None) -> List[Tuple[str, str]]:
        """Generic headers, then ``x-headers.default``, then extra and response headers."""
        headers = _header_items(self.GENERIC_HEADERS)
        headers.extend(_header_items(self.config.xtra("headers", "default")))
        headers.extend(_header_items(extra))
        headers.extend(self.response.headers)
        return headers

    async def send_headers(self, headers: HeaderItems = None) -> None:
        status = self.response.http_code
        logger.debug(f"Sending headers with status {status}")
        await self.writer.start(status, self.headers(headers))

    async def render(self) -> Union[str, bytes]:
        return b""

    async def send_body(self) -> None:
        await self.writer.write(self.response.prepended)
        await self.writer.write(await self.render())
        await self.writer.write(self.response.appended)
        await self.writer.finish()
