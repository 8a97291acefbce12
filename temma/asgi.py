"""
ASGI adapter - bridges the ASGI protocol to the Temma dispatcher.

    uvicorn "myapp.asgi:app"     # app = TemmaApp(app_path="/srv/myapp")

Uncaught errors are logged and answered with their mapped HTTP status and
the configured static error page::

    errorPages:
      404: errors/404.html       # relative to application.webPath
      default: errors/500.html
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from .config import Config, ConfigLoader
from .faults import http_status_for
from .framework import Framework
from .log import configure_logging
from .request import Request
from .view import ResponseWriter


class TemmaApp:
    """
    ASGI application.

    Args:
        config: Config object, mapping, or path of a configuration file
        app_path: Application root (``etc/``, ``templates/``, ``www/``)
    """

    __slots__ = ("config", "framework", "logger")

    def __init__(
        self,
        config: Union[Config, Mapping[str, Any], str, Path, None] = None,
        *,
        app_path: Union[str, Path, None] = None,
    ):
        if not isinstance(config, Config):
            config = ConfigLoader.load(config, app_path=app_path)
        configure_logging(config)
        self.config = config
        self.framework = Framework(config)
        self.logger = logging.getLogger("temma.asgi")

    async def __call__(self, scope: dict, receive: Callable, send: Callable):
        scope_type = scope["type"]
        if scope_type == "http":
            await self.handle_http(scope, receive, send)
        elif scope_type == "lifespan":
            await self.handle_lifespan(scope, receive, send)
        else:
            self.logger.warning(f"Unsupported ASGI scope type '{scope_type}'")

    async def handle_http(self, scope: dict, receive: Callable, send: Callable):
        """Dispatch one HTTP request."""
        request = Request(scope, receive)
        writer = ResponseWriter(send)
        try:
            status = await self.framework.process(request, writer)
        except Exception as e:
            code = http_status_for(e)
            if code >= 500:
                self.logger.error(f"Error while processing {request.method} {request.path_info}: {e}", exc_info=True)
            else:
                self.logger.info(f"HTTP {code} for {request.method} {request.path_info}: {e}")
            await self.send_error(writer, code)
            return

        if not writer.started:
            # QUIT without output
            response = request.state.get("response")
            code = response.http_code if response is not None else 200
            self.logger.debug(f"Request ended with {status.name}, sending empty {code}")
            await writer.start(code, [])
            await writer.finish()
        elif not writer.finished:
            await writer.finish()

    def error_page(self, code: int) -> Optional[Path]:
        """Static page configured for an HTTP code, or the default page."""
        pages = self.config.error_pages
        page = pages.get(str(code)) or pages.get("default")
        if not page:
            return None
        path = self.config.web_path / page
        return path if path.is_file() else None

    async def send_error(self, writer: ResponseWriter, code: int) -> None:
        if writer.started:
            # Status line already sent: just close the body
            if not writer.finished:
                await writer.finish()
            return

        page = self.error_page(code)
        headers = []
        if page is not None:
            headers.append(("Content-Type", "text/html; charset=UTF-8"))
        await writer.start(code, headers)
        if page is not None:
            with open(page, "rb") as f:
                await writer.write(f.read())
        await writer.finish()

    async def handle_lifespan(self, scope: dict, receive: Callable, send: Callable):
        """Handle ASGI lifespan events."""
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                self.logger.debug("Application startup complete")
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                self.logger.debug("Application shutdown complete")
                await send({"type": "lifespan.shutdown.complete"})
                break
