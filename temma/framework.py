"""
Framework - the request dispatcher.

One Framework exists per process. For each request it builds a Response
and a Loader, then runs the state machine::

    INIT -> PRE_PLUGINS -> CONTROLLER -> POST_PLUGINS -> RESPONSE_RESOLUTION -> VIEW

REBOOT loops back to INIT (bounded by ``application.maxReboots``);
RESTART loops inside the plugin phases and the controller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from .config import Config
from .controller.base import Controller
from .controller.engine import ControllerEngine, ControllerNames
from .datasource import Datasource
from .faults import FrameworkFault, HttpFault, TooManyRebootsFault
from .flow import ExecStatus
from .loader import Loader, ParameterCache
from .pipeline import POST, PRE, PluginPipeline
from .request import Request
from .response import Response
from .routing import RouteTable
from .utils.naming import import_string, lcfirst, qualified_name
from .view import ResponseWriter, View

TEMPLATE_EXTENSION = ".html"
ROOT_TEMPLATE = "index"
AUTOIMPORT_VARIABLE = "conf"


class Framework:
    """
    Request dispatcher.

    Attributes:
        config: Application configuration
        datasources: Datasources built from ``application.dataSources``
        parameter_cache: Autowiring descriptors, shared by every request

    Per-request objects (loader, response) are published in
    ``request.state``, never on the Framework.

    Example:
        ```python
        framework = Framework(ConfigLoader.load(app_path="/srv/app"))
        status = await framework.process(Request(scope, receive), ResponseWriter(send))
        ```
    """

    def __init__(
        self,
        config: Config,
        *,
        datasources: Optional[Mapping[str, Any]] = None,
        parameter_cache: Optional[ParameterCache] = None,
    ):
        self.config = config
        self.logger = logging.getLogger("temma.framework")
        self.parameter_cache = parameter_cache or ParameterCache()
        self.datasources: Dict[str, Any] = dict(datasources) if datasources is not None else self._connect()
        self._route_table: Optional[RouteTable] = None

    def _connect(self) -> Dict[str, Any]:
        sources = {}
        for name, dsn in self.config.data_sources.items():
            sources[name] = dsn if isinstance(dsn, Datasource) else Datasource.factory(dsn)
        return sources

    @property
    def route_table(self) -> RouteTable:
        """Route table built from ``x-router`` on first use."""
        if self._route_table is None:
            self._route_table = RouteTable.build(self.config.xtra("router") or {})
        return self._route_table

    # ========================================================================
    # INIT
    # ========================================================================

    def create_loader(self, request: Request, response: Response, writer: Optional[ResponseWriter]) -> Loader:
        """Build the request loader with the core bindings."""
        loader_class = self.config.loader_class or Loader
        if isinstance(loader_class, str):
            loader_class = import_string(loader_class)
        if not isinstance(loader_class, type) or not issubclass(loader_class, Loader):
            raise FrameworkFault(f"Invalid loader class '{self.config.loader_class}'", code="LOADER_INVALID")

        loader = loader_class(
            {
                "config": self.config,
                "request": request,
                "response": response,
                "dataSources": self.datasources,
                "writer": writer,
                "framework": self,
            },
            parameter_cache=self.parameter_cache,
        )
        loader.lazy("routeTable", lambda: self.route_table)
        loader.aliases({
            Config: "config",
            Request: "request",
            Response: "response",
            ResponseWriter: "writer",
            Framework: "framework",
            RouteTable: "routeTable",
        })

        settings = self.config.xtra("loader") or {}
        if settings.get("preload"):
            loader.set_many(settings["preload"])
        if settings.get("aliases"):
            loader.aliases(settings["aliases"])
        if settings.get("prefixes"):
            loader.prefixes(settings["prefixes"])
        return loader

    # ========================================================================
    # Processing
    # ========================================================================

    async def process(self, request: Request, writer: Optional[ResponseWriter] = None) -> ExecStatus:
        """
        Dispatch a request.

        Returns:
            QUIT when the request ended without a response, FORWARD otherwise.

        Raises:
            HttpFault, ApplicationFault, FrameworkFault...: propagated to
            the caller, which maps them to an HTTP status
            TooManyRebootsFault: More than ``maxReboots`` reboots
        """
        limit = self.config.max_reboots
        reboots = 0
        while True:
            status = await self._dispatch(request, writer)
            if status is not ExecStatus.REBOOT:
                return status
            reboots += 1
            if reboots > limit:
                self.logger.error(f"Too many reboots ({reboots}) for {request.method} {request.path_info}")
                raise TooManyRebootsFault(limit)
            self.logger.debug(f"Rebooting the dispatch ({reboots}/{limit})")

    async def _dispatch(self, request: Request, writer: Optional[ResponseWriter]) -> ExecStatus:
        # INIT
        response = Response()
        loader = self.create_loader(request, response, writer)
        request.state["loader"] = loader
        request.state["response"] = response

        engine = loader.get(ControllerEngine)
        pipeline = PluginPipeline(loader, engine)
        loader.set("pipeline", pipeline)
        loader.alias(PluginPipeline, "pipeline")

        executor = Controller(loader)
        loader.set("controller", executor)
        executor._set("URL", request.path_info)
        executor._set("CONTROLLER", request.controller)
        executor._set("ACTION", request.action)
        executor._set(AUTOIMPORT_VARIABLE, self.config.autoimport)

        def names() -> ControllerNames:
            return engine.resolve_names(request.controller, request.action)

        if self._needs_trailing_slash_redirect(request):
            url = f"{request.site_path}{request.path_info.rstrip('/') or '/'}"
            if request.query_string:
                url = f"{url}?{request.query_string}"
            self.logger.debug(f"Trailing slash redirection to '{url}'")
            response.set_redirection(url, permanent=True)
            await self._respond(response, writer, names())
            return ExecStatus.FORWARD

        # PRE_PLUGINS
        self.logger.debug("Processing of pre-process plugins")
        status = await pipeline.run_phase(PRE, names)
        if status is ExecStatus.QUIT:
            self.logger.debug("Premature but wanted end of processing")
            return ExecStatus.QUIT
        if status is ExecStatus.REBOOT:
            return ExecStatus.REBOOT
        halted = status is ExecStatus.HALT

        # CONTROLLER
        if not halted:
            current = names()
            if current.controller_class is None:
                self.logger.error(current.error or "No controller")
                raise HttpFault(404, current.error or "The requested page doesn't exist.")
            self.logger.debug(f"Controller processing: {qualified_name(current.controller_class)}")
            status = await executor._sub_process(current.controller_class, current.action)
            while status is ExecStatus.RESTART:
                status = await executor._sub_process(current.controller_class, current.action)
            if status is ExecStatus.REBOOT:
                return ExecStatus.REBOOT
            if status is ExecStatus.QUIT:
                self.logger.debug("Premature but wanted end of processing")
                return ExecStatus.QUIT
            halted = status is ExecStatus.HALT

        # POST_PLUGINS
        if not halted:
            self.logger.debug("Processing of post-process plugins")
            status = await pipeline.run_phase(POST, names)
            if status is ExecStatus.QUIT:
                self.logger.debug("Premature but wanted end of processing")
                return ExecStatus.QUIT
            if status is ExecStatus.REBOOT:
                return ExecStatus.REBOOT

        # RESPONSE_RESOLUTION and VIEW
        await self._respond(response, writer, names())
        return ExecStatus.FORWARD

    def _needs_trailing_slash_redirect(self, request: Request) -> bool:
        return (
            self.config.trailing_slash_redirect
            and request.method == "GET"
            and len(request.path_info) > 1
            and request.path_info.endswith("/")
        )

    # ========================================================================
    # Response
    # ========================================================================

    async def _respond(self, response: Response, writer: Optional[ResponseWriter], names: ControllerNames) -> None:
        if response.http_error:
            self.logger.warning(f"HTTP error '{response.http_error}': {names.requested}/{names.action}")
            raise HttpFault(response.http_error)

        if response.redirect_url:
            self.logger.debug(f"Redirecting to '{response.redirect_url}'")
            if writer is not None:
                await writer.start(
                    response.redirect_code,
                    [("Location", response.redirect_url), *response.headers],
                )
                await writer.finish()
            return

        view = self.load_view(response, writer)
        if view.uses_templates():
            template = self.template_for(response, names)
            self.logger.debug(f"Initializing view '{type(view).__name__}' with template '{template}'")
            view.set_template(self.config.templates_path, template)
        view.init()
        if writer is None:
            return
        self.logger.debug("Writing of response headers")
        await view.send_headers()
        self.logger.debug("Writing of response body")
        await view.send_body()

    def load_view(self, response: Response, writer: Optional[ResponseWriter]) -> View:
        """
        Raises:
            FrameworkFault: The view cannot be found or is not a View
        """
        name = response.view or self.config.default_view
        cls = import_string(name) if isinstance(name, str) else name
        if not isinstance(cls, type) or not issubclass(cls, View):
            self.logger.error(f"Unable to instantiate view '{name}'")
            raise FrameworkFault(f"Unable to load view '{name}'.", code="NO_VIEW")
        self.logger.info(f"Loading view '{qualified_name(cls)}'")
        return cls(self.datasources, self.config, response, writer)

    @staticmethod
    def template_for(response: Response, names: ControllerNames) -> str:
        """``<prefix>/<controller>/<action>.html`` unless a template was set."""
        template = response.template
        if not template:
            controller = names.requested or lcfirst(names.object_name or "")
            action = names.action or ROOT_TEMPLATE
            template = f"{controller.replace('.', '/')}/{action}{TEMPLATE_EXTENSION}"
        prefix = (response.template_prefix or "").strip("/")
        if prefix:
            template = f"{prefix}/{template}"
        return template
