"""
Router plugin - maps URLs to actions through the ``x-router`` table.

Add it to the pre-plugins to let configured routes override the default
``/controller/action/params`` resolution::

    plugins:
      _pre: [temma.plugins.router.Router]
    x-router:
      "GET:/users/[id:int]": "User::show($id)"
"""

import logging

from ..flow import ExecStatus
from ..routing import RouteTable
from ..utils.naming import lcfirst
from ..utils.urls import split_path
from .base import Plugin

logger = logging.getLogger("temma.router")


class Router(Plugin):
    """Rewrite the request controller, action and params from a matching route."""

    def preplugin(self) -> ExecStatus:
        logger.debug("Router plugin started")
        table = self.route_table()
        request = self._request
        url = self._get("URL") or request.path_info

        match = table.match(request.method, split_path(url))
        if match is None:
            logger.debug(f"No route for {request.method} {url}")
            return ExecStatus.FORWARD

        target = match.target
        logger.info(f"Route {match.method}:{url} -> {target.source}")
        head, _, last = target.controller.rpartition(".")
        request.set_controller(f"{head}.{lcfirst(last)}" if head else lcfirst(last))
        request.set_action(target.action)
        request.set_params(match.params)

        pipeline = self._loader.get("pipeline", auto_instantiate=False)
        if pipeline is not None:
            pipeline.splice("pre", target.pre_plugins)
            pipeline.splice("post", target.post_plugins)
        return ExecStatus.FORWARD

    def route_table(self) -> RouteTable:
        """The table bound in the loader, built from ``x-router`` when absent."""
        table = self._loader.get("routeTable", auto_instantiate=False)
        if table is None:
            table = RouteTable.build(self._config.xtra("router") or {})
            self._loader.set("routeTable", table)
        return table
