"""
Api plugin - versioned API URLs (``/v1/user/list``).

The version chunk is shifted off the URL: the action becomes the
controller, the first parameter becomes the action, and the controller
is looked up under a sub-namespace named after the version
(``<defaultNamespace>.v1.User``). Responses use the JSON view.
"""

import logging
import re

from ..flow import ExecStatus
from .base import Plugin

logger = logging.getLogger("temma.plugins")

JSON_VIEW = "temma.views.json.JsonView"

_VERSION_RE = re.compile(r"^v(\d+)$")


class Api(Plugin):
    """
    Extract the API version from the URL.

    Sets the ``apiVersion`` template variable (an int). Malformed URLs
    are rejected with a 400 error.
    """

    def preplugin(self) -> ExecStatus:
        # Already shifted (reboot)
        if self._get("apiVersion") is not None:
            return ExecStatus.FORWARD

        self._response.set_header("Access-Control-Allow-Origin", "*")
        self._view(JSON_VIEW)

        request = self._request
        version = request.controller or ""
        match = _VERSION_RE.match(version)
        if not match:
            logger.warning(f"Incorrect API version number '{version}'")
            return self._http_error(400)
        if not request.action:
            logger.warning(f"No controller in API URL '{request.path_info}'")
            return self._http_error(400)

        url = self._get("URL") or request.path_info
        self._set("URL", url[len(version) + 1:] or "/")

        controller = request.action
        params = list(request.params)
        request.set_action(params.pop(0) if params else None)
        request.set_params(params)
        request.set_controller(f"{version}.{controller}")

        self._set("apiVersion", int(match.group(1)))
        self._set("CONTROLLER", controller)
        self._set("ACTION", request.action)
        logger.debug(f"API version {match.group(1)}, controller '{request.controller}'")
        return ExecStatus.FORWARD
