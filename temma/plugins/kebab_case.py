"""
KebabCaseUrl plugin - ``/user-account/change-password`` maps to the
``UserAccount`` controller and its ``changePassword`` action.
"""

import logging

from ..flow import ExecStatus
from ..utils.naming import kebab_to_camel
from .base import Plugin

logger = logging.getLogger("temma.plugins")


class KebabCaseUrl(Plugin):
    """Require kebab-case URLs and convert them to camelCase names."""

    def preplugin(self) -> ExecStatus:
        request = self._request
        controller = request.controller or ""
        action = request.action or ""

        if any(char.isupper() for char in controller + action):
            logger.error("Controller or action in camel case, kebab case required")
            return self._http_error(404)

        if "-" not in controller and "-" not in action:
            return ExecStatus.FORWARD

        request.set_controller(kebab_to_camel(controller))
        request.set_action(kebab_to_camel(action))
        return ExecStatus.FORWARD
