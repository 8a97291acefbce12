"""
Language plugin - language prefix in URLs (``/fr/user/show/12``).

Configuration::

    x-language:
      default: en
      supported: [en, fr, de]

Translations are read from ``etc/lang/<lang>.yaml`` when the file exists
and published as the ``l10n`` template variable.
"""

import logging
from typing import Any, Dict

import yaml

from ..flow import ExecStatus
from .base import Plugin

logger = logging.getLogger("temma.plugins")


class Language(Plugin):
    """
    Shift the language code off the URL.

    Sets the ``lang`` template variable and the template prefix. Requests
    without a supported language are redirected to ``/<lang><path>``,
    where ``<lang>`` comes from Accept-Language or the default.
    """

    def plugin(self) -> ExecStatus:
        if self._get("lang") is not None:
            return ExecStatus.FORWARD

        config = self._config
        default = config.xtra("language", "default")
        supported = config.xtra("language", "supported")
        if not default or not isinstance(supported, (list, tuple)):
            logger.warning("Wrong configuration for language plugin")
            return ExecStatus.FORWARD

        request = self._request
        current = request.controller
        if current not in supported:
            language = self._accepted_language(supported) or default
            url = f"/{language}{request.path_info}"
            if request.query_string:
                url = f"{url}?{request.query_string}"
            return self._redirect(url)

        params = list(request.params)
        request.set_controller(request.action)
        request.set_action(params.pop(0) if params else None)
        request.set_params(params)

        self._set("lang", current)
        self._set("l10n", self._translations(current))
        url = self._get("URL") or request.path_info
        if url.startswith(f"/{current}"):
            url = url[len(current) + 1:] or "/"
        self._set("URL", url)
        self._set("CONTROLLER", request.controller)
        self._set("ACTION", request.action)
        self._template_prefix(current)
        return ExecStatus.FORWARD

    def _accepted_language(self, supported) -> Any:
        for item in (self._request.header("accept-language") or "").split(","):
            code = item.split(";")[0].split("-")[0].strip().lower()
            if code in supported:
                return code
        return None

    def _translations(self, language: str) -> Dict[str, Any]:
        path = self._config.etc_path / "lang" / f"{language}.yaml"
        if not path.exists():
            return {}
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
