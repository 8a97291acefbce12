"""
Plugin base class.
"""

from typing import Optional

from ..controller.base import Controller
from ..flow import ExecStatus

PREPLUGIN_METHOD = "preplugin"
POSTPLUGIN_METHOD = "postplugin"
PLUGIN_METHOD = "plugin"


class Plugin(Controller):
    """
    Controller run before (pre) or after (post) the main controller.

    A plugin overrides ``preplugin()`` and/or ``postplugin()``, or
    ``plugin()`` to run the same code in both phases. The phase method is
    used only when the plugin class itself defines it.

    Example:
        ```python
        class Maintenance(Plugin):
            def preplugin(self):
                if self._config.xtra("maintenance", "enabled"):
                    return self._http_error(503)
        ```
    """

    def preplugin(self) -> Optional[ExecStatus]:
        return ExecStatus.FORWARD

    def postplugin(self) -> Optional[ExecStatus]:
        return ExecStatus.FORWARD

    def plugin(self) -> Optional[ExecStatus]:
        return ExecStatus.FORWARD
