"""
Plugin pipeline - builds and runs the pre and post plugin lists.

Plugin configuration::

    plugins:
      _pre: [Router]                      # every request
      _post: [Timing]
      User:                               # controller object name
        _pre: [Auth]
        delete: {_pre: [AdminOnly]}       # object name + action
      api:                                # requested (URL) controller name
        _pre: [ApiKey]

Lists are rebuilt from the current controller and action names whenever a
phase (re)starts. Iteration is position-based over the live list, so
plugins spliced in while a phase runs are picked up.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from .controller.engine import ControllerEngine, ControllerNames
from .faults import FrameworkFault
from .flow import ExecStatus, run_step
from .plugins.base import PLUGIN_METHOD, POSTPLUGIN_METHOD, PREPLUGIN_METHOD, Plugin
from .utils.naming import qualified_name

if TYPE_CHECKING:
    from .config import Config
    from .loader import Loader

PRE = "pre"
POST = "post"
PHASES = (PRE, POST)

_PHASE_METHODS = {PRE: PREPLUGIN_METHOD, POST: POSTPLUGIN_METHOD}

logger = logging.getLogger("temma.pipeline")


class PluginPipeline:
    """
    Runs one request's plugins.

    Example:
        ```python
        pipeline = PluginPipeline(loader)
        status = await pipeline.run_phase("pre", framework.compute_names)
        ```
    """

    def __init__(self, loader: "Loader", engine: Optional[ControllerEngine] = None):
        self.loader = loader
        self.engine = engine or loader.get(ControllerEngine)
        self._live: Dict[str, Optional[List[Any]]] = {PRE: None, POST: None}
        self._positions: Dict[str, int] = {PRE: 0, POST: 0}
        self._extra: Dict[str, List[Any]] = {PRE: [], POST: []}

    @property
    def config(self) -> "Config":
        return self.loader.get("config")

    # ========================================================================
    # List construction
    # ========================================================================

    def build_list(
        self,
        phase: str,
        object_controller: Optional[str],
        route_controller: Optional[str],
        action: Optional[str],
    ) -> List[Any]:
        """
        Merge the configured plugins for a phase.

        Order: global, object controller, object controller + action,
        requested controller, requested controller + action. Duplicates
        are kept, even when both controller names are the same.
        """
        key = f"_{phase}"
        plugins = self.config.plugins
        result = list(plugins.get(key) or ())

        for scope in (object_controller, route_controller):
            section = plugins.get(scope) if scope else None
            if not isinstance(section, Mapping):
                continue
            result.extend(section.get(key) or ())
            if action and isinstance(section.get(action), Mapping):
                result.extend(section[action].get(key) or ())

        logger.debug(f"{phase.capitalize()} plugins: {[_label(p) for p in result]}")
        return result

    def _build(self, phase: str, names: ControllerNames) -> List[Any]:
        plugins = self.build_list(phase, names.object_name, names.requested, names.action)
        plugins.extend(self._extra[phase])
        self._extra[phase] = []
        return plugins

    def splice(self, phase: str, plugins: Sequence[Any]) -> None:
        """
        Add plugins to a phase.

        While the phase runs they are inserted right after the running
        plugin; otherwise they are appended when its list is built.
        """
        if not plugins:
            return
        live = self._live.get(phase)
        if live is not None:
            position = self._positions[phase]
            live[position:position] = list(plugins)
        else:
            self._extra[phase].extend(plugins)

    # ========================================================================
    # Execution
    # ========================================================================

    def resolve_plugin(self, name: Union[str, type]) -> type:
        """
        Find a plugin class, under the default namespace when relative.

        Raises:
            FrameworkFault: Unknown class, or not a Plugin subclass
        """
        cls = self.engine.resolve_controller_class(name)
        if cls is None:
            logger.error(f"Plugin '{_label(name)}' doesn't exist")
            raise FrameworkFault(f"Plugin '{_label(name)}' doesn't exist.", code="PLUGIN_NOT_FOUND")
        if not issubclass(cls, Plugin):
            logger.error(f"Plugin '{qualified_name(cls)}' is not a subclass of Plugin")
            raise FrameworkFault(
                f"Plugin '{qualified_name(cls)}' is not a subclass of Plugin.",
                code="PLUGIN_INVALID",
            )
        return cls

    async def run_plugin(self, name: Union[str, type], phase: str) -> ExecStatus:
        """Instantiate a plugin through the loader and run its phase method."""
        cls = self.resolve_plugin(name)
        method = _PHASE_METHODS[phase]
        if not _overrides(cls, method):
            method = PLUGIN_METHOD
            if not _overrides(cls, method):
                raise FrameworkFault(
                    f"Plugin '{qualified_name(cls)}' has no executable '{phase}' method.",
                    code="PLUGIN_INVALID",
                )
        logger.info(f"Executing plugin '{qualified_name(cls)}'::{method}")
        plugin = self.loader.instantiate(cls)
        return await run_step(getattr(plugin, method))

    async def run_phase(self, phase: str, names: Callable[[], ControllerNames]) -> ExecStatus:
        """
        Run every plugin of a phase.

        ``names`` recomputes the controller and action names; it is called
        after each plugin since plugins may rewrite the request.

        Returns:
            QUIT or REBOOT as soon as a plugin returns them; STOP or HALT
            when a plugin ended the phase; FORWARD otherwise.
        """
        if phase == PRE:
            self._extra[POST] = []
        plugins = self._build(phase, names())
        self._live[phase] = plugins
        position = 0
        status = ExecStatus.FORWARD
        try:
            while position < len(plugins):
                name = plugins[position]
                position += 1
                self._positions[phase] = position
                if not name:
                    continue

                status = await self.run_plugin(name, phase)
                if status in (ExecStatus.QUIT, ExecStatus.REBOOT):
                    logger.debug(f"Plugin '{_label(name)}' returned {status.name}")
                    return status

                current = names()
                if status in (ExecStatus.STOP, ExecStatus.HALT):
                    break
                if status is ExecStatus.RESTART:
                    logger.debug(f"Restarting {phase} plugins")
                    if phase == PRE:
                        self._extra[POST] = []
                    plugins = self._build(phase, current)
                    self._live[phase] = plugins
                    position = 0
                    status = ExecStatus.FORWARD
        finally:
            self._live[phase] = None
        return status


def _overrides(cls: type, method: str) -> bool:
    """True when a class below Plugin in the MRO defines the method."""
    for klass in cls.__mro__:
        if klass is Plugin:
            return False
        if method in vars(klass):
            return True
    return False


def _label(plugin: Any) -> str:
    return plugin.__name__ if isinstance(plugin, type) else str(plugin)
