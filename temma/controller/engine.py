"""
Controller Engine - resolves controller classes and runs their lifecycle.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Optional, Union

from ..faults import HttpFault
from ..flow import ExecStatus, invoke
from ..utils.naming import import_string, qualified_name, starts_lowercase, ucfirst
from .base import Controller

if TYPE_CHECKING:
    from ..config import Config
    from ..loader import Loader

ROOT_ACTION = "__call__"
PROXY_ACTION = "proxy"

logger = logging.getLogger("temma.controller")


def reserved_names() -> frozenset:
    """Public names of the framework base classes (lifecycle hooks, plugin methods)."""
    from ..plugins.base import Plugin

    return frozenset(
        name for name in (*dir(Controller), *dir(Plugin)) if not name.startswith("_")
    )


@dataclass
class ControllerNames:
    """
    Names computed from the request before each pipeline step.

    Attributes:
        requested: Controller name from the URL (``user``)
        object_name: Name of the controller object (``User``)
        controller_class: Resolved class, None when nothing matched
        action: Requested action, None for the root action
        error: Why no class could be resolved
    """

    requested: Optional[str]
    object_name: Optional[str]
    controller_class: Optional[type]
    action: Optional[str]
    error: Optional[str] = None


class ControllerEngine:
    """
    Runs controllers for one request.

    Example:
        ```python
        engine = loader.get(ControllerEngine)
        names = engine.resolve_names("user", "show")
        status = await engine.sub_process(executor, names.controller_class, "show", [12])
        ```
    """

    def __init__(self, loader: "Loader"):
        self.loader = loader
        self._reserved = reserved_names()

    @property
    def config(self) -> "Config":
        return self.loader.get("config")

    # ========================================================================
    # Name resolution
    # ========================================================================

    def resolve_controller_class(self, target: Union[str, type, None], namespace: Optional[str] = None) -> Optional[type]:
        """
        Find a controller class.

        ``target`` is a class, a name under ``namespace`` (``User``,
        ``admin.User``) or an absolute dotted path.
        """
        if target is None or isinstance(target, type):
            return target
        if namespace is None:
            namespace = self.config.default_namespace
        candidates = [f"{namespace.rstrip('.')}.{target}"] if namespace else []
        if "." in target:
            candidates.append(target)
        for candidate in candidates:
            found = import_string(candidate)
            if isinstance(found, type):
                return found
        return None

    def resolve_names(self, requested: Optional[str], action: Optional[str]) -> ControllerNames:
        """
        Compute the controller object for a requested controller name.

        Order: proxy controller, root controller (empty name), ``routes``
        aliases, then the capitalized name; ``controllersSuffix`` is
        appended and the default controller replaces a missing class.
        """
        config = self.config
        target: Any = None
        error = None

        if config.proxy_controller:
            target = config.proxy_controller
        elif not requested:
            logger.debug("No controller requested, using the root controller")
            target = config.root_controller
        else:
            alias = config.routes.get(requested)
            if alias:
                logger.debug(f"Routing '{requested}' to '{_name_of(alias)}'")
                target = alias
            else:
                head, _, last = requested.rpartition(".")
                if not starts_lowercase(last):
                    error = f"Bad name for controller '{requested}' (must start with a lowercase letter)."
                else:
                    target = f"{head}.{ucfirst(last)}" if head else ucfirst(last)
            suffix = config.controllers_suffix
            if isinstance(target, str) and suffix and not target.endswith(suffix):
                target += suffix

        controller_class = self.resolve_controller_class(target) if target else None
        if controller_class is None and error is None:
            default = config.default_controller
            if default:
                logger.debug(f"No controller object for '{_name_of(target)}', using the default controller")
                target = default
                controller_class = self.resolve_controller_class(default)
            if controller_class is None:
                error = f"No controller found for '{requested or ''}'."

        return ControllerNames(
            requested=requested,
            object_name=_name_of(target) if controller_class is not None else None,
            controller_class=controller_class,
            action=action,
            error=error,
        )

    # ========================================================================
    # Execution
    # ========================================================================

    async def sub_process(
        self,
        executor: Optional[Controller],
        controller: Union[str, type],
        action: Optional[str] = None,
        params: Optional[List[Any]] = None,
    ) -> ExecStatus:
        """
        Run ``init``, the action and ``finalize`` of a controller.

        Returns the first non-FORWARD status.

        Raises:
            HttpFault: Unknown controller or action (404)
        """
        cls = self.resolve_controller_class(controller)
        if cls is None or not issubclass(cls, Controller):
            logger.error(f"Sub-controller '{_name_of(controller)}' doesn't exist")
            raise HttpFault(404, f"Unable to find controller '{_name_of(controller)}'.")
        name = qualified_name(cls)
        logger.debug(f"Subprocess of '{name}'::'{action}'")

        previous = self.loader.get("parentController", auto_instantiate=False)
        self.loader.set("parentController", executor)
        try:
            obj = self.loader.instantiate(cls)
        finally:
            self.loader.set("parentController", previous)

        status = await self.loader.apply_attributes(cls)
        if status is not ExecStatus.FORWARD:
            return status

        status = ExecStatus.of(await invoke(obj.init))
        if status is not ExecStatus.FORWARD:
            return status

        if params is None:
            params = list(self.loader.get("request").params)

        method_name, args = self._resolve_action(obj, cls, action, params)

        status = await self.loader.apply_attributes(cls, method_name)
        if status is not ExecStatus.FORWARD:
            return status

        method = getattr(obj, method_name)
        try:
            inspect.signature(method).bind(*args)
        except TypeError as exc:
            logger.error(f"{name}::{method_name}: {exc}")
            raise HttpFault(404, f"{name}::{method_name}: {exc}") from exc

        status = ExecStatus.of(await invoke(method, *args))
        if status is not ExecStatus.FORWARD:
            return status

        return ExecStatus.of(await invoke(obj.finalize))

    def _resolve_action(self, obj: Controller, cls: type, action: Optional[str], params: List[Any]):
        """Return the method name to call and its positional arguments."""
        if callable(getattr(cls, PROXY_ACTION, None)):
            return PROXY_ACTION, [action, *params]

        if not action:
            if ROOT_ACTION not in _own_members(cls):
                raise HttpFault(404, f"No root action on controller '{qualified_name(cls)}'.")
            return ROOT_ACTION, params

        if not starts_lowercase(action):
            logger.error(f"Actions must start with a lowercase letter (here: '{action}')")
            raise HttpFault(404, f"Actions must start with a lowercase letter (here: '{action}').")

        if action in self._reserved or not callable(getattr(obj, action, None)):
            raise HttpFault(404, f"Unable to find action '{action}' on controller '{qualified_name(cls)}'.")
        return action, params


def _own_members(cls: type) -> set:
    """Names defined by the class or its bases, excluding ``object``."""
    names = set()
    for klass in cls.__mro__:
        if klass is object:
            continue
        names.update(vars(klass))
    return names


def _name_of(target: Any) -> Optional[str]:
    if isinstance(target, type):
        return target.__name__
    return target
