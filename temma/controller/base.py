"""
Controller Base Class

Controllers are instantiated per call by the loader, with the loader and
the calling controller (the "executor"). Everything a controller writes
to the response goes through its executor chain, so a whole tree of
sub-controllers shares one Response.

Lifecycle, all optional and sync or async:
    init()                 before the action
    <action>(*params)      lowercase-first public method
    __call__(*params)      root action, when the URL names no action
    proxy(action, *params) catch-all, preempts action resolution
    finalize()             after the action

Framework helpers are prefixed with ``_`` (``_redirect``, ``_view``,
``_load_dao``...) so that every lowercase name is free for actions.
Template variables are read and written with the mapping protocol::

    self["user"] = user
    if "currentUser" in self: ...
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Union

from ..flow import ExecStatus
from ..utils.naming import import_string

if TYPE_CHECKING:
    from ..config import Config
    from ..dao import Dao
    from ..datasource import Datasource
    from ..loader import Loader
    from ..request import Request
    from ..response import Response


class Controller:
    """
    Base Controller class.

    Example:
        ```python
        class User(Controller):
            async def init(self):
                self["section"] = "users"

            def show(self, user_id: int):
                self["user"] = self._load_dao(UserDao).get(user_id)

            def delete(self, user_id: int):
                if "currentUser" not in self:
                    return self._http_error(403)
                return self._redirect("/user")
        ```
    """

    # DAO built automatically for sub-controllers: True, a Dao class,
    # a dotted path, or a mapping of _load_dao() options
    auto_dao: Any = None

    def __init__(self, loader: "Loader", executor: Optional["Controller"] = None):
        self._loader = loader
        self._executor = executor
        self._logger = logging.getLogger("temma.controller")
        self._dao: Optional["Dao"] = None
        if executor is not None and self.auto_dao:
            self._dao = self._load_auto_dao(self.auto_dao)

    # ========================================================================
    # Lifecycle hooks
    # ========================================================================

    def init(self) -> Optional[ExecStatus]:
        """Called before the action."""
        return None

    def finalize(self) -> Optional[ExecStatus]:
        """Called after the action, when it returned FORWARD."""
        return None

    # ========================================================================
    # Accessors
    # ========================================================================

    @property
    def _request(self) -> "Request":
        return self._loader.get("request")

    @property
    def _response(self) -> "Response":
        return self._loader.get("response")

    @property
    def _config(self) -> "Config":
        return self._loader.get("config")

    @property
    def _session(self) -> Any:
        return self._loader.get("session", auto_instantiate=False)

    def _datasource(self, name: str) -> Optional["Datasource"]:
        """Return a configured datasource, or None."""
        sources = self._loader.get("dataSources", auto_instantiate=False) or {}
        return sources.get(name)

    # ========================================================================
    # Template variables
    # ========================================================================

    def _get(self, name: str, default: Any = None) -> Any:
        """Read a template variable; a default given for a missing one is stored."""
        if self._executor is not None:
            return self._executor._get(name, default)
        return self._response.get(name, default)

    def _set(self, name: str, value: Any) -> "Controller":
        if self._executor is not None:
            self._executor._set(name, value)
        else:
            self._response.set(name, value)
        return self

    def _has(self, name: str) -> bool:
        if self._executor is not None:
            return self._executor._has(name)
        return self._response.has(name)

    def _delete(self, name: str) -> None:
        if self._executor is not None:
            self._executor._delete(name)
        else:
            self._response.delete(name)

    def __getitem__(self, name: str) -> Any:
        if not self._has(name):
            raise KeyError(name)
        return self._get(name)

    def __setitem__(self, name: str, value: Any) -> None:
        self._set(name, value)

    def __delitem__(self, name: str) -> None:
        self._delete(name)

    def __contains__(self, name: str) -> bool:
        return self._has(name)

    # ========================================================================
    # Response helpers
    # ========================================================================

    def _http_error(self, code: int) -> ExecStatus:
        """Flag an HTTP error and halt."""
        if self._executor is not None:
            return self._executor._http_error(code)
        self._response.set_http_error(code)
        return ExecStatus.HALT

    def _http_code(self, code: int) -> ExecStatus:
        """Set the status sent with the view output and halt."""
        if self._executor is not None:
            return self._executor._http_code(code)
        self._response.set_http_code(code)
        return ExecStatus.HALT

    def _redirect(self, url: Optional[str]) -> ExecStatus:
        """Redirect with a 302 (``None`` cancels a redirection) and halt."""
        if self._executor is not None:
            return self._executor._redirect(url)
        self._response.set_redirection(url)
        return ExecStatus.HALT

    def _redirect301(self, url: str) -> ExecStatus:
        if self._executor is not None:
            return self._executor._redirect301(url)
        self._response.set_redirection(url, permanent=True)
        return ExecStatus.HALT

    def _view(self, view: Any) -> "Controller":
        if self._executor is not None:
            self._executor._view(view)
        else:
            self._response.set_view(view)
        return self

    def _template(self, template: str) -> "Controller":
        if self._executor is not None:
            self._executor._template(template)
        else:
            self._response.set_template(template)
        return self

    def _template_prefix(self, prefix: str) -> "Controller":
        if self._executor is not None:
            self._executor._template_prefix(prefix)
        else:
            self._response.set_template_prefix(prefix)
        return self

    # ========================================================================
    # Sub-processing
    # ========================================================================

    async def _sub_process(
        self,
        controller: Union[str, type],
        action: Optional[str] = None,
        params: Optional[List[Any]] = None,
    ) -> ExecStatus:
        """Run another controller's action, with this controller as executor."""
        from .engine import ControllerEngine

        engine = self._loader.get(ControllerEngine)
        return await engine.sub_process(self, controller, action, params)

    # ========================================================================
    # DAO
    # ========================================================================

    def _load_dao(self, dao: Union[str, type, None] = None, **options: Any) -> "Dao":
        """
        Build a DAO over one of the configured datasources.

        Args:
            dao: Dao subclass or dotted path (default: the base Dao)
            source: Datasource name (default: the first one)
            table: Table name (default: the requested controller name)
            id_field: Identifier field
        """
        from ..dao import Dao

        dao_class = import_string(dao) if isinstance(dao, str) else dao
        dao_class = dao_class or Dao

        sources: Dict[str, Any] = self._loader.get("dataSources", auto_instantiate=False) or {}
        source = options.get("source")
        if source and source in sources:
            datasource = sources[source]
        else:
            datasource = next(iter(sources.values()), None)

        table = options.get("table") or getattr(dao_class, "table", None) or self._get("CONTROLLER")
        return dao_class(datasource, table=table, id_field=options.get("id_field"))

    def _load_auto_dao(self, spec: Any) -> "Dao":
        if spec is True:
            return self._load_dao()
        if isinstance(spec, Mapping):
            options = dict(spec)
            return self._load_dao(options.pop("object", None), **options)
        return self._load_dao(spec)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} executor={type(self._executor).__name__ if self._executor else None}>"
