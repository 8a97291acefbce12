"""
Attribute base - declarative interceptors for controllers and actions.

An attribute instance decorates a controller class or an action method.
The controller engine runs class attributes (base classes first) after
instantiation, and method attributes right before the action. Each one
may short-circuit the request by returning a non-FORWARD status or by
raising a fault.

Example:
    ```python
    @Auth()
    class Account(Controller):

        @Post()
        @Auth(role="admin")
        def delete(self, user_id):
            ...
    ```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Sequence

from ..faults import ApplicationFault
from ..flow import ExecStatus

if TYPE_CHECKING:
    from ..config import Config
    from ..loader import Loader
    from ..request import Request
    from ..response import Response

ATTRIBUTES_FIELD = "__temma_attributes__"

logger = logging.getLogger("temma.attributes")


def attributes_of(obj: Any) -> Sequence["Attribute"]:
    """Attributes attached directly to a class or function (not inherited)."""
    namespace = getattr(obj, "__dict__", None)
    if not namespace:
        return ()
    return namespace.get(ATTRIBUTES_FIELD) or ()


@dataclass
class AttributeContext:
    """
    What an attribute sees when applied.

    Attributes:
        loader: The request's loader
        target: Controller class being processed
        method: Action name, or None for class attributes
    """

    loader: "Loader"
    target: type
    method: Optional[str] = None

    @property
    def request(self) -> "Request":
        return self.loader.get("request")

    @property
    def response(self) -> "Response":
        return self.loader.get("response")

    @property
    def config(self) -> "Config":
        return self.loader.get("config")

    def datasource(self, name: str) -> Any:
        return (self.loader.get("dataSources") or {}).get(name)

    # Template variables

    def get(self, name: Optional[str], default: Any = None) -> Any:
        if not name:
            return default
        return self.response.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.response.set(name, value)

    # Response helpers

    def http_error(self, code: int) -> ExecStatus:
        self.response.set_http_error(code)
        return ExecStatus.HALT

    def http_code(self, code: int) -> None:
        self.response.set_http_code(code)

    def redirect(self, url: Optional[str], permanent: bool = False) -> ExecStatus:
        self.response.set_redirection(url, permanent)
        return ExecStatus.HALT

    def redirect301(self, url: str) -> ExecStatus:
        return self.redirect(url, permanent=True)

    def view(self, view: Any) -> None:
        self.response.set_view(view)

    def template(self, template: str) -> None:
        self.response.set_template(template)

    def template_prefix(self, prefix: str) -> None:
        self.response.set_template_prefix(prefix)


class Attribute:
    """
    Base class for interceptors.

    Subclasses implement ``apply(context)`` and return an ExecStatus
    (or None, meaning FORWARD).
    """

    def __call__(self, obj):
        """Attach this attribute to a class or function."""
        attached = obj.__dict__.get(ATTRIBUTES_FIELD)
        if attached is None:
            attached = []
            setattr(obj, ATTRIBUTES_FIELD, attached)
        # Decorators run bottom-up; keep declaration order
        attached.insert(0, self)
        return obj

    def apply(self, context: AttributeContext) -> Optional[ExecStatus]:
        raise NotImplementedError

    @staticmethod
    def redirect_url(
        context: AttributeContext,
        redirect: Optional[str],
        redirect_var: Optional[str],
        config_key: Optional[str] = None,
    ) -> Optional[str]:
        """
        Find where to send a rejected request.

        Order: explicit URL, template variable, ``x-security.<config_key>``,
        ``x-security.redirect``.
        """
        if redirect:
            return redirect
        url = context.get(redirect_var)
        if url:
            return url
        if config_key:
            url = context.config.xtra("security", config_key)
            if url:
                return url
        return context.config.xtra("security", "redirect")

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"{type(self).__name__}({fields})"


class Guard(Attribute):
    """
    Attribute that checks a condition.

    ``check()`` raises ApplicationFault on failure. The request is then
    redirected (and halted) when a redirect URL can be found, otherwise
    the fault propagates.
    """

    redirect_config_key: Optional[str] = None

    def __init__(self, redirect: Optional[str] = None, redirect_var: Optional[str] = None):
        self.redirect = redirect
        self.redirect_var = redirect_var

    def check(self, context: AttributeContext) -> None:
        raise NotImplementedError

    def apply(self, context: AttributeContext) -> Optional[ExecStatus]:
        try:
            self.check(context)
        except ApplicationFault as fault:
            url = self.redirect_url(context, self.redirect, self.redirect_var, self.redirect_config_key)
            if not url:
                raise
            logger.debug(f"{type(self).__name__} rejected request ({fault.message}), redirecting to '{url}'")
            return context.redirect(url)
        return ExecStatus.FORWARD
