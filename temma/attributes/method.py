"""
HTTP method attributes.
"""

import logging
from typing import Iterable, Optional, Union

from ..faults import ApplicationFault
from .base import AttributeContext, Guard

logger = logging.getLogger("temma.attributes")

Methods = Union[str, Iterable[str], None]


def _normalize(methods: Methods) -> list:
    if methods is None:
        return []
    if isinstance(methods, str):
        methods = [methods]
    return [method.upper() for method in methods]


class Method(Guard):
    """
    Restrict the HTTP methods an action (or a whole controller) accepts.

    Args:
        allowed: Accepted methods; everything else is rejected
        forbidden: Rejected methods
    """

    redirect_config_key = "methodRedirect"

    def __init__(
        self,
        allowed: Methods = None,
        forbidden: Methods = None,
        redirect: Optional[str] = None,
        redirect_var: Optional[str] = None,
    ):
        super().__init__(redirect=redirect, redirect_var=redirect_var)
        self.allowed = _normalize(allowed)
        self.forbidden = _normalize(forbidden)

    def check(self, context: AttributeContext) -> None:
        method = context.request.method
        if method in self.forbidden:
            logger.warning(f"Forbidden method '{method}'")
            raise ApplicationFault(f"Unauthorized method '{method}'.", ApplicationFault.UNAUTHORIZED)
        if self.allowed and method not in self.allowed:
            logger.warning(f"Invalid method '{method}'")
            raise ApplicationFault(f"Invalid method '{method}'.", ApplicationFault.UNAUTHORIZED)


class _Only(Method):
    METHOD = ""

    def __init__(self, redirect: Optional[str] = None, redirect_var: Optional[str] = None):
        super().__init__(allowed=self.METHOD, redirect=redirect, redirect_var=redirect_var)


class Get(_Only):
    METHOD = "GET"


class Post(_Only):
    METHOD = "POST"


class Put(_Only):
    METHOD = "PUT"


class Patch(_Only):
    METHOD = "PATCH"


class Delete(_Only):
    METHOD = "DELETE"


class Head(_Only):
    METHOD = "HEAD"
