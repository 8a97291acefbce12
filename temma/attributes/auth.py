"""
Auth attribute - access control on the current user.

The current user is read from the ``currentUser`` template variable,
usually set by an authentication plugin::

    {"id": 12, "roles": {"admin": True}, "services": ["billing"]}
"""

import logging
from typing import Any, Iterable, Optional, Union

from ..faults import ApplicationFault
from .base import AttributeContext, Guard

logger = logging.getLogger("temma.attributes")


def _as_list(value: Union[str, Iterable[str], None]) -> list:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


class Auth(Guard):
    """
    Require an authenticated (or anonymous) user, with roles or services.

    Args:
        role: Role (or roles) of which the user needs at least one
        service: Service (or services) of which the user needs at least one
        authenticated: True requires a user, False requires no user, None skips
        redirect: Redirection URL on failure
        redirect_var: Template variable holding the redirection URL
    """

    redirect_config_key = "authRedirect"

    def __init__(
        self,
        role: Union[str, Iterable[str], None] = None,
        service: Union[str, Iterable[str], None] = None,
        authenticated: Optional[bool] = True,
        redirect: Optional[str] = None,
        redirect_var: Optional[str] = None,
    ):
        super().__init__(redirect=redirect, redirect_var=redirect_var)
        self.roles = _as_list(role)
        self.services = _as_list(service)
        self.authenticated = authenticated

    def check(self, context: AttributeContext) -> None:
        user: Any = context.get("currentUser") or {}
        user_id = user.get("id") if isinstance(user, dict) else None

        if self.authenticated is True and not user_id:
            logger.warning("User is not authenticated (while an authenticated user is expected)")
            raise ApplicationFault("User is not authenticated.", ApplicationFault.AUTHENTICATION)
        if self.authenticated is False and user_id:
            logger.warning("User is authenticated (while an anonymous user is expected)")
            raise ApplicationFault("User is authenticated.", ApplicationFault.AUTHENTICATION)

        if self.roles:
            user_roles = user.get("roles") or ()
            if not any(role in user_roles for role in self.roles):
                logger.warning(f"User has no matching role among {self.roles}")
                raise ApplicationFault("User has no matching role.", ApplicationFault.UNAUTHORIZED)

        if self.services:
            user_services = user.get("services") or ()
            if not any(service in user_services for service in self.services):
                logger.warning(f"User has no matching service among {self.services}")
                raise ApplicationFault("User has no matching access.", ApplicationFault.UNAUTHORIZED)
