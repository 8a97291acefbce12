"""
Redirect and Referer attributes.
"""

import logging
from typing import Iterable, Optional, Union
from urllib.parse import urlsplit

from ..faults import ApplicationFault
from ..flow import ExecStatus
from .base import Attribute, AttributeContext, Guard

logger = logging.getLogger("temma.attributes")


class Redirect(Attribute):
    """
    Unconditionally redirect the request.

    The URL comes from ``url``, then the ``var`` template variable, then
    the Referer header (when ``referer`` is set), then
    ``x-security.redirect``.
    """

    def __init__(self, url: Optional[str] = None, var: Optional[str] = None, referer: bool = False):
        self.url = url
        self.var = var
        self.referer = referer

    def apply(self, context: AttributeContext) -> ExecStatus:
        url = self.url or context.get(self.var)
        if not url and self.referer:
            url = context.request.header("referer")
        if not url:
            url = context.config.xtra("security", "redirect")
        if not url:
            logger.debug("No redirection URL defined")
            raise ApplicationFault("Redirect attribute with no defined URL.", ApplicationFault.UNAUTHORIZED)
        logger.debug(f"Redirecting to '{url}'")
        return context.redirect(url)


class Referer(Guard):
    """
    Accept requests only when the Referer header matches.

    Args:
        domain: Accepted host name(s); True means the request's own host
        domain_suffix: Accepted host suffix(es)
        https: True requires https, False requires http, "same" requires
            the request's own scheme
        path_prefix: Accepted path prefix(es)
    """

    redirect_config_key = "refererRedirect"

    def __init__(
        self,
        domain: Union[bool, str, Iterable[str], None] = None,
        domain_suffix: Union[str, Iterable[str], None] = None,
        https: Union[bool, str, None] = None,
        path_prefix: Union[str, Iterable[str], None] = None,
        redirect: Optional[str] = None,
        redirect_var: Optional[str] = None,
    ):
        super().__init__(redirect=redirect, redirect_var=redirect_var)
        self.domain = domain
        self.domain_suffix = [domain_suffix] if isinstance(domain_suffix, str) else list(domain_suffix or ())
        self.https = https
        self.path_prefix = [path_prefix] if isinstance(path_prefix, str) else list(path_prefix or ())

    def check(self, context: AttributeContext) -> None:
        request = context.request
        header = request.header("referer")
        if not header:
            raise ApplicationFault("No HTTP referer.", ApplicationFault.UNAUTHORIZED)
        referer = urlsplit(header)
        host = referer.hostname or ""

        if self.https is True and referer.scheme != "https":
            raise ApplicationFault("Not HTTPS scheme.", ApplicationFault.UNAUTHORIZED)
        if self.https is False and referer.scheme != "http":
            raise ApplicationFault("Not HTTP scheme.", ApplicationFault.UNAUTHORIZED)
        if self.https == "same" and referer.scheme != request.scheme:
            raise ApplicationFault("Referer and local schemes are not the same.", ApplicationFault.UNAUTHORIZED)

        domains = []
        if self.domain is True:
            domains.append((request.header("host") or "").split(":")[0])
        elif isinstance(self.domain, str):
            domains.append(self.domain)
        elif self.domain:
            domains.extend(self.domain)
        if domains and host not in domains:
            raise ApplicationFault("No matching domain.", ApplicationFault.UNAUTHORIZED)

        if self.domain_suffix and not any(host.endswith(suffix) for suffix in self.domain_suffix):
            raise ApplicationFault("No matching domain suffix.", ApplicationFault.UNAUTHORIZED)

        if self.path_prefix and not any(referer.path.startswith(prefix) for prefix in self.path_prefix):
            raise ApplicationFault("No matching path prefix.", ApplicationFault.UNAUTHORIZED)
