"""
Input validation attributes.

Example:
    ```python
    class User(Controller):

        # first parameter is an integer, second one an enum
        @Check.Params(["int", "enum; values: member, admin"])
        def add(self, parent_id, kind):
            ...

        @Post()
        @Check.Payload({"name": "string; minlen: 1", "email?": "email"})
        async def create(self):
            ...
    ```
"""

import json
import logging
from typing import Any, List, Optional

from ..faults import ApplicationFault, HttpFault
from ..flow import ExecStatus
from ..utils.contracts import Contract, filter_data
from .base import AttributeContext, Guard

logger = logging.getLogger("temma.attributes")


class CheckParams(Guard):
    """
    Validate the positional parameters of an action.

    Args:
        parameters: One contract per positional parameter
        strict: Disable string conversion ("12" is not an int)
    """

    def __init__(
        self,
        parameters: List[Contract],
        strict: bool = False,
        redirect: Optional[str] = None,
        redirect_var: Optional[str] = None,
    ):
        super().__init__(redirect=redirect, redirect_var=redirect_var)
        self.parameters = list(parameters)
        self.strict = strict

    def check(self, context: AttributeContext) -> None:
        params = context.request.params
        for position, contract in enumerate(self.parameters):
            value = params[position] if position < len(params) else None
            try:
                filter_data(value, contract, self.strict)
            except ApplicationFault as fault:
                logger.warning(f"Invalid parameter #{position}: {fault.message}")
                raise


class CheckPayload(Guard):
    """
    Validate the JSON payload of the request.

    The redirection URL comes from ``redirect``, the ``redirect_var``
    template variable, the Referer header (unless ``redirect_referer`` is
    False), then ``x-security.redirect``. Without one, the request is
    rejected with a 403 error.
    """

    def __init__(
        self,
        contract: Contract,
        strict: bool = False,
        redirect: Optional[str] = None,
        redirect_var: Optional[str] = None,
        redirect_referer: bool = True,
    ):
        super().__init__(redirect=redirect, redirect_var=redirect_var)
        self.contract = contract
        self.strict = strict
        self.redirect_referer = redirect_referer

    def check(self, context: AttributeContext) -> None:
        raw = context.request.received_body or b""
        try:
            data: Any = json.loads(raw) if raw else None
        except ValueError:
            logger.warning("Invalid JSON payload")
            raise ApplicationFault("Invalid JSON payload.", ApplicationFault.BAD_PARAM)
        filter_data(data, self.contract, self.strict)

    async def apply(self, context: AttributeContext) -> ExecStatus:
        await context.request.body()
        try:
            self.check(context)
        except ApplicationFault as fault:
            url = self.redirect or context.get(self.redirect_var)
            if not url and self.redirect_referer:
                url = context.request.header("referer")
            if not url:
                url = self.redirect_url(context, None, None)
            if not url:
                raise HttpFault(403, "Forbidden.") from fault
            logger.debug(f"Invalid payload ({fault.message}), redirecting to '{url}'")
            return context.redirect(url)
        return ExecStatus.FORWARD


class Check:
    """Namespace of the validation attributes (``Check.Params``, ``Check.Payload``)."""

    Params = CheckParams
    Payload = CheckPayload
