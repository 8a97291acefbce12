"""
View and Template attributes.
"""

from typing import Any, Dict, Iterable, Optional, Union

from .base import Attribute, AttributeContext

MIME_ALIASES = {
    "html": "text/html",
    "xhtml": "application/xhtml+xml",
    "json": "application/json",
}

MIME_TO_VIEW = {
    "text/html": "temma.views.jinja.JinjaView",
    "application/xhtml+xml": "temma.views.jinja.JinjaView",
    "application/json": "temma.views.json.JsonView",
}


def _mime_match(pattern: str, accepted: str) -> bool:
    if accepted in ("*/*", pattern):
        return True
    if accepted.endswith("/*"):
        return pattern.split("/")[0] == accepted[:-2]
    return False


class View(Attribute):
    """
    Select the view of the response.

    Args:
        view: View class or dotted path
        negotiation: True picks a view from the Accept header; a list of
            MIME types (or aliases like ``"json"``) or a mapping of MIME
            type to view restricts the choice
    """

    def __init__(self, view: Any = None, negotiation: Union[bool, str, Iterable[str], Dict[str, Any], None] = None):
        self.view = view
        self.negotiation = negotiation

    def apply(self, context: AttributeContext) -> None:
        if self.negotiation:
            chosen = self._negotiate(context.request.accepted_formats())
            if chosen is not None:
                context.view(chosen)
                return
        context.view(self.view)

    def _negotiate(self, accepted_formats) -> Optional[Any]:
        if self.negotiation is True:
            for accepted in accepted_formats:
                if accepted == "text/html":
                    return None
                if accepted in MIME_TO_VIEW:
                    return MIME_TO_VIEW[accepted]
            return None

        candidates: Dict[str, Any] = {}
        negotiation = self.negotiation
        if isinstance(negotiation, str):
            negotiation = [item.strip() for item in negotiation.split(",")]
        if isinstance(negotiation, dict):
            for mime, view in negotiation.items():
                candidates[MIME_ALIASES.get(mime, mime)] = view
        else:
            for item in negotiation:
                mime = MIME_ALIASES.get(item, item)
                if mime in MIME_TO_VIEW:
                    candidates[mime] = MIME_TO_VIEW[mime]

        for accepted in accepted_formats:
            for mime, view in candidates.items():
                if _mime_match(mime, accepted):
                    return view
        return None


class Template(Attribute):
    """Set the template of the response."""

    def __init__(self, template: str):
        self.template = template

    def apply(self, context: AttributeContext) -> None:
        context.template(self.template)
