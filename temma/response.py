"""
Response - outbound response accumulator.

One Response exists per request. Controllers (through their executor),
plugins and attributes mutate it with narrow setters; the dispatcher and
the view read it once at the end.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Tuple


class Response:
    """
    Mutable response state.

    Attributes:
        http_code: Status sent with the view output (default 200)
        http_error: Error code; when set, the dispatcher raises it
        redirect_url: Redirection target; when set, no view is rendered
        redirect_code: 302, or 301 for permanent redirections
        view: View class or dotted path, overriding the configured default
        template: Explicit template name
        template_prefix: Prefix prepended to the template path
        headers: Extra headers sent by the view
    """

    def __init__(self, view: Optional[Any] = None, template_prefix: Optional[str] = None):
        self.http_code = 200
        self.http_error: Optional[int] = None
        self.redirect_url: Optional[str] = None
        self.redirect_code = 302
        self.view = view
        self.template: Optional[str] = None
        self.template_prefix = template_prefix
        self.headers: List[Tuple[str, str]] = []
        self._data: Dict[str, Any] = {}
        self._prepend: List[str] = []
        self._append: List[str] = []

    # ========================================================================
    # Setters
    # ========================================================================

    def set_http_code(self, code: int) -> None:
        self.http_code = code

    def set_http_error(self, code: Optional[int]) -> None:
        self.http_error = code

    def set_redirection(self, url: Optional[str], permanent: bool = False) -> None:
        """Set the redirection URL (``None`` cancels it)."""
        self.redirect_url = url
        self.redirect_code = 301 if permanent else 302

    def set_view(self, view: Optional[Any]) -> None:
        self.view = view

    def set_template(self, template: Optional[str]) -> None:
        self.template = template

    def set_template_prefix(self, prefix: Optional[str]) -> None:
        self.template_prefix = prefix

    def set_header(self, name: str, value: str) -> None:
        self.headers.append((name, value))

    # ========================================================================
    # Body fragments
    # ========================================================================

    def prepend(self, text: str) -> None:
        """Register text sent before the view body."""
        self._prepend.append(text)

    def append(self, text: str) -> None:
        """Register text sent after the view body."""
        self._append.append(text)

    @property
    def prepended(self) -> str:
        return "".join(self._prepend)

    @property
    def appended(self) -> str:
        return "".join(self._append)

    # ========================================================================
    # Template variables
    # ========================================================================

    def get(self, name: str, default: Any = None) -> Any:
        """
        Return a template variable.

        When the variable is missing and a default is given, the default
        is stored and returned.
        """
        if name in self._data:
            return self._data[name]
        if default is not None:
            self._data[name] = default
        return default

    def set(self, name: str, value: Any) -> None:
        self._data[name] = value

    def has(self, name: str) -> bool:
        return name in self._data

    def delete(self, name: str) -> None:
        self._data.pop(name, None)

    def update(self, values: Mapping[str, Any]) -> None:
        self._data.update(values)

    @property
    def data(self) -> Dict[str, Any]:
        """Copy of every template variable."""
        return dict(self._data)

    def __repr__(self) -> str:
        return (
            f"<Response code={self.http_code} error={self.http_error} "
            f"redirect={self.redirect_url!r} view={self.view!r} template={self.template!r}>"
        )
