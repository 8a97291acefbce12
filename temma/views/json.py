"""
JSON view.

The output is the ``@output`` template variable, else ``json``, else
every template variable except ``filename`` and ``jsonDebug``.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Optional, Tuple

from ..view import HeaderItems, View

_FILENAME_RE = re.compile(r"[^\w.\-]+")


class JsonView(View):
    GENERIC_HEADERS = {
        "Content-Type": "application/json; charset=UTF-8",
        "Cache-Control": "no-cache, no-store, must-revalidate, max-age=0",
        "Pragma": "no-cache",
    }

    def init(self) -> None:
        data = self.response.data
        self.filename: Optional[str] = data.get("filename")
        self.debug = bool(data.get("jsonDebug", False))
        if "@output" in data:
            self.payload: Any = data["@output"]
        elif "json" in data:
            self.payload = data["json"]
        else:
            data.pop("filename", None)
            data.pop("jsonDebug", None)
            self.payload = data

    def headers(self, extra: HeaderItems = None) -> List[Tuple[str, str]]:
        headers = super().headers(extra)
        if getattr(self, "filename", None):
            safe_name = _FILENAME_RE.sub("-", self.filename).strip("-") or "data.json"
            headers.append(("Content-Disposition", f'attachment; filename="{safe_name}"'))
        return headers

    async def render(self) -> str:
        if self.debug:
            return json.dumps(self.payload, indent=4, ensure_ascii=False, default=str)
        return json.dumps(self.payload, ensure_ascii=False, default=str)
