"""
Jinja2 template view.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Optional, Union

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from ..faults import TemplateNotFoundFault
from ..view import View

TEMPLATE_EXTENSION = ".html"


class JinjaView(View):
    """
    Renders ``<templates>/<prefix>/<controller>/<action>.html`` with the
    response data as context.

    One Environment is kept per templates directory for the process.
    """

    _environments: Dict[str, Environment] = {}
    _lock = threading.Lock()

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.template_path: Optional[Path] = None
        self.template_name: Optional[str] = None
        self._template: Optional[Template] = None

    def uses_templates(self) -> bool:
        return True

    def set_template(self, path: Union[str, Path], template: str) -> None:
        """
        Raises:
            TemplateNotFoundFault: The template file doesn't exist
        """
        full_path = Path(path) / template
        if not full_path.is_file():
            raise TemplateNotFoundFault(str(full_path))
        self.template_path = Path(path)
        self.template_name = template

    @classmethod
    def environment(cls, path: Path) -> Environment:
        key = str(path)
        with cls._lock:
            env = cls._environments.get(key)
            if env is None:
                env = Environment(
                    loader=FileSystemLoader(key),
                    autoescape=select_autoescape(
                        enabled_extensions=["html", "htm", "xml"],
                        default_for_string=True,
                    ),
                    enable_async=True,
                )
                cls._environments[key] = env
        return env

    def init(self) -> None:
        if self.template_name is None:
            return
        env = self.environment(self.template_path)
        self._template = env.get_template(self.template_name)

    async def render(self) -> str:
        if self._template is None:
            return ""
        return await self._template.render_async(self.response.data)
