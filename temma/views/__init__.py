"""
Temma Views

- JinjaView: Jinja2 templates (default view)
- JsonView: JSON output
"""

from .jinja import JinjaView
from .json import JsonView

__all__ = ["JinjaView", "JsonView"]
