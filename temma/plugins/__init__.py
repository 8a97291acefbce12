"""
Temma Plugins

- Plugin: base class
- Router: configured routes (``x-router``)
- Language: language prefix in URLs (``x-language``)
- KebabCaseUrl: kebab-case controller and action names
- Api: versioned API URLs (``/v1/user/list``)
"""

from .base import Plugin
from .api import Api
from .kebab_case import KebabCaseUrl
from .language import Language
from .router import Router

__all__ = ["Plugin", "Router", "Language", "KebabCaseUrl", "Api"]
