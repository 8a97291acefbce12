"""
Temma - MVC request dispatch framework

Complete integration of:
- Router: Typed route table mapping method and path to controller actions
- Loader: Dependency injection container with autowiring
- Controllers: Action resolution, sub-controllers and template variables
- Plugins: Pre/post processing pipeline with flow control
- Views: Jinja2 templates and JSON output
- Faults: Structured error handling mapped to HTTP statuses
"""

__version__ = "2.0.0"

# ============================================================================
# Core Framework
# ============================================================================

from .config import Config, ConfigLoader
from .request import Request
from .response import Response
from .flow import ExecStatus
from .framework import Framework
from .asgi import TemmaApp

# ============================================================================
# Dependency Injection
# ============================================================================

from .loader import Loader, Loadable

# ============================================================================
# Routing
# ============================================================================

from .routing import RouteTable, RouteMatch, ExecTarget

# ============================================================================
# Controllers & Plugins
# ============================================================================

from .controller import Controller, ControllerEngine
from .plugins import Plugin, Router, Language, KebabCaseUrl, Api
from .pipeline import PluginPipeline

# ============================================================================
# Views
# ============================================================================

from .view import View, ResponseWriter

# ============================================================================
# Data sources
# ============================================================================

from .datasource import Datasource
from .dao import Dao

# ============================================================================
# Faults
# ============================================================================

from .faults import (
    Fault,
    FrameworkFault,
    ConfigFault,
    TooManyRebootsFault,
    HttpFault,
    ApplicationFault,
    LoaderFault,
    TemplateNotFoundFault,
)

__all__ = [
    "__version__",
    "Config",
    "ConfigLoader",
    "Request",
    "Response",
    "ExecStatus",
    "Framework",
    "TemmaApp",
    "Loader",
    "Loadable",
    "RouteTable",
    "RouteMatch",
    "ExecTarget",
    "Controller",
    "ControllerEngine",
    "Plugin",
    "Router",
    "Language",
    "KebabCaseUrl",
    "Api",
    "PluginPipeline",
    "View",
    "ResponseWriter",
    "Datasource",
    "Dao",
    "Fault",
    "FrameworkFault",
    "ConfigFault",
    "TooManyRebootsFault",
    "HttpFault",
    "ApplicationFault",
    "LoaderFault",
    "TemplateNotFoundFault",
]
