"""
Temma Faults - structured errors and their HTTP mapping.

Control-flow signals are NOT faults: see ``temma.flow.ExecStatus``.
"""

from .core import Fault, FaultDomain, Severity
from .domains import (
    FrameworkFault,
    ConfigFault,
    RouteConfigFault,
    TooManyRebootsFault,
    HttpFault,
    ApplicationFault,
    LoaderFault,
    BadParameterFault,
    AbstractClassFault,
    UnsupportedTypeFault,
    CircularDependencyFault,
    TemplateNotFoundFault,
)
from .status import http_status_for, reason_phrase

__all__ = [
    "Fault",
    "FaultDomain",
    "Severity",
    "FrameworkFault",
    "ConfigFault",
    "RouteConfigFault",
    "TooManyRebootsFault",
    "HttpFault",
    "ApplicationFault",
    "LoaderFault",
    "BadParameterFault",
    "AbstractClassFault",
    "UnsupportedTypeFault",
    "CircularDependencyFault",
    "TemplateNotFoundFault",
    "http_status_for",
    "reason_phrase",
]
