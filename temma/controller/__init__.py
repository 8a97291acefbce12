"""
Temma Controller - controller base class and execution engine.
"""

from .base import Controller
from .engine import PROXY_ACTION, ROOT_ACTION, ControllerEngine, ControllerNames, reserved_names

__all__ = [
    "Controller",
    "ControllerEngine",
    "ControllerNames",
    "ROOT_ACTION",
    "PROXY_ACTION",
    "reserved_names",
]
