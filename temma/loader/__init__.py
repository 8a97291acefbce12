"""
Temma Loader - dependency injection container.

Exports:
- Loader: named bindings, lazy/dynamic factories, aliases, prefixes,
  constructor autowiring and circular dependency detection
- Loadable: marker base for classes built with the loader as argument
- ParameterCache: process-wide autowiring descriptor cache
"""

from .autowire import ParamSpec, ParameterCache, check_type, default_parameter_cache
from .core import MISSING, Alias, Dynamic, Lazy, Loader
from .loadable import Loadable

__all__ = [
    "Loader",
    "Loadable",
    "Dynamic",
    "Lazy",
    "Alias",
    "MISSING",
    "ParamSpec",
    "ParameterCache",
    "check_type",
    "default_parameter_cache",
]
