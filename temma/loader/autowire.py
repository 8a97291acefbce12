"""
Parameter analysis for autowiring.

Extracts, once per callable, the name, candidate types, nullability and
default of each parameter. Descriptors are kept in a ``ParameterCache``
that the loader receives as a dependency, so tests can swap in a fresh one.
"""

from __future__ import annotations

import inspect
import threading
import types
import typing
import weakref
from dataclasses import dataclass
from typing import Any, Callable, Tuple

from ..faults import UnsupportedTypeFault
from ..utils.naming import qualified_name


# Types only ever checked, never looked up or instantiated
SCALAR_TYPES = frozenset({
    int, float, str, bool, bytes, list, dict, tuple, set, frozenset, object,
})


@dataclass(frozen=True)
class ParamSpec:
    """Autowiring descriptor for one parameter."""
    name: str
    types: Tuple[type, ...]
    nullable: bool
    has_default: bool
    default: Any
    positional_only: bool = False

    @property
    def lookup_types(self) -> Tuple[type, ...]:
        """Types usable as loader keys."""
        return tuple(t for t in self.types if t not in SCALAR_TYPES)


class ParameterCache:
    """
    Process-wide cache of parameter descriptors, keyed by callable.

    Writes are guarded since one cache is shared by every request.
    """

    def __init__(self):
        # Bound methods are keyed on their function, without "self"
        self._plain: "weakref.WeakKeyDictionary[Any, Tuple[ParamSpec, ...]]" = weakref.WeakKeyDictionary()
        self._bound: "weakref.WeakKeyDictionary[Any, Tuple[ParamSpec, ...]]" = weakref.WeakKeyDictionary()
        self._lock = threading.Lock()

    def get(self, func: Callable[..., Any]) -> Tuple[ParamSpec, ...]:
        if inspect.ismethod(func):
            cache, key = self._bound, func.__func__
        else:
            cache, key = self._plain, func
        try:
            specs = cache.get(key)
        except TypeError:
            # Not weak-referenceable (builtins, some callables)
            return extract_parameters(func)
        if specs is None:
            specs = extract_parameters(func)
            with self._lock:
                cache[key] = specs
        return specs

    def reset(self) -> None:
        """Forget every cached descriptor."""
        with self._lock:
            self._plain.clear()
            self._bound.clear()

    def __len__(self) -> int:
        return len(self._plain) + len(self._bound)


default_parameter_cache = ParameterCache()


def extract_parameters(func: Callable[..., Any]) -> Tuple[ParamSpec, ...]:
    """
    Build the parameter descriptors of a class constructor or a callable.

    Variadic parameters are ignored.
    """
    target = qualified_name(func)
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return ()

    hints_source = func.__init__ if isinstance(func, type) else func
    try:
        hints = typing.get_type_hints(hints_source)
    except Exception:
        hints = {}

    specs = []
    for param in sig.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = hints.get(param.name, param.annotation)
        param_types, nullable = _analyze_annotation(annotation, target, param.name)
        has_default = param.default is not param.empty
        specs.append(ParamSpec(
            name=param.name,
            types=param_types,
            nullable=nullable,
            has_default=has_default,
            default=param.default if has_default else None,
            positional_only=param.kind == param.POSITIONAL_ONLY,
        ))
    return tuple(specs)


def _analyze_annotation(annotation: Any, target: str, name: str) -> Tuple[Tuple[type, ...], bool]:
    """Return (candidate types, nullable) for an annotation."""
    if annotation is inspect.Parameter.empty or isinstance(annotation, (str, typing.ForwardRef)):
        return (), False
    if annotation is Any:
        return (), True
    if annotation is None or annotation is type(None):
        return (), True

    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        collected = []
        nullable = False
        for arg in typing.get_args(annotation):
            arg_types, arg_nullable = _analyze_annotation(arg, target, name)
            collected.extend(arg_types)
            nullable = nullable or arg_nullable
        return tuple(collected), nullable
    if origin is typing.Annotated:
        return _analyze_annotation(typing.get_args(annotation)[0], target, name)
    if isinstance(origin, type):
        return (origin,), False
    if isinstance(annotation, type):
        return (annotation,), False

    raise UnsupportedTypeFault(target, name)


def check_type(value: Any, param_types: Tuple[type, ...]) -> bool:
    """
    Tell whether ``value`` is compatible with any of the given types.

    An empty type list accepts everything. ``int`` is accepted for ``float``.
    """
    if not param_types:
        return True
    for param_type in param_types:
        if param_type is object:
            return True
        if param_type is float and isinstance(value, int) and not isinstance(value, bool):
            return True
        if isinstance(value, param_type):
            return True
    return False
