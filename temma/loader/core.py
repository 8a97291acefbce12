"""
Loader - the dependency injection container.

A loader holds named bindings for one request: plain values, lazy
factories (evaluated once), dynamic factories (evaluated at every fetch),
aliases and key prefixes. Unknown keys naming a class are instantiated,
with constructor parameters autowired by type, then by name.
"""

from __future__ import annotations

import functools
import inspect
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..faults import (
    AbstractClassFault,
    BadParameterFault,
    CircularDependencyFault,
    LoaderFault,
)
from ..flow import ExecStatus, invoke
from ..utils.naming import import_string, qualified_name
from .autowire import ParamSpec, ParameterCache, check_type, default_parameter_cache
from .loadable import Loadable


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


class Dynamic:
    """Factory evaluated at every fetch."""
    __slots__ = ("factory",)

    def __init__(self, factory: Callable[..., Any]):
        self.factory = factory


class Lazy:
    """Factory evaluated on first fetch; its result replaces the binding."""
    __slots__ = ("factory",)

    def __init__(self, factory: Callable[..., Any]):
        self.factory = factory


class Alias:
    """Points to another key, resolved at every fetch."""
    __slots__ = ("target",)

    def __init__(self, target: str):
        self.target = target


def _is_factory(value: Any) -> bool:
    """Plain functions stored as values are lazy factories."""
    return inspect.isfunction(value) or isinstance(value, functools.partial)


class Loader:
    """
    Dependency injection container.

    Resolution order for ``get(key)``:
    1. Stored binding (dynamic, lazy or plain value; aliases follow their target)
    2. Registered prefixes matching the start of the key
    3. ``default`` when ``auto_instantiate`` is False
    4. Instantiation of the class the key names, then the builders

    Example:
        ```python
        loader = Loader({"config": config})
        loader.lazy("mailer", lambda config: Mailer(config.xtra("mail")))
        loader.dynamic("now", datetime.now)
        loader.alias("settings", "config")
        mailer = loader.get("mailer")
        ```
    """

    SELF_KEYS = frozenset({"loader", "Loader"})

    Dynamic = Dynamic
    Lazy = Lazy
    Alias = Alias

    def __init__(
        self,
        data: Optional[Mapping[Any, Any]] = None,
        *,
        builder: Optional[Callable[["Loader", str], Any]] = None,
        parameter_cache: Optional[ParameterCache] = None,
    ):
        self._data: Dict[str, Any] = {}
        self._prefixes: Dict[str, Any] = {}
        self._builder = builder
        self._params = parameter_cache or default_parameter_cache
        self._resolving: List[str] = []
        self.logger = logging.getLogger("temma.loader")
        if data:
            self.set_many(data)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    @staticmethod
    def key_for(key: Any) -> str:
        """Normalize a key: classes and functions use their dotted name."""
        if isinstance(key, str):
            return key
        return qualified_name(key)

    def _is_self_key(self, key: Any) -> bool:
        if isinstance(key, str):
            return key in self.SELF_KEYS or key == qualified_name(type(self))
        return isinstance(key, type) and issubclass(key, Loader) and isinstance(self, key)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def set(self, key: Any, value: Any) -> "Loader":
        """Store a binding. Setting ``None`` removes it."""
        name = self.key_for(key)
        if value is None:
            self._data.pop(name, None)
        else:
            self._data[name] = value
        return self

    def set_many(self, data: Mapping[Any, Any]) -> "Loader":
        for key, value in data.items():
            self.set(key, value)
        return self

    def lazy(self, key: Any, factory: Callable[..., Any]) -> "Loader":
        """Bind a factory evaluated once, on first fetch."""
        self._data[self.key_for(key)] = Lazy(factory)
        return self

    def dynamic(self, key: Any, factory: Callable[..., Any]) -> "Loader":
        """Bind a factory evaluated at every fetch."""
        self._data[self.key_for(key)] = Dynamic(factory)
        return self

    def alias(self, key: Any, aliased: Any) -> "Loader":
        """Make ``key`` resolve to whatever ``aliased`` resolves to."""
        self._data[self.key_for(key)] = Alias(self.key_for(aliased))
        return self

    def aliases(self, mapping: Mapping[Any, Any]) -> "Loader":
        for key, aliased in mapping.items():
            self.alias(key, aliased)
        return self

    def prefix(self, name: str, target: Any) -> "Loader":
        """
        Register a key prefix.

        ``target`` is either a dotted prefix prepended to the rest of the
        key to form a class path, or a callable ``(loader, short_key)``.
        A ``None`` target removes the prefix.
        """
        if target is None:
            self._prefixes.pop(name, None)
        else:
            self._prefixes[name] = target
        return self

    def prefixes(self, mapping: Mapping[str, Any]) -> "Loader":
        for name, target in mapping.items():
            self.prefix(name, target)
        return self

    def has(self, key: Any) -> bool:
        """True when a binding is stored under the key (no instantiation)."""
        return self._is_self_key(key) or self.key_for(key) in self._data

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get(self, key: Any, default: Any = None, auto_instantiate: bool = True) -> Any:
        """
        Resolve a key.

        Args:
            key: Binding name, class, or dotted class path
            default: Value returned when nothing can be resolved
            auto_instantiate: Allow instantiating the class the key names

        Raises:
            CircularDependencyFault: The key is already being resolved
        """
        if self._is_self_key(key):
            return self

        name = self.key_for(key)
        if name in self._resolving:
            raise CircularDependencyFault(name, self._resolving + [name])

        self._resolving.append(name)
        try:
            return self._resolve(key, name, default, auto_instantiate)
        finally:
            self._resolving.pop()

    def _resolve(self, key: Any, name: str, default: Any, auto_instantiate: bool) -> Any:
        if name in self._data:
            return self._unwrap(name)

        for prefix, target in self._prefixes.items():
            if not name.startswith(prefix) or len(name) == len(prefix):
                continue
            short_key = name[len(prefix):]
            if callable(target) and not isinstance(target, type):
                value = target(self, short_key)
            else:
                value = self.instantiate(f"{target}{short_key}", default=None)
            if value is not None:
                self.logger.debug(f"Key '{name}' resolved through prefix '{prefix}'")
                self._data[name] = value
                return self._unwrap(name)

        if not auto_instantiate:
            return default

        value = self.instantiate(key if not isinstance(key, str) else name, default=MISSING)
        if value is MISSING:
            return default
        self._data[name] = value
        return value

    def _unwrap(self, name: str) -> Any:
        item = self._data[name]
        if isinstance(item, Dynamic):
            return self.call(item.factory)
        if isinstance(item, Alias):
            return self.get(item.target)
        if isinstance(item, Lazy) or _is_factory(item):
            factory = item.factory if isinstance(item, Lazy) else item
            value = self.call(factory)
            self._data[name] = value
            return value
        return item

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    def instantiate(self, target: Any, default: Any = None) -> Any:
        """
        Build an object from a class, a dotted class path or a function.

        Loadable classes get the loader as only argument, DAO classes go
        through the current controller, controllers get
        ``(loader, executor)``, anything else is autowired. When no class
        matches, the builder callback and ``builder()`` method are tried,
        then ``default`` (called with autowiring if it is a function).

        Raises:
            AbstractClassFault: The class is abstract
            BadParameterFault: A constructor parameter cannot be resolved
        """
        obj = target
        if isinstance(target, str):
            obj = import_string(target) if "." in target else None

        if inspect.isfunction(obj):
            return self.call(obj)

        if isinstance(obj, type):
            return self._build_class(obj)

        name = self.key_for(target)
        if self._builder is not None:
            result = self._builder(self, name)
            if result is not None:
                return result
        result = self.builder(name)
        if result is not None:
            return result

        if _is_factory(default):
            return self.call(default)
        return default

    def _build_class(self, cls: type) -> Any:
        # Local imports: both modules depend on the loader
        from ..controller.base import Controller
        from ..dao import Dao

        if issubclass(cls, Loadable):
            return cls(self)

        if issubclass(cls, Dao):
            controller = self._data.get("controller")
            if isinstance(controller, Controller):
                return controller._load_dao(cls)

        if inspect.isabstract(cls):
            raise AbstractClassFault(qualified_name(cls))

        if issubclass(cls, Controller):
            executor = self._data.get("parentController") or self._data.get("controller")
            return cls(self, executor)

        args, kwargs = self._autowire(cls)
        self.logger.debug(f"Instantiating {qualified_name(cls)}")
        return cls(*args, **kwargs)

    def builder(self, key: str) -> Any:
        """Last-chance hook for subclasses: build the object for ``key``."""
        return None

    def call(self, func: Callable[..., Any], **explicit: Any) -> Any:
        """
        Invoke a callable with autowired parameters.

        Classes are instantiated. Keyword arguments given here take
        precedence over autowiring.
        """
        if isinstance(func, type):
            return self.instantiate(func)
        args, kwargs = self._autowire(func, explicit)
        return func(*args, **kwargs)

    # ------------------------------------------------------------------
    # Autowiring
    # ------------------------------------------------------------------

    def _autowire(self, func: Callable[..., Any], explicit: Optional[Dict[str, Any]] = None):
        target = qualified_name(func)
        args: List[Any] = []
        kwargs: Dict[str, Any] = {}
        for spec in self._params.get(func):
            if explicit and spec.name in explicit:
                value = explicit[spec.name]
            else:
                value = self._resolve_parameter(spec, target)
                if value is MISSING:
                    continue
            if spec.positional_only:
                args.append(value)
            else:
                kwargs[spec.name] = value
        return args, kwargs

    def _resolve_parameter(self, spec: ParamSpec, target: str) -> Any:
        """
        Find the value of one parameter.

        (a) by type, without instantiation; (b) by name, type-checked;
        (c) by type, with instantiation; (d) the parameter's default.
        Returns MISSING to let the default apply.
        """
        lookup_types = spec.lookup_types
        failures: List[LoaderFault] = []

        for param_type in lookup_types:
            value = self._quiet_get(param_type, False, failures)
            if value is not None and isinstance(value, param_type):
                return value

        value = self._quiet_get(spec.name, False, failures)
        if value is not None and check_type(value, spec.types):
            return value

        for param_type in lookup_types:
            value = self._quiet_get(param_type, True, failures)
            if value is not None and isinstance(value, param_type):
                return value

        if spec.has_default:
            return MISSING
        if spec.nullable:
            return None
        fault = BadParameterFault(spec.name, target)
        if failures:
            # Last failed lookup, raised deeper in the graph
            fault.metadata["cause"] = str(failures[-1])
            raise fault from failures[-1]
        raise fault

    def _quiet_get(self, key: Any, auto_instantiate: bool, failures: List[LoaderFault]) -> Any:
        try:
            return self.get(key, None, auto_instantiate)
        except CircularDependencyFault:
            raise
        except LoaderFault as exc:
            self.logger.debug(f"Lookup of '{self.key_for(key)}' failed: {exc}")
            failures.append(exc)
            return None

    # ------------------------------------------------------------------
    # Attributes (interceptors)
    # ------------------------------------------------------------------

    async def apply_attributes(self, target: Any, method: Optional[str] = None) -> ExecStatus:
        """
        Run the interceptors attached to a controller class and its bases,
        or to one of its methods when ``method`` is given.

        Returns the first non-FORWARD status, FORWARD otherwise.
        Attributes may implement ``apply`` as a coroutine.
        """
        from ..attributes.base import AttributeContext, attributes_of

        cls = target if isinstance(target, type) else type(target)
        if method is None:
            attributes = [
                attribute
                for klass in reversed(cls.__mro__)
                for attribute in attributes_of(klass)
            ]
        else:
            attributes = list(attributes_of(getattr(cls, method, None)))

        if not attributes:
            return ExecStatus.FORWARD

        context = AttributeContext(loader=self, target=cls, method=method)
        for attribute in attributes:
            status = ExecStatus.of(await invoke(attribute.apply, context))
            if status is not ExecStatus.FORWARD:
                self.logger.debug(
                    f"Attribute {type(attribute).__name__} on {cls.__name__} returned {status.name}"
                )
                return status
        return ExecStatus.FORWARD

    def __repr__(self) -> str:
        return f"<Loader keys={sorted(self._data)}>"
