"""
Route table - typed URL patterns mapped to controller actions.

Configuration (``x-router``)::

    "GET:/users/[id:int]":            "User::show($id)"
    "/articles/[slug:string]":        "Article::view($slug, 'full')"
    "GET:/feed/[fmt:enum:rss,atom]":  {"action": "Feed::export($fmt)", "_pre": ["Cache"]}

One trie is built per HTTP method (``*`` when the key has no method).
Matching is depth-first with backtracking; at each depth a literal
segment wins over typed placeholders, tried as enum, int, float, string.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .faults import RouteConfigFault
from .utils.urls import split_path

logger = logging.getLogger("temma.router")

# Priority order of typed placeholders
ROUTE_TYPES = ("enum", "int", "float", "string")

_KEY_RE = re.compile(r"^([A-Za-z]+|\*):(/.*)$")
_PLACEHOLDER_RE = re.compile(r"^\[(\w+):(\w+)(?::(.+))?\]$")
_EXEC_RE = re.compile(r"^\s*([\w.]+)\s*(?:::\s*(\w+)\s*(?:\((.*)\))?)?\s*$", re.S)
_ARG_RE = re.compile(
    r"""\s*(?:\$(\w+)|'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)"|([^,'"\s]+))\s*(?:,|$)"""
)
_INT_RE = re.compile(r"^\d+$", re.ASCII)
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$", re.ASCII)

_NO_MATCH = object()


@dataclass(frozen=True)
class BoundArg:
    """Reference to a placeholder value (``$name`` in an exec spec)."""
    name: str


@dataclass(frozen=True)
class ExecTarget:
    """
    Action descriptor attached to a route.

    ``args`` is None when the exec spec has no argument list; the bound
    values are then passed in URL order.
    """
    controller: str
    action: Optional[str] = None
    args: Optional[Tuple[Any, ...]] = None
    pre_plugins: Tuple[Any, ...] = ()
    post_plugins: Tuple[Any, ...] = ()
    source: str = ""

    @classmethod
    def parse(cls, spec: Any, route: str = "") -> "ExecTarget":
        """
        Parse ``"Ctrl"``, ``"Ctrl::action"``, ``"Ctrl::action(args)"`` or a
        mapping ``{"action": ..., "_pre": [...], "_post": [...]}``.

        Raises:
            RouteConfigFault: Malformed spec
        """
        pre: Tuple[Any, ...] = ()
        post: Tuple[Any, ...] = ()
        if isinstance(spec, Mapping):
            pre = tuple(spec.get("_pre") or ())
            post = tuple(spec.get("_post") or ())
            spec = spec.get("action")
        if not isinstance(spec, str) or not spec.strip():
            raise RouteConfigFault(route, "missing exec target")

        match = _EXEC_RE.match(spec)
        if not match:
            raise RouteConfigFault(route, f"cannot parse exec target '{spec}'")
        controller, action, arg_text = match.groups()
        args = _parse_args(arg_text, route) if arg_text is not None else None
        return cls(
            controller=controller,
            action=action,
            args=args,
            pre_plugins=pre,
            post_plugins=post,
            source=spec.strip(),
        )

    def bound_names(self) -> List[str]:
        return [arg.name for arg in self.args or () if isinstance(arg, BoundArg)]

    def resolve_params(self, bound: Mapping[str, Any]) -> List[Any]:
        """Final positional parameter list for a match."""
        if self.args is None:
            return list(bound.values())
        return [bound.get(arg.name) if isinstance(arg, BoundArg) else arg for arg in self.args]


def _parse_args(text: str, route: str) -> Tuple[Any, ...]:
    text = text.strip()
    args: List[Any] = []
    pos = 0
    while pos < len(text):
        match = _ARG_RE.match(text, pos)
        if not match or match.end() == pos:
            raise RouteConfigFault(route, f"bad argument list '({text})'")
        name, single, double, bare = match.groups()
        if name is not None:
            args.append(BoundArg(name))
        elif single is not None:
            args.append(single.replace("\\'", "'"))
        elif double is not None:
            args.append(double.replace('\\"', '"'))
        else:
            args.append(_literal(bare))
        pos = match.end()
    return tuple(args)


def _literal(token: str) -> Any:
    lowered = token.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    if lowered in ("null", "none"):
        return None
    if re.match(r"^[+-]?\d+$", token):
        return int(token)
    if _FLOAT_RE.match(token):
        return float(token)
    return token


@dataclass
class TypedBranch:
    """Placeholder edge: binds the segment under ``name``."""
    name: str
    values: Optional[Tuple[str, ...]]
    node: "RouteNode"


@dataclass
class RouteNode:
    exec_target: Optional[ExecTarget] = None
    static_children: Dict[str, "RouteNode"] = field(default_factory=dict)
    typed_children: Dict[str, List[TypedBranch]] = field(default_factory=dict)


@dataclass(frozen=True)
class RouteMatch:
    """Result of a successful match."""
    target: ExecTarget
    bound_params: Dict[str, Any]
    method: str

    @property
    def params(self) -> List[Any]:
        return self.target.resolve_params(self.bound_params)


def _convert(route_type: str, segment: str, values: Optional[Tuple[str, ...]]) -> Any:
    """Typed value of a segment, or _NO_MATCH."""
    if route_type == "enum":
        return segment if values and segment in values else _NO_MATCH
    if route_type == "int":
        return int(segment) if _INT_RE.match(segment) else _NO_MATCH
    if route_type == "float":
        return float(segment) if _FLOAT_RE.match(segment) else _NO_MATCH
    return segment


class RouteTable:
    """
    Immutable-after-build route trie.

    Example:
        ```python
        table = RouteTable.build({"GET:/users/[id:int]": "User::show($id)"})
        match = table.match("GET", ["users", "42"])
        match.target.controller, match.target.action, match.params
        # ("User", "show", [42])
        ```
    """

    def __init__(self):
        self._roots: Dict[str, RouteNode] = {}
        self._rows: List[Tuple[str, str, str]] = []

    @classmethod
    def build(cls, routes: Optional[Mapping[str, Any]]) -> "RouteTable":
        table = cls()
        for key, spec in (routes or {}).items():
            table.add(key, spec)
        logger.debug(f"Route table built with {len(table)} routes")
        return table

    def add(self, key: str, spec: Any) -> None:
        """
        Insert one route.

        Raises:
            RouteConfigFault: Bad placeholder, unknown type or exec spec
        """
        method, pattern = self._split_key(key)
        target = ExecTarget.parse(spec, key)

        node = self._roots.setdefault(method, RouteNode())
        placeholders = set()
        for segment in split_path(pattern):
            if segment.startswith("["):
                name, route_type, values = self._parse_placeholder(segment, key)
                placeholders.add(name)
                node = self._typed_child(node, name, route_type, values)
            else:
                node = node.static_children.setdefault(segment, RouteNode())

        for name in target.bound_names():
            if name not in placeholders:
                raise RouteConfigFault(key, f"unknown parameter '${name}'")

        if node.exec_target is not None:
            logger.warning(f"Route '{key}' overrides '{node.exec_target.source}'")
        node.exec_target = target
        self._rows.append((method, pattern, target.source))

    @staticmethod
    def _split_key(key: str) -> Tuple[str, str]:
        match = _KEY_RE.match(key.strip())
        if match:
            return match.group(1).upper(), match.group(2)
        if not key.strip().startswith("/"):
            raise RouteConfigFault(key, "pattern must start with '/'")
        return "*", key.strip()

    @staticmethod
    def _parse_placeholder(segment: str, key: str) -> Tuple[str, str, Optional[Tuple[str, ...]]]:
        match = _PLACEHOLDER_RE.match(segment)
        if not match:
            raise RouteConfigFault(key, f"bad typed parameter '{segment}'")
        name, route_type, extra = match.groups()
        if route_type not in ROUTE_TYPES:
            raise RouteConfigFault(key, f"unknown parameter type '{route_type}'")
        values = None
        if route_type == "enum":
            values = tuple(v.strip() for v in (extra or "").split(",") if v.strip())
            if not values:
                raise RouteConfigFault(key, f"enum parameter '{name}' has no values")
        return name, route_type, values

    @staticmethod
    def _typed_child(node: RouteNode, name: str, route_type: str, values) -> RouteNode:
        branches = node.typed_children.setdefault(route_type, [])
        for branch in branches:
            if branch.name == name and branch.values == values:
                return branch.node
        branch = TypedBranch(name=name, values=values, node=RouteNode())
        branches.append(branch)
        return branch.node

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def match(self, method: str, segments: Sequence[str]) -> Optional[RouteMatch]:
        """Match path segments, trying the request method then ``*``."""
        for candidate in (method.upper(), "*"):
            root = self._roots.get(candidate)
            if root is None:
                continue
            found = self._search(root, list(segments), 0, {})
            if found is not None:
                target, bound = found
                return RouteMatch(target=target, bound_params=bound, method=candidate)
        return None

    def match_path(self, method: str, path: str) -> Optional[RouteMatch]:
        return self.match(method, split_path(path))

    def _search(self, node: RouteNode, segments: List[str], index: int, bound: Dict[str, Any]):
        if index == len(segments):
            if node.exec_target is not None:
                return node.exec_target, bound
            return None

        segment = segments[index]
        child = node.static_children.get(segment)
        if child is not None:
            found = self._search(child, segments, index + 1, bound)
            if found is not None:
                return found

        for route_type in ROUTE_TYPES:
            for branch in node.typed_children.get(route_type, ()):
                value = _convert(route_type, segment, branch.values)
                if value is _NO_MATCH:
                    continue
                found = self._search(branch.node, segments, index + 1, {**bound, branch.name: value})
                if found is not None:
                    return found
        return None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def describe(self) -> Iterator[Tuple[str, str, str]]:
        """Yield (method, pattern, exec) rows in configuration order."""
        return iter(self._rows)

    def __len__(self) -> int:
        return len(self._rows)
