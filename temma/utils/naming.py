"""
Naming utilities: dotted class paths and controller name conventions.
"""

import importlib
import re
from typing import Any, Optional


def qualified_name(obj: Any) -> str:
    """Return ``module.QualName`` for a class or function."""
    module = getattr(obj, "__module__", None)
    qualname = getattr(obj, "__qualname__", None) or getattr(obj, "__name__", None)
    if module and qualname:
        return f"{module}.{qualname}"
    return str(obj)


def import_string(path: str) -> Optional[Any]:
    """
    Import ``package.module.Attribute`` and return the attribute.

    Also accepts ``package.module.submodule`` holding an attribute of the
    capitalized name (``app.controllers.user.User``, given as
    ``app.controllers.User``). Returns ``None`` when nothing matches.
    """
    module_path, _, attr = path.rpartition(".")
    if not module_path or not attr:
        return None

    module = _import_module(module_path)
    if module is None:
        return None

    target = getattr(module, attr, None)
    if target is not None:
        return target

    # One module per class, named after the class
    submodule = _import_module(f"{module_path}.{attr.lower()}")
    if submodule is None:
        return None
    return getattr(submodule, attr, None)


def _import_module(path: str):
    """Import a module, returning None only when that module itself is missing."""
    try:
        return importlib.import_module(path)
    except ModuleNotFoundError as exc:
        if exc.name and not path.startswith(exc.name):
            raise
        return None


def ucfirst(name: str) -> str:
    return name[:1].upper() + name[1:]


def lcfirst(name: str) -> str:
    return name[:1].lower() + name[1:]


def starts_lowercase(name: str) -> bool:
    """True when the first character is an ASCII lowercase letter."""
    return bool(name) and "a" <= name[0] <= "z"


_KEBAB_RE = re.compile(r"-([a-z0-9])")


def kebab_to_camel(name: str) -> str:
    """``user-profile`` -> ``userProfile``."""
    return _KEBAB_RE.sub(lambda m: m.group(1).upper(), name)
