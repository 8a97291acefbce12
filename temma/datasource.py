"""
Datasource capability.

Controllers and DAOs talk to storage through this narrow keyed interface.
The dispatch core never looks inside a datasource.
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .faults import ConfigFault

logger = logging.getLogger("temma.datasource")


class Datasource(ABC):
    """
    Keyed storage: ``get``/``set``/``remove`` plus bulk variants.

    Setting ``None`` removes the key.
    """

    @staticmethod
    def factory(dsn: str) -> "Datasource":
        """
        Build a datasource from a DSN.

        Supported schemes: ``memory://``, ``dummy://`` and ``env://VAR``
        (the DSN is read from an environment variable).

        Raises:
            ConfigFault: Unknown or empty DSN
        """
        logger.debug(f"Datasource creation with DSN '{dsn}'")
        if dsn.startswith("env://"):
            value = os.environ.get(dsn[len("env://"):])
            if not value:
                raise ConfigFault(f"Environment variable for DSN '{dsn}' is not set")
            return Datasource.factory(value)
        if dsn.startswith("memory://"):
            return MemoryDatasource()
        if dsn.startswith("dummy://"):
            return DummyDatasource()
        raise ConfigFault(f"No valid DSN provided '{dsn}'")

    def is_enabled(self) -> bool:
        return True

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        ...

    @abstractmethod
    def set(self, key: str, value: Any = None) -> None:
        ...

    def remove(self, key: str) -> None:
        self.set(key, None)

    def mget(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Fetch several keys; missing ones are left out."""
        result = {}
        for key in keys:
            value = self.get(key)
            if value is not None:
                result[key] = value
        return result

    def mset(self, data: Mapping[str, Any]) -> int:
        for key, value in data.items():
            self.set(key, value)
        return len(data)

    def mremove(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.remove(key)

    def clear(self, pattern: Optional[str] = None) -> None:
        """Remove every key, or every key starting with ``pattern``."""
        raise NotImplementedError


class MemoryDatasource(Datasource):
    """Process-local dictionary storage."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any = None) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = value

    def keys(self) -> List[str]:
        return list(self._data)

    def clear(self, pattern: Optional[str] = None) -> None:
        if pattern is None:
            self._data.clear()
            return
        for key in [k for k in self._data if k.startswith(pattern)]:
            del self._data[key]


class DummyDatasource(Datasource):
    """Accepts writes and forgets them."""

    def is_enabled(self) -> bool:
        return False

    def get(self, key: str, default: Any = None) -> Any:
        return default

    def set(self, key: str, value: Any = None) -> None:
        return None

    def clear(self, pattern: Optional[str] = None) -> None:
        return None
