"""Read-only views of an application: routes and configuration."""

import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

from ...config import Config, ConfigLoader
from ...routing import RouteTable


def load_config(app_path: Optional[Path] = None) -> Config:
    """
    Load the configuration of the application under ``app_path``.

    Raises:
        ConfigFault: The configuration file is malformed
    """
    root = Path(app_path or Path.cwd()).resolve()
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    return ConfigLoader.load(app_path=root)


def route_rows(config: Config) -> List[Tuple[str, str, str]]:
    """
    Rows of the configured route table.

    Raises:
        RouteConfigFault: A route definition is invalid
    """
    table = RouteTable.build(config.xtra("router") or {})
    return list(table.describe())


def config_value(config: Config, key: Optional[str] = None) -> Any:
    """Whole configuration, or the entry at a dotted ``key``."""
    if not key:
        return config.to_dict()
    return config.get(key)
