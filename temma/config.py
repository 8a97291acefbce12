"""
Config system - layered configuration with typed accessors.

Sources are merged with this precedence (later wins):
main file < platform file < .env file < environment variables < overrides
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml
from dotenv import dotenv_values

from .faults import ConfigFault


DEFAULT_VIEW = "temma.views.jinja.JinjaView"
DEFAULT_MAX_REBOOTS = 10
CONFIG_BASENAMES = ("temma.yaml", "temma.yml", "temma.json")
# Prefixed variables that are not configuration entries
RESERVED_VARIABLES = ("ENVIRONMENT", "APP_PATH")


class Config:
    """
    Read-only view over the merged configuration.

    Example:
        ```python
        config = ConfigLoader.load(app_path="/srv/myapp")
        config.default_namespace        # application.defaultNamespace
        config.xtra("router")           # the x-router section
        config.get("application.maxReboots", 10)
        ```
    """

    def __init__(self, data: Optional[Mapping[str, Any]] = None, *, app_path: Union[str, Path, None] = None):
        self._data: Dict[str, Any] = dict(data or {})
        self.app_path = Path(app_path or self._data.get("appPath") or os.getcwd()).resolve()

    # ------------------------------------------------------------------
    # Generic access
    # ------------------------------------------------------------------

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current: Any = self._data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def xtra(self, section: str, key: Optional[str] = None, default: Any = None) -> Any:
        """Access an ``x-<section>`` extended configuration section."""
        data = self._data.get(f"x-{section}")
        if key is None:
            return data if data is not None else default
        if not isinstance(data, dict):
            return default
        return data.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        """Return the underlying data dictionary."""
        return self._data

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"<Config app_path={str(self.app_path)!r} sections={sorted(self._data)}>"

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def _path(self, key: str, default: str) -> Path:
        value = self.get(f"application.{key}", default)
        path = Path(value)
        return path if path.is_absolute() else self.app_path / path

    @property
    def etc_path(self) -> Path:
        return self._path("etcPath", "etc")

    @property
    def templates_path(self) -> Path:
        return self._path("templatesPath", "templates")

    @property
    def web_path(self) -> Path:
        return self._path("webPath", "www")

    # ------------------------------------------------------------------
    # Application settings
    # ------------------------------------------------------------------

    @property
    def application(self) -> Dict[str, Any]:
        return self._data.get("application") or {}

    @property
    def default_namespace(self) -> Optional[str]:
        return self.application.get("defaultNamespace")

    @property
    def root_controller(self) -> Optional[Any]:
        return self.application.get("rootController")

    @property
    def default_controller(self) -> Optional[Any]:
        return self.application.get("defaultController")

    @property
    def proxy_controller(self) -> Optional[Any]:
        return self.application.get("proxyController")

    @property
    def controllers_suffix(self) -> str:
        return self.application.get("controllersSuffix") or ""

    @property
    def default_view(self) -> Any:
        return self.application.get("defaultView") or DEFAULT_VIEW

    @property
    def loader_class(self) -> Optional[Any]:
        return self.application.get("loader")

    @property
    def max_reboots(self) -> int:
        return int(self.application.get("maxReboots", DEFAULT_MAX_REBOOTS))

    @property
    def trailing_slash_redirect(self) -> bool:
        return bool(self.application.get("trailingSlashRedirect", True))

    @property
    def data_sources(self) -> Dict[str, Any]:
        return self.application.get("dataSources") or {}

    # ------------------------------------------------------------------
    # Other sections
    # ------------------------------------------------------------------

    @property
    def routes(self) -> Dict[str, Any]:
        return self._data.get("routes") or {}

    @property
    def plugins(self) -> Dict[str, Any]:
        return self._data.get("plugins") or {}

    @property
    def error_pages(self) -> Dict[str, str]:
        pages = self._data.get("errorPages") or {}
        if isinstance(pages, str):
            return {"default": pages}
        return {str(code): page for code, page in pages.items()}

    @property
    def autoimport(self) -> Dict[str, Any]:
        return self._data.get("autoimport") or {}

    @property
    def loglevels(self) -> Union[str, Dict[str, Any], None]:
        return self._data.get("loglevels")


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources with precedence:
    overrides > environment variables > .env file > platform file > main file
    """

    def __init__(self, env_prefix: str = "TEMMA_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}
        self.sources: List[str] = []
        self.logger = logging.getLogger("temma.config")

    @classmethod
    def load(
        cls,
        path: Union[str, Path, Mapping[str, Any], None] = None,
        *,
        app_path: Union[str, Path, None] = None,
        env_prefix: str = "TEMMA_",
        env_file: Union[str, Path, None] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Config:
        """
        Load configuration from multiple sources.

        Merge order (later overrides earlier):
        1. Main file: ``path``, or ``etc/temma.{yaml,yml,json}`` under ``app_path``
           (a mapping may be given instead of a file)
        2. Platform file ``etc/temma.<ENVIRONMENT>.yaml``, where ENVIRONMENT
           comes from the ``<prefix>ENVIRONMENT`` variable
        3. ``.env`` file (``env_file``, or ``.env`` under ``app_path``)
        4. Environment variables (``<prefix>SECTION__KEY``)
        5. Manual overrides

        Raises:
            ConfigFault: A given file is missing or malformed
        """
        loader = cls(env_prefix=env_prefix)
        root = Path(app_path or os.getcwd())

        # Step 1: main configuration
        main_file: Optional[Path] = None
        if isinstance(path, Mapping):
            loader._merge_dict(loader.config_data, _deep_copy(path))
            loader.sources.append("<mapping>")
        elif path is not None:
            main_file = Path(path)
            if not main_file.exists():
                raise ConfigFault(f"Configuration file '{main_file}' not found", code="CONFIG_MISSING")
            loader._load_file(main_file)
        else:
            for basename in CONFIG_BASENAMES:
                candidate = root / "etc" / basename
                if candidate.exists():
                    main_file = candidate
                    loader._load_file(candidate)
                    break

        # Step 2: platform-specific configuration
        environment = os.environ.get(f"{env_prefix}ENVIRONMENT")
        if environment:
            etc_dir = main_file.parent if main_file else root / "etc"
            for suffix in (".yaml", ".yml", ".json"):
                candidate = etc_dir / f"temma.{environment}{suffix}"
                if candidate.exists():
                    loader._load_file(candidate)
                    break

        # Step 3: .env file
        dotenv_path = Path(env_file) if env_file else root / ".env"
        if dotenv_path.exists():
            loader._load_env_file(dotenv_path)

        # Step 4: environment variables
        loader._load_from_env(os.environ)

        # Step 5: manual overrides
        if overrides:
            loader._merge_dict(loader.config_data, _deep_copy(overrides))

        loader.logger.debug(f"Configuration loaded from {loader.sources or ['<defaults>']}")
        return Config(loader.config_data, app_path=app_path or loader.config_data.get("appPath") or root)

    def _load_file(self, path: Path):
        """Load config from a JSON or YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                if path.suffix == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigFault(f"Unable to read configuration file '{path}': {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigFault(f"Configuration file '{path}' must hold a mapping")
        self._merge_dict(self.config_data, data)
        self.sources.append(str(path))

    def _load_env_file(self, path: Path):
        """Load prefixed variables from a .env file."""
        values = dotenv_values(path)
        self._load_from_env({key: value for key, value in values.items() if value is not None})
        self.sources.append(str(path))

    def _load_from_env(self, environ: Mapping[str, str]):
        for key, value in environ.items():
            if key.startswith(self.env_prefix) and key[len(self.env_prefix):] not in RESERVED_VARIABLES:
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert TEMMA_APPLICATION__DEFAULTCONTROLLER to a nested entry."""
        parts = key[len(self.env_prefix):].split("__")

        current = self.config_data
        for part in parts[:-1]:
            name = _match_key(current, part)
            if not isinstance(current.get(name), dict):
                current[name] = {}
            current = current[name]
        current[_match_key(current, parts[-1])] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse a string value as JSON when possible."""
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    def _merge_dict(self, target: dict, source: Mapping):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, Mapping):
                self._merge_dict(target[key], value)
            else:
                target[key] = value


def _match_key(mapping: Mapping[str, Any], name: str) -> str:
    """Find an existing key case-insensitively (``DEFAULTVIEW`` -> ``defaultView``)."""
    lowered = name.lower()
    for key in mapping:
        if isinstance(key, str) and key.lower() == lowered:
            return key
    if lowered.startswith("x_"):
        return "x-" + lowered[2:]
    return lowered


def _deep_copy(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: _deep_copy(value) if isinstance(value, Mapping) else value
        for key, value in data.items()
    }
