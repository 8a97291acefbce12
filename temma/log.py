"""
Logging setup.

All framework loggers live under ``temma`` (``temma.framework``,
``temma.loader``, ``temma.router``...). Levels come from the
``loglevels`` configuration entry, either one level for everything or a
mapping of logger name to level.
"""

import logging
from typing import Any, Mapping, Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_LEVEL_ALIASES = {
    "WARN": logging.WARNING,
    "NOTE": logging.INFO,
    "CRIT": logging.CRITICAL,
}


def parse_level(level: Union[str, int]) -> int:
    """Turn ``"DEBUG"``, ``"warn"`` or ``10`` into a logging level."""
    if isinstance(level, int):
        return level
    name = str(level).upper()
    if name in _LEVEL_ALIASES:
        return _LEVEL_ALIASES[name]
    value = logging.getLevelName(name)
    if isinstance(value, int):
        return value
    raise ValueError(f"Unknown log level '{level}'")


def configure_logging(config: Optional[Any] = None, *, level: Union[str, int, None] = None) -> None:
    """
    Install a stream handler (once) and apply configured levels.

    Args:
        config: Config object whose ``loglevels`` entry is applied
        level: Level forced on the ``temma`` logger (CLI ``--verbose``)
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.WARNING, format=LOG_FORMAT)

    base = logging.getLogger("temma")
    loglevels = getattr(config, "loglevels", None) if config is not None else None
    if isinstance(loglevels, (str, int)):
        base.setLevel(parse_level(loglevels))
    elif isinstance(loglevels, Mapping):
        for name, value in loglevels.items():
            _logger_for(name).setLevel(parse_level(value))

    if level is not None:
        base.setLevel(parse_level(level))


def _logger_for(name: str) -> logging.Logger:
    if name in ("", "temma") or name.startswith("temma."):
        return logging.getLogger(name or "temma")
    return logging.getLogger(f"temma.{name}")
