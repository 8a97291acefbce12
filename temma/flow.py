"""
Temma Flow - Execution status signals.

Every controller method, plugin method and lifecycle hook returns one of
these values. They drive the dispatcher's state machine and travel back up
through nested sub-controller calls. They are plain return values, never
exceptions.
"""

from __future__ import annotations

import inspect
from enum import IntEnum
from typing import Any, Callable


class ExecStatus(IntEnum):
    """
    Flow-control signal returned by pipeline-phase methods.

    FORWARD: continue normally.
    STOP: end the current phase only.
    HALT: skip the remaining plugins and the controller, go to the view.
    QUIT: end the request right away, no view.
    RESTART: run the current phase again from its beginning.
    REBOOT: restart the whole dispatch from scratch.
    """
    FORWARD = 0
    STOP = 1
    HALT = 2
    QUIT = 3
    RESTART = 4
    REBOOT = 5

    @classmethod
    def of(cls, value: Any) -> "ExecStatus":
        """Normalize a method's return value (``None`` means FORWARD)."""
        if isinstance(value, ExecStatus):
            return value
        return cls.FORWARD


async def invoke(func: Callable[..., Any], *args, **kwargs) -> Any:
    """Call a function that may be sync or async and return its result."""
    if inspect.iscoroutinefunction(func):
        return await func(*args, **kwargs)
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        return await result
    return result


async def run_step(func: Callable[..., Any], *args, **kwargs) -> ExecStatus:
    """Invoke a pipeline-phase method and return its normalized status."""
    return ExecStatus.of(await invoke(func, *args, **kwargs))
