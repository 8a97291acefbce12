"""
Development and production server, backed by uvicorn.

The application is built by a factory so that uvicorn's reloader can
re-import it in its worker process. The application root travels in the
``TEMMA_APP_PATH`` environment variable.
"""

import os
import sys
from pathlib import Path
from typing import Optional

import uvicorn

from ...asgi import TemmaApp

APP_PATH_VARIABLE = "TEMMA_APP_PATH"


def create_app() -> TemmaApp:
    """uvicorn factory: build the application for ``$TEMMA_APP_PATH``."""
    return TemmaApp(app_path=os.environ.get(APP_PATH_VARIABLE) or os.getcwd())


def run_server(
    app_path: Path,
    host: str = "127.0.0.1",
    port: int = 8000,
    reload: bool = False,
    workers: Optional[int] = None,
    verbose: bool = False,
) -> None:
    """
    Start uvicorn on the application found under ``app_path``.

    Args:
        app_path: Application root (``etc/temma.yaml``, controllers...)
        host: Server host
        port: Server port
        reload: Restart on code changes
        workers: Number of worker processes (ignored with ``reload``)
        verbose: Debug-level server logs
    """
    app_path = Path(app_path).resolve()
    os.environ[APP_PATH_VARIABLE] = str(app_path)

    # Controllers are imported from the application root
    if str(app_path) not in sys.path:
        sys.path.insert(0, str(app_path))

    uvicorn.run(
        "temma.cli.commands.serve:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        reload_dirs=[str(app_path)] if reload else None,
        workers=None if reload else workers,
        log_level="debug" if verbose else "info",
        access_log=True,
    )
