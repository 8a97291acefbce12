"""
Temma command-line interface.

Usage:
    temma serve [--app-path PATH] [--host HOST] [--port PORT] [--reload]
    temma routes [--app-path PATH]
    temma config [--app-path PATH] [KEY]
"""

__version__ = "2.0.0"
__cli_name__ = "temma"


def main():
    """Wrapper to avoid eager import of __main__ which causes warnings with -m."""
    from .__main__ import main as _main
    return _main()
