"""Entry point for running papertrail as a module or installed script.

Usage:
    papertrail / python -m papertrail         → HTTP API (uvicorn)
    papertrail <command> ... / python -m papertrail <command> ... → CLI
"""

import sys

import uvicorn


def run() -> None:
    """Entry point: no args → HTTP API server, else → CLI."""
    if len(sys.argv) == 1:
        from papertrail.config import Settings
        from papertrail.server.app import create_app
        from papertrail.utils.log import setup_logging

        settings = Settings.load()
        setup_logging(settings.log_level, settings.log_file)
        uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
    else:
        from papertrail.cli import main
        main()


if __name__ == "__main__":
    run()
