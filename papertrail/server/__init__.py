"""HTTP API (FastAPI)."""

from papertrail.server.app import create_app

__all__ = ["create_app"]
