"""FastAPI application serving the push endpoint."""
from __future__ import annotations

from build_notifier.server.app import create_app, main

__all__ = ["create_app", "main"]
