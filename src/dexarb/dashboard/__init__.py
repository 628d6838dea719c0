"""Dashboard module for web-based monitoring."""

from dexarb.dashboard.server import create_app, main


__all__ = [
    "create_app",
    "main",
]
