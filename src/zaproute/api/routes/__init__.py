"""Route group exports."""

from . import health, imports, routes

__all__ = ["health", "imports", "routes"]
