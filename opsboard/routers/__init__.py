"""API routers for Opsboard."""

from opsboard.routers import import_router

__all__ = ["import_router"]
