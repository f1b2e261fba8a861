"""API routes package."""

from dropserver.routes.archive_routes import router as archive_router

__all__ = ["archive_router"]
