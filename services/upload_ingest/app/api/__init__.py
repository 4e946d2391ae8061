"""API routes for the upload ingest service."""

from services.upload_ingest.app.api.health import router as health_router
from services.upload_ingest.app.api.routes import router as upload_router

__all__ = ["health_router", "upload_router"]
