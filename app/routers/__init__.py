"""API routers."""

from app.routers.blobs import router as blobs_router
from app.routers.clients import router as clients_router
from app.routers.sessions import router as sessions_router
from app.routers.suggestions import router as suggestions_router
from app.routers.summaries import router as summaries_router

__all__ = ["clients_router", "sessions_router", "summaries_router", "suggestions_router", "blobs_router"]
