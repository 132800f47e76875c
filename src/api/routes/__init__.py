"""API routes package."""

from .health_routes import router as health_router
from .seo_routes import router as seo_router, get_counter_store, get_orchestrator, shutdown_seo_services

__all__ = ["health_router", "seo_router", "get_counter_store", "get_orchestrator", "shutdown_seo_services"]
