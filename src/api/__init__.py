"""API 엔드포인트 패키지 - export only."""

from .routes import health_router, seo_router, get_counter_store, get_orchestrator, shutdown_seo_services

__all__ = ["health_router", "seo_router", "get_counter_store", "get_orchestrator", "shutdown_seo_services"]
