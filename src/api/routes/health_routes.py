"""헬스 체크 엔드포인트"""
from fastapi import APIRouter, Depends
from datetime import datetime

from src.schemas.seo_schema import HealthResponse
from src.services.impl.counter_store import RedisCounterStore
from src.api.routes.seo_routes import get_counter_store
from src.core.logging import logger
from src import __version__

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(counter_store: RedisCounterStore = Depends(get_counter_store)):
    """
    헬스 체크 엔드포인트

    - 서버 상태
    - Redis 연결 상태 (끊겨도 색인은 메모리 카운터로 계속 동작하므로 degraded)
    """
    redis_ok = await counter_store.health_check()
    if not redis_ok:
        logger.warning("Counter store unreachable; quota/stats persistence degraded")

    return HealthResponse(
        status="ok" if redis_ok else "degraded",
        timestamp=datetime.now(),
        version=__version__
    )


@router.get("/")
async def root():
    """루트 엔드포인트"""
    return {
        "service": "SEO 인덱싱 오케스트레이터",
        "version": __version__,
        "docs": "/docs"
    }
