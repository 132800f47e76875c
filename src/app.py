"""FastAPI 앱 팩토리"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from src.core.config import settings
from src.core.logging import logger
from src.api import health_router, seo_router, get_orchestrator, shutdown_seo_services
from src.indexers import shutdown_shared_http_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기"""
    logger.info("Starting application...")
    orchestrator = get_orchestrator()
    # 재시작 전 사용량 복원 (Redis 장애 시 메모리 0에서 시작)
    await orchestrator.google_indexing.pool.sync_from_store()
    status = orchestrator.get_status()
    logger.info(
        f"Application started (google keys={status['google_indexing']['total_keys']}, "
        f"remaining={status['google_indexing']['remaining_today']}, "
        f"indexnow={status['index_now']['enabled']})"
    )
    yield
    logger.info("Shutting down application...")
    try:
        await shutdown_seo_services()
        await shutdown_shared_http_client()
    except Exception as e:
        # 종료 훅에서의 예외는 앱 종료를 막지 않도록 로깅만
        logger.warning(f"Shutdown error: {type(e).__name__}: {e}")


def create_app() -> FastAPI:
    """
    FastAPI 앱 생성 (Factory Pattern)

    Returns:
        FastAPI 앱 인스턴스
    """
    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 라우터 등록
    app.include_router(health_router)
    app.include_router(seo_router)

    return app

# 앱 인스턴스 생성 (uvicorn이 로드할 수 있도록)
app = create_app()
