"""SEO Routes (Engine Layer)

HTTP Layer는 IndexingOrchestrator로 요청을 위임하는 단순한 Translator 역할만 수행합니다.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from src.core.config import settings
from src.core.logging import logger
from src.core.security import SecurityValidator, require_admin_token
from src.engine import (
    CounterStoreAdapter,
    CredentialPool,
    IndexingOrchestrator,
    PacingConfig,
    UsageLedger,
    load_credentials,
)
from src.indexers import (
    GoogleIndexingEngine,
    IndexNowEngine,
    SitemapPingEngine,
    get_shared_http_client,
)
from src.schemas.seo_schema import BatchReindexRequest, IndexUrlRequest
from src.services.impl.counter_store import RedisCounterStore
from src.utils.url_utils import extract_tenant_slug

router = APIRouter(prefix="/api/seo", tags=["seo"])

# 싱글톤 서비스
_counter_store: Optional[RedisCounterStore] = None
_credential_pool: Optional[CredentialPool] = None
_orchestrator: Optional[IndexingOrchestrator] = None


def get_counter_store() -> RedisCounterStore:
    """RedisCounterStore 싱글톤"""
    global _counter_store
    if _counter_store is None:
        _counter_store = RedisCounterStore()
    return _counter_store


def get_orchestrator() -> IndexingOrchestrator:
    """IndexingOrchestrator 싱글톤

    키는 프로세스 시작 시 한 번만 로드합니다.
    """
    global _credential_pool, _orchestrator
    if _orchestrator is None:
        store = CounterStoreAdapter(get_counter_store())
        http_client = get_shared_http_client()
        pacing = PacingConfig.from_settings()
        ledger = UsageLedger(store, ttl_days=settings.seo_stats_ttl_days)

        _credential_pool = CredentialPool(
            load_credentials(settings.google_indexing_keys, settings.google_indexing_daily_quota),
            store,
            cooldown_seconds=settings.google_indexing_cooldown_s,
        )

        _orchestrator = IndexingOrchestrator(
            google_indexing=GoogleIndexingEngine(_credential_pool, ledger, http_client, pacing=pacing),
            index_now=IndexNowEngine(ledger, http_client),
            sitemap_ping=SitemapPingEngine(ledger, http_client),
            ledger=ledger,
            platform_domain=settings.platform_domain,
            pacing=pacing,
        )

        if _credential_pool.size > 0:
            logger.info(
                f"[KeyPool] Initialized: {_credential_pool.size} keys, "
                f"daily capacity {_credential_pool.stats()['total_capacity']} URLs"
            )
        else:
            logger.warning("[KeyPool] No Google Indexing API keys configured")

    return _orchestrator


async def shutdown_seo_services() -> None:
    """오케스트레이터/키 풀/토큰 세션/Redis 정리 (앱 종료 시)"""
    global _counter_store, _credential_pool, _orchestrator
    if _orchestrator is not None:
        await _orchestrator.aclose()
        _orchestrator.google_indexing.close()
    if _credential_pool is not None:
        _credential_pool.close()
    if _counter_store is not None:
        await _counter_store.close()
    _counter_store = _credential_pool = _orchestrator = None


# ==========================================
# PUBLIC
# ==========================================

@router.get("/status")
async def get_status(orchestrator: IndexingOrchestrator = Depends(get_orchestrator)):
    """SEO 엔진 상태 (키 수/쿼터, IndexNow 활성 여부)"""
    return orchestrator.get_status()


@router.get("/stats")
async def get_stats(orchestrator: IndexingOrchestrator = Depends(get_orchestrator)):
    """상세 통계 (키별 사용량, 오늘/최근 7일)"""
    return await orchestrator.get_detailed_stats()


# ==========================================
# PROTECTED (X-Admin-Token)
# ==========================================

@router.post("/reindex/batch", dependencies=[Depends(require_admin_token)])
async def batch_reindex(
    request: BatchReindexRequest,
    orchestrator: IndexingOrchestrator = Depends(get_orchestrator),
):
    """여러 테넌트 일괄 재색인"""
    result = await orchestrator.batch_reindex(request.slugs)
    return {
        "message": f"Batch reindex completed: {result.successful}/{result.total} successful",
        **result.to_dict(),
    }


@router.post("/reindex/{slug}", dependencies=[Depends(require_admin_token)])
async def reindex_tenant(
    slug: str,
    orchestrator: IndexingOrchestrator = Depends(get_orchestrator),
):
    """단일 테넌트 재색인"""
    try:
        SecurityValidator.validate_slug(slug)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await orchestrator.on_tenant_updated(slug)
    return {
        "message": f'Tenant "{slug}" submitted for reindexing',
        **result.to_dict(),
    }


@router.post("/index-url", dependencies=[Depends(require_admin_token)])
async def index_url(
    request: IndexUrlRequest,
    orchestrator: IndexingOrchestrator = Depends(get_orchestrator),
):
    """플랫폼 URL 1건 색인 (상품/테넌트 자동 판별)"""
    if extract_tenant_slug(request.url, settings.platform_domain) is None:
        raise HTTPException(
            status_code=400,
            detail=f"URL must be under a tenant subdomain of {settings.platform_domain}",
        )

    result = await orchestrator.index_url(request.url, request.type)

    return {
        "message": "URL submitted for indexing",
        **result.to_dict(),
    }
