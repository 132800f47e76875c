"""Indexing Orchestrator - Main Engine Entry Point

Fans every domain event out to the three indexing engines:
1. Google Indexing API (quota-limited, rotating keys)
2. IndexNow broadcast (Bing, Yandex, ...)
3. Google sitemap ping

and folds their outcomes into a single AggregateResult. Indexing is
best-effort: no domain event ever fails because indexing failed.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Coroutine, Dict, List, Optional, Set

from src.core.logging import logger
from src.utils.url_utils import (
    extract_product_ref,
    extract_tenant_slug,
    product_url as build_product_url,
    products_listing_url,
    tenant_page_urls,
)

from .pacing import PacingConfig
from .result import AggregateResult, BatchReindexResult, ChangeType, EngineSummary
from .usage_ledger import UsageLedger

if TYPE_CHECKING:
    from src.indexers import GoogleIndexingEngine, IndexNowEngine, SitemapPingEngine


class IndexingOrchestrator:
    """SEO 인덱싱 오케스트레이터

    이벤트 1건의 흐름: RECEIVED → FANNED_OUT (3개 엔진 동시 실행) → AGGREGATED → RETURNED.
    상태는 저장하지 않으며, 플랫폼 사이트맵 ping만 분리된(detached) 태스크로 실행합니다.
    """

    def __init__(
        self,
        google_indexing: "GoogleIndexingEngine",
        index_now: "IndexNowEngine",
        sitemap_ping: "SitemapPingEngine",
        ledger: UsageLedger,
        platform_domain: str,
        pacing: Optional[PacingConfig] = None,
    ):
        """
        Args:
            google_indexing: Google Indexing API 엔진 (submit_url/submit_batch)
            index_now: IndexNow 엔진 (submit_urls)
            sitemap_ping: 사이트맵 ping 엔진
            ledger: 사용 통계 기록기
            platform_domain: 테넌트 서브도메인의 상위 도메인
            pacing: 재색인 청크 설정 (기본값: 10개 / 2초)
        """
        if not google_indexing:
            raise ValueError("google_indexing must not be None")
        if not index_now:
            raise ValueError("index_now must not be None")
        if not sitemap_ping:
            raise ValueError("sitemap_ping must not be None")

        self.google_indexing = google_indexing
        self.index_now = index_now
        self.sitemap_ping = sitemap_ping
        self.ledger = ledger
        self.platform_domain = platform_domain
        self.pacing = pacing or PacingConfig()
        self._detached: Set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Tenant events
    # ------------------------------------------------------------------

    async def on_tenant_created(self, slug: str) -> AggregateResult:
        logger.info(f"[Orchestrator] FULL INDEX: new tenant '{slug}'")
        return await self._index_tenant(slug)

    async def on_tenant_updated(self, slug: str, ping_platform: bool = True) -> AggregateResult:
        """테넌트 변경 재색인

        Args:
            slug: 테넌트 slug
            ping_platform: 플랫폼 사이트맵 detached ping 여부 (일괄 재색인은 마지막에 한 번만)
        """
        logger.info(f"[Orchestrator] RE-INDEX: tenant '{slug}' updated")
        return await self._index_tenant(slug, ping_platform)

    async def _index_tenant(self, slug: str, ping_platform: bool = True) -> AggregateResult:
        try:
            urls = tenant_page_urls(slug, self.platform_domain)

            google_results, index_now_result, ping_result = await asyncio.gather(
                self.google_indexing.submit_batch(urls),
                self.index_now.submit_urls(urls),
                self.sitemap_ping.ping_tenant_sitemap(slug),
            )

            if ping_platform:
                self._spawn_detached(self.sitemap_ping.ping_platform_sitemap(), "platform sitemap ping")

            await self.ledger.record_tenant_indexed(slug)

            result = AggregateResult(
                target=slug,
                google_indexing=EngineSummary.from_index_results(
                    google_results, self.google_indexing.remaining_quota()
                ),
                index_now=EngineSummary.from_broadcast(index_now_result),
                google_ping=EngineSummary.from_ping(ping_result),
            )

            logger.info(
                f"[Orchestrator] Tenant '{slug}' indexed: google={result.google_indexing.success}, "
                f"indexnow={result.index_now.success}, ping={result.google_ping.success}"
            )
            return result

        except Exception as e:
            logger.error(
                f"[Orchestrator] Failed to index tenant '{slug}': {type(e).__name__}: {e}",
                exc_info=True,
            )
            return AggregateResult.failed(slug, f"{type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # Product events
    # ------------------------------------------------------------------

    async def on_product_created(
        self, tenant_slug: str, product_id: str, product_slug: Optional[str] = None
    ) -> AggregateResult:
        logger.info(f"[Orchestrator] INDEX: new product '{product_slug or product_id}' for '{tenant_slug}'")
        return await self._index_product(tenant_slug, product_id, product_slug)

    async def on_product_updated(
        self, tenant_slug: str, product_id: str, product_slug: Optional[str] = None
    ) -> AggregateResult:
        logger.info(f"[Orchestrator] RE-INDEX: product '{product_slug or product_id}' updated")
        return await self._index_product(tenant_slug, product_id, product_slug)

    async def _index_product(
        self, tenant_slug: str, product_id: str, product_slug: Optional[str]
    ) -> AggregateResult:
        product_url: Optional[str] = None
        try:
            product_url = build_product_url(tenant_slug, self.platform_domain, product_id, product_slug)
            listing_url = products_listing_url(tenant_slug, self.platform_domain)

            # Google 쿼터는 상품 URL에만 사용, IndexNow는 목록 페이지까지
            google_results, index_now_result, ping_result = await asyncio.gather(
                self.google_indexing.submit_batch([product_url]),
                self.index_now.submit_urls([product_url, listing_url]),
                self.sitemap_ping.ping_tenant_sitemap(tenant_slug),
            )

            await self.ledger.record_product_indexed()

            result = AggregateResult(
                target=tenant_slug,
                product_url=product_url,
                google_indexing=EngineSummary.from_index_results(
                    google_results, self.google_indexing.remaining_quota()
                ),
                index_now=EngineSummary.from_broadcast(index_now_result),
                google_ping=EngineSummary.from_ping(ping_result),
            )

            logger.info(f"[Orchestrator] Product indexed: {'SUCCESS' if result.success else 'FAILED'} - {product_url}")
            return result

        except Exception as e:
            logger.error(
                f"[Orchestrator] Failed to index product: {type(e).__name__}: {e}",
                exc_info=True,
            )
            return AggregateResult.failed(tenant_slug, f"{type(e).__name__}: {e}", product_url=product_url)

    async def on_product_deleted(self, tenant_slug: str) -> AggregateResult:
        """상품 삭제: 테넌트 사이트맵만 다시 ping

        삭제된 상품에 대응하는 정규 URL이 없으므로 URL 단위 삭제 알림은 보내지 않습니다.
        """
        logger.info(f"[Orchestrator] REFRESH: product deleted from '{tenant_slug}'")
        try:
            ping_result = await self.sitemap_ping.ping_tenant_sitemap(tenant_slug)
            return AggregateResult(
                target=tenant_slug,
                google_ping=EngineSummary.from_ping(ping_result),
            )
        except Exception as e:
            logger.error(f"[Orchestrator] Failed to refresh sitemap: {type(e).__name__}: {e}")
            return AggregateResult.failed(tenant_slug, f"{type(e).__name__}: {e}")

    # ------------------------------------------------------------------
    # Manual URL submission
    # ------------------------------------------------------------------

    async def index_url(
        self, url: str, change_type: ChangeType = ChangeType.URL_UPDATED
    ) -> AggregateResult:
        """플랫폼 URL 1건 수동 색인

        - URL_DELETED: Google에 삭제 알림 + 테넌트 사이트맵 ping
        - 상품 경로(/p/, /product/): 상품 이벤트로 처리
        - 그 외: 테넌트 재색인
        """
        slug = extract_tenant_slug(url, self.platform_domain)
        if slug is None:
            logger.warning(f"[Orchestrator] URL is not a tenant URL: {url}")
            return AggregateResult.failed(url, "URL is not under a tenant subdomain")

        if ChangeType(change_type) == ChangeType.URL_DELETED:
            return await self._notify_deleted(slug, url)

        product_ref = extract_product_ref(url)
        if product_ref is not None:
            ref, is_slug = product_ref
            if is_slug:
                return await self.on_product_updated(slug, ref, ref)
            return await self.on_product_updated(slug, ref)

        return await self.on_tenant_updated(slug)

    async def _notify_deleted(self, slug: str, url: str) -> AggregateResult:
        try:
            google_result, ping_result = await asyncio.gather(
                self.google_indexing.submit_url(url, ChangeType.URL_DELETED),
                self.sitemap_ping.ping_tenant_sitemap(slug),
            )
            return AggregateResult(
                target=slug,
                product_url=url,
                google_indexing=EngineSummary.from_index_results(
                    [google_result], self.google_indexing.remaining_quota()
                ),
                google_ping=EngineSummary.from_ping(ping_result),
            )
        except Exception as e:
            logger.error(f"[Orchestrator] Failed to notify deletion: {type(e).__name__}: {e}")
            return AggregateResult.failed(slug, f"{type(e).__name__}: {e}", product_url=url)

    # ------------------------------------------------------------------
    # Batch reindex
    # ------------------------------------------------------------------

    async def batch_reindex(self, slugs: List[str]) -> BatchReindexResult:
        """여러 테넌트 재색인 (청크 단위 동시 실행, 청크 간 대기)

        Google 또는 IndexNow 중 하나라도 성공하면 해당 slug는 성공으로 집계합니다.
        """
        logger.info(f"[Orchestrator] BATCH REINDEX: {len(slugs)} tenants")

        results: List[AggregateResult] = []
        failed: List[str] = []
        chunk_size = self.pacing.chunk_size

        for start in range(0, len(slugs), chunk_size):
            chunk = slugs[start:start + chunk_size]

            chunk_results = await asyncio.gather(
                *(self.on_tenant_updated(slug, ping_platform=False) for slug in chunk),
                return_exceptions=True,
            )

            for slug, outcome in zip(chunk, chunk_results):
                if isinstance(outcome, BaseException):
                    failed.append(slug)
                    logger.warning(f"[Orchestrator] Failed to reindex: {slug} - {type(outcome).__name__}: {outcome}")
                elif outcome.google_indexing.success or outcome.index_now.success:
                    results.append(outcome)
                else:
                    failed.append(slug)
                    logger.warning(f"[Orchestrator] Failed to reindex: {slug} - {outcome.error}")

            if start + chunk_size < len(slugs) and self.pacing.chunk_delay_s > 0:
                await asyncio.sleep(self.pacing.chunk_delay_s)

        try:
            await self.sitemap_ping.ping_platform_sitemap()
        except Exception as e:
            # 청크 결과는 이미 확정됨: ping 실패로 배치 결과를 버리지 않음
            logger.warning(f"[Orchestrator] Platform sitemap ping after batch failed: {type(e).__name__}: {e}")

        logger.info(f"[Orchestrator] Batch reindex complete: {len(results)}/{len(slugs)} successful")

        return BatchReindexResult(
            total=len(slugs),
            successful=len(results),
            failed_slugs=failed,
            results=results,
        )

    # ------------------------------------------------------------------
    # Status / stats (read-only)
    # ------------------------------------------------------------------

    def get_status(self) -> Dict[str, Any]:
        quota_stats = self.google_indexing.quota_stats()

        return {
            "google_indexing": {
                "enabled": self.google_indexing.is_available(),
                "total_keys": quota_stats["total_keys"],
                "total_capacity": quota_stats["total_capacity"],
                "total_used": quota_stats["total_used"],
                "remaining_today": quota_stats["remaining_today"],
            },
            "index_now": {
                "enabled": self.index_now.is_enabled,
            },
            "google_ping": {
                "enabled": True,
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def get_detailed_stats(self) -> Dict[str, Any]:
        summary = await self.ledger.summary()

        return {
            "status": self.get_status(),
            "keys": self.google_indexing.quota_stats()["keys"],
            "today": summary["today"],
            "last_7_days": summary["last_7_days"],
        }

    # ------------------------------------------------------------------
    # Detached tasks
    # ------------------------------------------------------------------

    def _spawn_detached(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task:
        """결과를 기다리지 않는 태스크 실행 (오류는 로깅만)"""
        task = asyncio.create_task(coro)
        self._detached.add(task)

        def _done(t: asyncio.Task) -> None:
            self._detached.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.warning(f"[Orchestrator] Detached {label} failed: {type(exc).__name__}: {exc}")

        task.add_done_callback(_done)
        return task

    async def aclose(self) -> None:
        """남은 detached 태스크 취소 (앱 종료 시)"""
        tasks = list(self._detached)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._detached.clear()
