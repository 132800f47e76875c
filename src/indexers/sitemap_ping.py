"""Google Sitemap Ping 엔진

인증/쿼터 없는 GET 알림. 200일 때만 성공이며 재시도하지 않습니다.
"""

from __future__ import annotations

import asyncio
from typing import List

from src.core.config import settings
from src.core.logging import logger
from src.engine.exceptions import IndexingTransportError
from src.engine.result import PingResult
from src.engine.usage_ledger import UsageLedger
from src.utils.url_utils import platform_sitemap_url, tenant_sitemap_url

from .http_client import SharedHttpClient


class SitemapPingEngine:
    def __init__(
        self,
        ledger: UsageLedger,
        http_client: SharedHttpClient,
        ping_url: str = settings.google_ping_url,
        timeout_s: float = settings.google_ping_timeout_s,
        platform_domain: str = settings.platform_domain,
        platform_sitemap_path: str = settings.platform_sitemap_path,
    ):
        self.ledger = ledger
        self.http_client = http_client
        self.ping_url = ping_url
        self.timeout_s = timeout_s
        self.platform_domain = platform_domain
        self.platform_sitemap_path = platform_sitemap_path

    async def ping_sitemap(self, sitemap_url: str) -> PingResult:
        try:
            status_code = await self.http_client.get_status(
                self.ping_url,
                params={"sitemap": sitemap_url},
                timeout_s=self.timeout_s,
            )
        except IndexingTransportError as e:
            logger.error(f"[SitemapPing] Failed: {sitemap_url} - {e}")
            await self.ledger.record_google_ping(False)
            return PingResult(sitemap_url=sitemap_url, success=False, error=str(e))
        except Exception as e:
            logger.error(f"[SitemapPing] Unexpected error: {sitemap_url} - {type(e).__name__}: {e}")
            await self.ledger.record_google_ping(False)
            return PingResult(sitemap_url=sitemap_url, success=False, error=f"{type(e).__name__}: {e}")

        success = status_code == 200
        await self.ledger.record_google_ping(success)

        logger.info(f"[SitemapPing] {status_code} {'OK' if success else 'FAILED'} - {sitemap_url}")
        return PingResult(sitemap_url=sitemap_url, success=success, status_code=status_code)

    async def ping_tenant_sitemap(self, slug: str) -> PingResult:
        return await self.ping_sitemap(tenant_sitemap_url(slug, self.platform_domain))

    async def ping_platform_sitemap(self) -> PingResult:
        return await self.ping_sitemap(
            platform_sitemap_url(self.platform_domain, self.platform_sitemap_path)
        )

    async def ping_many(self, sitemap_urls: List[str], delay_s: float = 0.2) -> List[PingResult]:
        """여러 사이트맵 순차 ping (요청 간 200ms)"""
        results: List[PingResult] = []
        for i, sitemap_url in enumerate(sitemap_urls):
            if i > 0 and delay_s > 0:
                await asyncio.sleep(delay_s)
            results.append(await self.ping_sitemap(sitemap_url))
        return results
