"""IndexNow 엔진

하나의 공유 키로 여러 검색엔진(IndexNow 공용, Bing, Yandex)에 동시에 푸시합니다.
- 키 소유 증명: https://{host}/{key}.txt 를 대상 도메인이 서빙해야 함
- 엔드포인트 중 하나라도 200/202면 성공
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

from src.core.config import settings
from src.core.logging import logger, mask_secret
from src.engine.exceptions import IndexingTransportError
from src.engine.result import BroadcastResult, BroadcastSubmission, ErrorKind
from src.engine.usage_ledger import UsageLedger
from src.utils.url_utils import extract_host

from .http_client import SharedHttpClient


MIN_KEY_LENGTH = 8
SUCCESS_STATUSES = (200, 202)  # 200 = OK, 202 = Accepted


class IndexNowEngine:
    """IndexNow 브로드캐스트 엔진 (쿼터 없음, 스스로 비활성화하지 않음)"""

    def __init__(
        self,
        ledger: UsageLedger,
        http_client: SharedHttpClient,
        api_key: str = settings.indexnow_api_key,
        endpoints: Optional[List[str]] = None,
        max_urls: int = settings.indexnow_max_urls,
        timeout_s: float = settings.indexnow_timeout_s,
    ):
        self.ledger = ledger
        self.http_client = http_client
        self.api_key = api_key or ""
        self.endpoints = list(endpoints if endpoints is not None else settings.indexnow_endpoints)
        self.max_urls = max_urls
        self.timeout_s = timeout_s
        self.is_enabled = len(self.api_key) >= MIN_KEY_LENGTH and bool(self.endpoints)

        if self.is_enabled:
            logger.info(f"[IndexNow] Enabled (key: {self.key_preview()}, endpoints: {len(self.endpoints)})")
        else:
            logger.warning("[IndexNow] Not configured (INDEXNOW_API_KEY missing or too short)")

    async def submit_urls(self, urls: List[str]) -> BroadcastSubmission:
        """URL 목록을 모든 엔드포인트에 동시 제출"""
        if not self.is_enabled:
            logger.debug("[IndexNow] Disabled - skipping")
            return BroadcastSubmission(
                success=False, error="IndexNow not configured", error_kind=ErrorKind.DISABLED
            )

        if not urls:
            return BroadcastSubmission(success=True)

        urls_to_submit = urls[: self.max_urls]
        if len(urls) > self.max_urls:
            logger.warning(f"[IndexNow] Truncated {len(urls)} URLs to {self.max_urls}")

        host = extract_host(urls_to_submit[0])
        if host is None:
            logger.error(f"[IndexNow] Invalid URL: {urls_to_submit[0]}")
            return BroadcastSubmission(
                success=False, error=f"Invalid URL: {urls_to_submit[0]}", error_kind=ErrorKind.INVALID_URL
            )

        payload = {
            "host": host,
            "key": self.api_key,
            "keyLocation": f"https://{host}/{self.api_key}.txt",
            "urlList": urls_to_submit,
        }

        logger.info(f"[IndexNow] Submitting {len(urls_to_submit)} URLs to {len(self.endpoints)} endpoints")

        results = await asyncio.gather(
            *(self._submit_to_endpoint(endpoint, payload) for endpoint in self.endpoints)
        )
        any_success = any(r.success for r in results)

        await self.ledger.record_index_now(any_success, len(urls_to_submit))

        return BroadcastSubmission(
            success=any_success,
            results=list(results),
            submitted_urls=len(urls_to_submit),
        )

    async def _submit_to_endpoint(self, endpoint: str, payload: Dict) -> BroadcastResult:
        name = self.endpoint_name(endpoint)
        try:
            status_code, _ = await self.http_client.post_json(
                endpoint, payload, timeout_s=self.timeout_s
            )
        except IndexingTransportError as e:
            logger.error(f"[IndexNow] {name} error: {e}")
            return BroadcastResult(endpoint=endpoint, status_code=None, success=False, error=str(e))
        except Exception as e:
            logger.error(f"[IndexNow] {name} unexpected error: {type(e).__name__}: {e}")
            return BroadcastResult(
                endpoint=endpoint, status_code=None, success=False, error=f"{type(e).__name__}: {e}"
            )

        success = status_code in SUCCESS_STATUSES
        logger.info(f"[IndexNow] {name}: {status_code} {'OK' if success else 'FAILED'}")
        return BroadcastResult(endpoint=endpoint, status_code=status_code, success=success)

    def key_preview(self) -> str:
        return mask_secret(self.api_key)

    @staticmethod
    def endpoint_name(endpoint: str) -> str:
        if "bing" in endpoint:
            return "Bing"
        if "yandex" in endpoint:
            return "Yandex"
        if "indexnow.org" in endpoint:
            return "IndexNow"
        return endpoint
