"""Google Indexing API 엔진

- 호출마다 CredentialPool에서 키를 받아 urlNotifications:publish 호출
- 결과와 무관하게 키 사용량 기록 (실패 호출도 쿼터 소모)
- 401/403이면 해당 키 쿨다운
- 배치는 순차 실행 + 100ms 간격, 쿼터 소진 시 나머지는 네트워크 호출 없이 실패
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from src.core.config import settings
from src.core.logging import logger
from src.engine.credential_pool import CredentialPool
from src.engine.exceptions import IndexingAuthError, IndexingTransportError
from src.engine.pacing import PacingConfig
from src.engine.result import ChangeType, ErrorKind, IndexResult
from src.engine.usage_ledger import UsageLedger

from .google_auth import ServiceAccountTokenProvider
from .http_client import SharedHttpClient


AUTH_FAILURE_STATUSES = (401, 403)


class GoogleIndexingEngine:
    """Google Indexing API 제출 엔진 (키 로테이션)"""

    def __init__(
        self,
        pool: CredentialPool,
        ledger: UsageLedger,
        http_client: SharedHttpClient,
        token_provider: Optional[ServiceAccountTokenProvider] = None,
        pacing: Optional[PacingConfig] = None,
        endpoint: str = settings.google_indexing_endpoint,
        timeout_s: float = settings.google_indexing_timeout_s,
    ):
        self.pool = pool
        self.ledger = ledger
        self.http_client = http_client
        self.token_provider = token_provider or ServiceAccountTokenProvider()
        self.pacing = pacing or PacingConfig()
        self.endpoint = endpoint
        self.timeout_s = timeout_s

    async def submit_url(
        self, url: str, change_type: ChangeType = ChangeType.URL_UPDATED
    ) -> IndexResult:
        """단일 URL 제출

        Returns:
            IndexResult: 예외를 던지지 않음
        """
        credential = await self.pool.next_available()

        if credential is None:
            logger.warning(f"[GoogleIndexing] No API keys available for: {url}")
            return IndexResult.quota_exhausted(url)

        try:
            token = await self.token_provider.get_token(credential)
            status_code, body = await self.http_client.post_json(
                self.endpoint,
                {"url": url, "type": ChangeType(change_type).value},
                timeout_s=self.timeout_s,
                headers={"Authorization": f"Bearer {token}"},
            )
            result = self._to_result(url, credential.id, status_code, body)
        except IndexingAuthError as e:
            result = IndexResult.failed(
                url, credential.id, str(e), ErrorKind.AUTH_FAILURE, status_code=e.status_code
            )
        except IndexingTransportError as e:
            result = IndexResult.failed(url, credential.id, str(e), ErrorKind.TRANSPORT_FAILURE)
        except Exception as e:
            logger.error(f"[GoogleIndexing] Unexpected error: {url} - {type(e).__name__}: {e}", exc_info=True)
            result = IndexResult.failed(
                url, credential.id, f"{type(e).__name__}: {e}", ErrorKind.TRANSPORT_FAILURE
            )

        # 성공/실패 모두 쿼터 소모
        await self.pool.record_usage(credential.id)
        await self.ledger.record_google_indexing(result.success)

        if result.error_kind == ErrorKind.AUTH_FAILURE:
            self.pool.mark_failed(credential.id)
            self.token_provider.forget(credential.id)

        if result.success:
            logger.info(f"[GoogleIndexing] Indexed: {url} ({credential.id})")
        else:
            logger.error(f"[GoogleIndexing] Failed: {url} ({credential.id}) - {result.error}")

        return result

    def _to_result(
        self, url: str, credential_id: str, status_code: int, body: Optional[Any]
    ) -> IndexResult:
        if status_code in AUTH_FAILURE_STATUSES:
            return IndexResult.failed(
                url, credential_id, f"{status_code}: {self._error_message(body)}",
                ErrorKind.AUTH_FAILURE, status_code=status_code,
            )

        if not 200 <= status_code < 300:
            return IndexResult.failed(
                url, credential_id, f"{status_code}: {self._error_message(body)}",
                ErrorKind.HTTP_ERROR, status_code=status_code,
            )

        if not isinstance(body, dict):
            return IndexResult.failed(
                url, credential_id, f"{status_code}: malformed response body",
                ErrorKind.INVALID_RESPONSE, status_code=status_code,
            )

        return IndexResult.succeeded(url, credential_id, status_code, body)

    @staticmethod
    def _error_message(body: Optional[Any]) -> str:
        # {"error": {"code": 403, "message": "...", "status": "PERMISSION_DENIED"}}
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            return str(body["error"].get("message") or body["error"].get("status") or "Unknown error")
        return "Unknown error"

    async def submit_batch(
        self, urls: List[str], change_type: ChangeType = ChangeType.URL_UPDATED
    ) -> List[IndexResult]:
        """URL 목록 순차 제출

        쿼터가 바닥나면 남은 URL은 키 조회/네트워크 호출 없이 실패 처리합니다.
        """
        results: List[IndexResult] = []

        for i, url in enumerate(urls):
            if not self.pool.has_any_quota():
                logger.warning(f"[GoogleIndexing] Quota exhausted at {i}/{len(urls)} URLs")
                results.extend(IndexResult.quota_exhausted(u) for u in urls[i:])
                break

            if i > 0 and self.pacing.url_delay_s > 0:
                await asyncio.sleep(self.pacing.url_delay_s)

            results.append(await self.submit_url(url, change_type))

        return results

    def is_available(self) -> bool:
        return self.pool.has_any_quota()

    def quota_stats(self) -> Dict[str, Any]:
        return self.pool.stats()

    def remaining_quota(self) -> int:
        return self.pool.total_remaining()

    def close(self) -> None:
        self.token_provider.close()
