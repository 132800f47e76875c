"""공유 HTTP 클라이언트 (httpx)

- 엔진마다 요청별로 AsyncClient를 만들면 TLS/커넥션 오버헤드가 커지므로
  프로세스 단위로 클라이언트를 재사용합니다.
- 타임아웃은 호출마다 고정값으로 지정하고 재시도하지 않습니다.
- 앱 종료 시 close()로 정리합니다.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional, Tuple

import httpx

from src.core.logging import logger
from src.engine.exceptions import IndexingTransportError


class SharedHttpClient:
    def __init__(self, client: Optional[httpx.AsyncClient] = None) -> None:
        self._lock = asyncio.Lock()
        self._client: Optional[httpx.AsyncClient] = client

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._lock:
            if self._client is not None:
                return self._client
            self._client = httpx.AsyncClient(
                headers=self.default_headers(),
                follow_redirects=True,
                limits=httpx.Limits(max_connections=50, max_keepalive_connections=10),
                trust_env=False,
            )
            return self._client

    def default_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": "seo-indexer/1.0 (+https://developers.google.com/search)",
        }

    async def get_status(
        self,
        url: str,
        *,
        timeout_s: float,
        params: Optional[Dict[str, str]] = None,
    ) -> int:
        """GET 후 상태 코드만 반환

        Raises:
            IndexingTransportError: 네트워크/타임아웃
        """
        client = await self._ensure_client()
        try:
            resp = await client.get(url, params=params, timeout=timeout_s)
            return resp.status_code
        except httpx.HTTPError as e:
            logger.info(f"[HTTP_CLIENT] GET failed: {type(e).__name__}: {repr(e)}")
            raise IndexingTransportError(f"{type(e).__name__}: {e}") from e

    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        *,
        timeout_s: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> Tuple[int, Optional[Any]]:
        """JSON POST 후 (상태 코드, 파싱된 본문) 반환

        본문이 JSON이 아니면 None을 돌려줍니다. 비 2xx 응답도 예외 없이 반환합니다.

        Raises:
            IndexingTransportError: 네트워크/타임아웃
        """
        client = await self._ensure_client()
        request_headers = {"Content-Type": "application/json; charset=utf-8"}
        if headers:
            request_headers.update(headers)

        try:
            resp = await client.post(url, json=payload, headers=request_headers, timeout=timeout_s)
        except httpx.HTTPError as e:
            logger.info(f"[HTTP_CLIENT] POST failed: {type(e).__name__}: {repr(e)}")
            raise IndexingTransportError(f"{type(e).__name__}: {e}") from e

        try:
            body = resp.json() if resp.content else None
        except ValueError:
            body = None
        return resp.status_code, body

    async def close(self) -> None:
        async with self._lock:
            if self._client is None:
                return
            try:
                await self._client.aclose()
            except Exception as e:
                logger.warning(f"[HTTP_CLIENT] close failed: {type(e).__name__}: {e}")
            self._client = None


_shared_http_client = SharedHttpClient()


def get_shared_http_client() -> SharedHttpClient:
    return _shared_http_client


async def shutdown_shared_http_client() -> None:
    await _shared_http_client.close()
