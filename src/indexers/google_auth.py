"""Google 서비스 계정 토큰 발급 (google-auth)

키별로 service_account.Credentials를 한 번 만들어 재사용하고,
토큰이 만료됐을 때만 갱신합니다. 갱신은 동기 HTTP 호출이므로 스레드에서 실행하며,
모든 갱신이 하나의 requests.Session을 공유합니다.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Optional

import requests
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request as GARequest
from google.oauth2 import service_account

from src.core.config import settings
from src.core.logging import logger
from src.engine.credential_pool import Credential
from src.engine.exceptions import IndexingAuthError, IndexingTransportError


class ServiceAccountTokenProvider:
    """Credential → Bearer 토큰"""

    def __init__(
        self,
        scope: str = settings.google_indexing_scope,
        token_uri: str = settings.google_indexing_token_uri,
        timeout_s: float = settings.google_indexing_timeout_s,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.scope = scope
        self.token_uri = token_uri
        self.timeout_s = timeout_s
        self._session = session or requests.Session()
        self._request = GARequest(self._session)
        self._cache: Dict[str, service_account.Credentials] = {}

    def _build(self, credential: Credential) -> service_account.Credentials:
        info = {
            "type": "service_account",
            "project_id": credential.project_id,
            "client_email": credential.client_email,
            "private_key": credential.private_key,
            "token_uri": self.token_uri,
        }
        try:
            return service_account.Credentials.from_service_account_info(info, scopes=[self.scope])
        except (ValueError, KeyError) as e:
            # PEM 파싱 실패 등: 키 자체가 잘못됨
            raise IndexingAuthError(f"Invalid service account key: {type(e).__name__}", status_code=401) from e

    async def get_token(self, credential: Credential) -> str:
        """유효한 access token 반환

        Raises:
            IndexingAuthError: 키 오류 또는 토큰 발급 거부
            IndexingTransportError: 토큰 엔드포인트 네트워크 오류
        """
        sa_credentials = self._cache.get(credential.id)
        if sa_credentials is None or sa_credentials.service_account_email != credential.client_email:
            sa_credentials = self._build(credential)
            self._cache[credential.id] = sa_credentials

        if sa_credentials.valid and sa_credentials.token:
            return sa_credentials.token

        try:
            # 스레드는 취소되지 않음: 대기만 timeout_s로 제한
            await asyncio.wait_for(
                asyncio.to_thread(sa_credentials.refresh, self._request),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            logger.warning(f"[GoogleAuth] Token refresh timed out for {credential.id} after {self.timeout_s}s")
            raise IndexingTransportError(f"Token refresh timed out after {self.timeout_s}s") from e
        except google_auth_exceptions.RefreshError as e:
            logger.warning(f"[GoogleAuth] Token refresh rejected for {credential.id}")
            raise IndexingAuthError(f"Token refresh rejected: {e}", status_code=401) from e
        except google_auth_exceptions.TransportError as e:
            raise IndexingTransportError(f"Token endpoint unreachable: {e}") from e

        if not sa_credentials.token:
            raise IndexingAuthError("Token refresh returned no token", status_code=401)
        return sa_credentials.token

    def forget(self, credential_id: str) -> None:
        """캐시된 토큰 폐기 (인증 실패 후 다음 시도에서 재발급)"""
        self._cache.pop(credential_id, None)

    def close(self) -> None:
        """토큰 캐시 비우고 HTTP 세션 종료"""
        self._cache.clear()
        self._session.close()
