"""Credential Pool - Google Indexing API 서비스 계정 로테이션

- 라운드 로빈: 다음 선택은 직전에 반환한 키 다음부터 탐색
- 키별 일일 쿼터(기본 200)를 Redis에 저장, 로컬 자정에 TTL로 자동 만료
- 401/403 발생 키는 5분간 비활성화 후 자동 복구

NOTE: 커서는 프로세스 단위입니다. 여러 프로세스가 같은 Redis를 공유하면
사용량은 공유되지만 '읽기 → 기록'이 원자적이지 않아 키당 최대
(프로세스 수 - 1)건까지 쿼터를 넘길 수 있습니다.
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from src.core.exceptions import ConfigurationException
from src.core.logging import logger
from src.utils.date_utils import seconds_until_midnight, today_str

from .store_adapter import CounterStore


DEFAULT_DAILY_QUOTA = 200  # Google 제공 한도 (키당/일)
DEFAULT_COOLDOWN_S = 5 * 60


@dataclass
class Credential:
    """서비스 계정 키 (설정 + 런타임 상태)

    Attributes:
        id: 고정 식별자 (key_1, key_2, ...)
        project_id: Google Cloud 프로젝트 ID
        client_email: 서비스 계정 이메일
        private_key: PEM 개인 키
        daily_quota: 일일 한도
        used_today: 오늘 사용량 (쿼터를 넘어도 잘라내지 않음)
        last_reset_date: 마지막으로 사용량을 맞춘 날짜 (YYYY-MM-DD)
        is_active: 사용 가능 여부 (mark_failed 시 일시 False)
    """

    id: str
    project_id: str
    client_email: str
    private_key: str
    daily_quota: int = DEFAULT_DAILY_QUOTA
    used_today: int = 0
    last_reset_date: str = ""
    is_active: bool = True

    @property
    def remaining(self) -> int:
        return max(0, self.daily_quota - self.used_today)

    @property
    def is_available(self) -> bool:
        return self.is_active and self.used_today < self.daily_quota

    def __repr__(self) -> str:
        # private_key는 절대 출력하지 않음
        return (
            f"Credential(id={self.id!r}, client_email={self.client_email!r}, "
            f"used_today={self.used_today}, daily_quota={self.daily_quota}, "
            f"is_active={self.is_active})"
        )


def load_credentials(raw: str, daily_quota: int = DEFAULT_DAILY_QUOTA) -> List[Credential]:
    """환경 변수 JSON 배열에서 키 목록 로드

    camelCase(projectId/clientEmail/privateKey)와 snake_case(project_id/
    client_email/private_key) 모두 허용합니다. 이메일/키가 없는 항목은
    경고 후 제외되고, JSON 자체가 잘못되면 빈 목록을 반환합니다.

    Args:
        raw: GOOGLE_INDEXING_KEYS 원문
        daily_quota: 키당 일일 한도

    Returns:
        List[Credential]: 유효한 키 목록 (id는 원래 위치 기준 key_{n})
    """
    if not raw or not raw.strip():
        logger.warning("[KeyPool] GOOGLE_INDEXING_KEYS not found in environment")
        return []

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        # 원문에 개인 키가 있으므로 위치만 남김
        logger.error(f"[KeyPool] {ConfigurationException('GOOGLE_INDEXING_KEYS', f'{e.msg} (pos {e.pos})')}")
        return []

    if not isinstance(parsed, list):
        logger.error(f"[KeyPool] {ConfigurationException('GOOGLE_INDEXING_KEYS', 'must be a JSON array')}")
        return []

    today = today_str()
    credentials: List[Credential] = []

    for index, entry in enumerate(parsed):
        key_id = f"key_{index + 1}"

        if not isinstance(entry, dict):
            logger.warning(f"[KeyPool] Key {key_id} is invalid (not an object)")
            continue

        client_email = entry.get("clientEmail") or entry.get("client_email") or ""
        private_key = (entry.get("privateKey") or entry.get("private_key") or "").replace("\\n", "\n")

        if not client_email or not private_key:
            logger.warning(f"[KeyPool] Key {key_id} is invalid (missing credentials)")
            continue

        credentials.append(
            Credential(
                id=key_id,
                project_id=entry.get("projectId") or entry.get("project_id") or "",
                client_email=client_email,
                private_key=private_key,
                daily_quota=daily_quota,
                used_today=0,
                last_reset_date=today,
                is_active=True,
            )
        )

    return credentials


class CredentialPool:
    """키 풀 관리자 (라운드 로빈 + 쿼터 + 쿨다운)

    Usage:
        pool = CredentialPool(credentials, store)
        await pool.sync_from_store()

        key = await pool.next_available()
        if key:
            ...  # API 호출
            await pool.record_usage(key.id)
    """

    QUOTA_PREFIX = "seo:quota:"

    def __init__(
        self,
        credentials: List[Credential],
        store: CounterStore,
        cooldown_seconds: float = DEFAULT_COOLDOWN_S,
    ):
        """
        Args:
            credentials: load_credentials()로 만든 키 목록
            store: 사용량 저장소 (get/set-with-ttl)
            cooldown_seconds: mark_failed 이후 재활성화까지 대기 시간
        """
        if store is None:
            raise ValueError("store must not be None")

        self._credentials: List[Credential] = list(credentials)
        self._by_id: Dict[str, Credential] = {c.id: c for c in self._credentials}
        self.store = store
        self.cooldown_seconds = cooldown_seconds
        self._cursor = 0
        self._lock = asyncio.Lock()
        self._reenable_handles: Dict[str, asyncio.TimerHandle] = {}

    @property
    def credentials(self) -> List[Credential]:
        return list(self._credentials)

    @property
    def size(self) -> int:
        return len(self._credentials)

    def get(self, credential_id: str) -> Optional[Credential]:
        return self._by_id.get(credential_id)

    def _quota_key(self, credential_id: str, date: str) -> str:
        return f"{self.QUOTA_PREFIX}{credential_id}:{date}"

    async def sync_from_store(self) -> None:
        """저장소에서 키별 오늘 사용량을 다시 읽어옴

        - 오늘 기록 있음: 메모리 값과 저장값 중 큰 값 (다른 프로세스 사용분 반영)
        - 날짜가 바뀜: 0으로 초기화
        - 오늘 기록 없음(저장소 장애 포함): 메모리 값 유지
        """
        today = today_str()

        for credential in self._credentials:
            stored = await self.store.get(self._quota_key(credential.id, today))

            if stored and stored.get("date") == today:
                try:
                    stored_used = max(0, int(stored.get("used", 0)))
                except (TypeError, ValueError):
                    logger.warning(f"[KeyPool] Corrupted quota record for {credential.id}: {stored}")
                    stored_used = 0
                # 저장값은 아직 기록 중인 증가분보다 뒤처질 수 있음
                if credential.last_reset_date == today:
                    credential.used_today = max(credential.used_today, stored_used)
                else:
                    credential.used_today = stored_used
                credential.last_reset_date = today
            elif credential.last_reset_date != today:
                # New day - reset quota
                credential.used_today = 0
                credential.last_reset_date = today

    async def next_available(self) -> Optional[Credential]:
        """다음 사용 가능한 키 (라운드 로빈)

        Returns:
            Credential or None: 활성 + 쿼터 남은 키. 모두 소진/비활성이면 None
        """
        if not self._credentials:
            return None

        async with self._lock:
            await self.sync_from_store()

            total = len(self._credentials)
            for offset in range(total):
                index = (self._cursor + offset) % total
                credential = self._credentials[index]

                if credential.is_available:
                    # 다음 호출은 방금 반환한 키 다음부터
                    self._cursor = (index + 1) % total
                    logger.debug(
                        f"[KeyPool] Using {credential.id}: {credential.used_today}/{credential.daily_quota}"
                    )
                    return credential

        logger.warning("[KeyPool] All API keys exhausted or inactive for today")
        return None

    async def record_usage(self, credential_id: str) -> None:
        """키 사용량 1 증가 후 저장 (TTL = 로컬 자정까지)"""
        credential = self._by_id.get(credential_id)
        if credential is None:
            logger.warning(f"[KeyPool] Key {credential_id} not found")
            return

        # next_available의 동기화와 같은 락: 증가 → 저장 사이에 저장 전 값을 다시 읽지 않음
        async with self._lock:
            today = today_str()
            if credential.last_reset_date != today:
                credential.used_today = 0
            credential.used_today += 1
            credential.last_reset_date = today

            await self.store.set(
                self._quota_key(credential_id, today),
                {"used": credential.used_today, "date": today},
                seconds_until_midnight(),
            )
        logger.debug(f"[KeyPool] {credential_id}: {credential.used_today}/{credential.daily_quota} used")

    def mark_failed(self, credential_id: str) -> None:
        """키 일시 비활성화 (cooldown_seconds 후 자동 복구)

        같은 키를 다시 mark하면 기존 타이머를 교체합니다 (누적 백오프 없음).
        이벤트 루프 밖에서 호출되면 타이머를 걸 수 없으므로 즉시 비활성화만 합니다.
        """
        credential = self._by_id.get(credential_id)
        if credential is None:
            logger.warning(f"[KeyPool] Key {credential_id} not found")
            return

        credential.is_active = False
        logger.warning(f"[KeyPool] Key {credential_id} marked as inactive for {self.cooldown_seconds}s")

        previous = self._reenable_handles.pop(credential_id, None)
        if previous is not None:
            previous.cancel()

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(f"[KeyPool] No running loop; {credential_id} stays inactive")
            return

        self._reenable_handles[credential_id] = loop.call_later(
            self.cooldown_seconds, self._reenable, credential_id
        )

    def _reenable(self, credential_id: str) -> None:
        self._reenable_handles.pop(credential_id, None)
        credential = self._by_id.get(credential_id)
        if credential is None:
            return
        credential.is_active = True
        logger.info(f"[KeyPool] Key {credential_id} re-enabled")

    def has_any_quota(self) -> bool:
        """활성 + 쿼터 남은 키 존재 여부 (메모리 기준, 저장소 재동기화 없음)"""
        return any(c.is_available for c in self._credentials)

    def total_remaining(self) -> int:
        """전체 남은 쿼터 합계 (메모리 기준)"""
        return sum(c.remaining for c in self._credentials)

    def stats(self) -> Dict[str, Any]:
        """키 통계

        Returns:
            dict:
                - total_keys, total_capacity, total_used, remaining_today
                - keys: [{id, used, remaining, is_active}]
        """
        total_used = sum(c.used_today for c in self._credentials)
        total_capacity = sum(c.daily_quota for c in self._credentials)

        return {
            "total_keys": len(self._credentials),
            "total_capacity": total_capacity,
            "total_used": total_used,
            "remaining_today": self.total_remaining(),
            "keys": [
                {
                    "id": c.id,
                    "used": c.used_today,
                    "remaining": c.remaining,
                    "is_active": c.is_active,
                }
                for c in self._credentials
            ],
        }

    def close(self) -> None:
        """대기 중인 재활성화 타이머 모두 취소 (재설정/종료 시)"""
        for handle in self._reenable_handles.values():
            handle.cancel()
        self._reenable_handles.clear()
