"""Redis 카운터 저장소 - 쿼터/통계 JSON 저장만 담당"""
import json
from typing import Any, Optional
from redis.asyncio import Redis

from src.core.config import settings
from src.core.logging import logger
from src.core.exceptions import (
    CacheConnectionException,
    CacheSerializationException,
)


class RedisCounterStore:
    """Redis 기반 카운터/통계 저장소

    키 단위로 JSON 문서를 TTL과 함께 저장합니다.
    키가 없으면 None (= 아직 기록 없음)이며 오류가 아닙니다.
    """

    def __init__(self, redis_client: Optional[Redis] = None):
        """Redis 클라이언트 초기화 (연결은 첫 명령 시점에 맺어짐)"""
        try:
            self.redis_client = redis_client or Redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
        except Exception as e:
            logger.error(f"Failed to create Redis client: {e}")
            raise CacheConnectionException(
                reason="invalid redis_url",
                details={"reason": str(e)}
            )

    async def get_json(self, key: str) -> Optional[dict[str, Any]]:
        """
        JSON 문서 조회

        Args:
            key: Redis 키

        Returns:
            dict 또는 None
        """
        try:
            raw = await self.redis_client.get(key)
        except Exception as e:
            logger.error(f"Cache read error: {e}")
            raise CacheConnectionException(
                reason="read failed",
                details={"key": key, "error": str(e)}
            )

        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.error(f"Failed to deserialize cache: {e}")
            raise CacheSerializationException(
                operation="deserialize",
                reason=str(e),
                details={"key": key}
            )

        if not isinstance(data, dict):
            raise CacheSerializationException(
                operation="deserialize",
                reason=f"expected object, got {type(data).__name__}",
                details={"key": key}
            )
        return data

    async def set_json(self, key: str, value: dict[str, Any], ttl_seconds: int) -> bool:
        """
        JSON 문서 저장 (TTL 필수)

        Args:
            key: Redis 키
            value: 저장할 dict
            ttl_seconds: 만료 시간 (초)

        Returns:
            성공 여부
        """
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            logger.error(f"Failed to serialize cache data: {e}")
            raise CacheSerializationException(
                operation="serialize",
                reason=str(e),
                details={"key": key}
            )

        try:
            await self.redis_client.setex(key, max(1, int(ttl_seconds)), payload)
        except Exception as e:
            logger.error(f"Cache write error: {e}")
            raise CacheConnectionException(
                reason="write failed",
                details={"key": key, "error": str(e)}
            )

        logger.debug(f"Cache set for key: {key}, TTL: {ttl_seconds}s")
        return True

    async def health_check(self) -> bool:
        """Redis 연결 상태 확인"""
        try:
            return bool(await self.redis_client.ping())
        except Exception:
            return False

    async def close(self) -> None:
        try:
            await self.redis_client.aclose()
        except Exception as e:
            logger.warning(f"Redis close failed: {type(e).__name__}: {e}")
