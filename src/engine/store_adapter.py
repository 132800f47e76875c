"""Counter Store Adapter - 저장소 장애를 엔진 밖으로 내보내지 않는 어댑터"""

from typing import Any, Dict, Optional, Protocol

from src.core.logging import logger
from src.core.exceptions import CacheException


class CounterStore(Protocol):
    """CredentialPool / UsageLedger가 기대하는 저장소 인터페이스"""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        ...


class CounterStoreAdapter:
    """RedisCounterStore 어댑터

    RedisCounterStore를 get/set 인터페이스로 변환합니다.
    저장소 오류는 로깅 후 '기록 없음(None)'으로 취급되며 예외가 전파되지 않습니다.
    """

    def __init__(self, store):
        """
        Args:
            store: get_json/set_json 메서드를 가진 저장소 (RedisCounterStore)
        """
        if store is None:
            raise ValueError("store must not be None")
        self.store = store

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        """카운터 조회

        Returns:
            dict or None: 저장된 문서. 미존재/오류 시 None
        """
        try:
            if not key or not isinstance(key, str):
                logger.warning(f"Invalid key for store.get: {key}")
                return None
            return await self.store.get_json(key)
        except CacheException as e:
            logger.warning(f"[Store] get failed: key={key}, error={e.error_code}")
            return None
        except Exception as e:
            logger.warning(f"[Store] get failed: key={key}, error={type(e).__name__}: {e}")
            return None

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        """카운터 저장

        Raises:
            None: 모든 예외는 로깅됨
        """
        try:
            if not key or not isinstance(key, str):
                logger.warning(f"Invalid key for store.set: {key}")
                return
            if not isinstance(value, dict):
                logger.warning(f"Invalid value for store.set: {type(value).__name__}")
                return
            await self.store.set_json(key, value, ttl)
        except CacheException as e:
            logger.warning(f"[Store] set failed: key={key}, error={e.error_code}")
        except Exception as e:
            logger.warning(f"[Store] set failed: key={key}, error={type(e).__name__}: {e}")
