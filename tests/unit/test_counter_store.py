"""카운터 저장소 유닛 테스트 (Mock 사용)"""
import json

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.core.exceptions import CacheConnectionException, CacheSerializationException
from src.engine.store_adapter import CounterStoreAdapter
from src.services.impl.counter_store import RedisCounterStore


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.get = AsyncMock(return_value=None)
    client.setex = AsyncMock(return_value=True)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


class TestRedisCounterStore:
    """RedisCounterStore 테스트"""

    @patch('src.services.impl.counter_store.Redis')
    def test_init_from_settings_url(self, mock_redis):
        """settings.redis_url로 클라이언트 생성"""
        store = RedisCounterStore()

        assert store.redis_client is mock_redis.from_url.return_value
        mock_redis.from_url.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_json_hit(self, mock_client):
        mock_client.get.return_value = '{"used": 3, "date": "2026-10-18"}'
        store = RedisCounterStore(redis_client=mock_client)

        assert await store.get_json("seo:quota:key_1:2026-10-18") == {"used": 3, "date": "2026-10-18"}

    @pytest.mark.asyncio
    async def test_get_json_miss(self, mock_client):
        store = RedisCounterStore(redis_client=mock_client)

        assert await store.get_json("seo:quota:key_1:2026-10-18") is None

    @pytest.mark.asyncio
    async def test_get_json_invalid_payload(self, mock_client):
        mock_client.get.return_value = "not-json"
        store = RedisCounterStore(redis_client=mock_client)

        with pytest.raises(CacheSerializationException):
            await store.get_json("seo:stats:2026-10-18")

    @pytest.mark.asyncio
    async def test_get_json_non_object(self, mock_client):
        mock_client.get.return_value = "[1, 2]"
        store = RedisCounterStore(redis_client=mock_client)

        with pytest.raises(CacheSerializationException):
            await store.get_json("seo:stats:2026-10-18")

    @pytest.mark.asyncio
    async def test_get_json_connection_error(self, mock_client):
        mock_client.get.side_effect = ConnectionError("refused")
        store = RedisCounterStore(redis_client=mock_client)

        with pytest.raises(CacheConnectionException):
            await store.get_json("seo:stats:2026-10-18")

    @pytest.mark.asyncio
    async def test_set_json_uses_setex(self, mock_client):
        store = RedisCounterStore(redis_client=mock_client)

        assert await store.set_json("seo:stats:2026-10-18", {"products": {"count": 1}}, 604800) is True

        key, ttl, payload = mock_client.setex.await_args.args
        assert key == "seo:stats:2026-10-18"
        assert ttl == 604800
        assert json.loads(payload) == {"products": {"count": 1}}

    @pytest.mark.asyncio
    async def test_set_json_ttl_at_least_one_second(self, mock_client):
        store = RedisCounterStore(redis_client=mock_client)

        await store.set_json("seo:quota:key_1:2026-10-18", {"used": 1}, 0)

        assert mock_client.setex.await_args.args[1] == 1

    @pytest.mark.asyncio
    async def test_set_json_write_error(self, mock_client):
        mock_client.setex.side_effect = TimeoutError("slow")
        store = RedisCounterStore(redis_client=mock_client)

        with pytest.raises(CacheConnectionException):
            await store.set_json("seo:stats:2026-10-18", {}, 10)

    @pytest.mark.asyncio
    async def test_health_check(self, mock_client):
        store = RedisCounterStore(redis_client=mock_client)
        assert await store.health_check() is True

        mock_client.ping.side_effect = ConnectionError("down")
        assert await store.health_check() is False


class TestCounterStoreAdapter:
    """저장소 오류를 삼키는 어댑터"""

    @pytest.mark.asyncio
    async def test_get_delegates(self):
        store = MagicMock()
        store.get_json = AsyncMock(return_value={"used": 1})

        adapter = CounterStoreAdapter(store)

        assert await adapter.get("seo:quota:key_1:2026-10-18") == {"used": 1}

    @pytest.mark.asyncio
    async def test_get_error_returns_none(self):
        store = MagicMock()
        store.get_json = AsyncMock(side_effect=CacheConnectionException(reason="read failed"))

        adapter = CounterStoreAdapter(store)

        assert await adapter.get("seo:quota:key_1:2026-10-18") is None

    @pytest.mark.asyncio
    async def test_set_error_swallowed(self):
        store = MagicMock()
        store.set_json = AsyncMock(side_effect=RuntimeError("boom"))

        adapter = CounterStoreAdapter(store)

        await adapter.set("seo:stats:2026-10-18", {"a": 1}, 60)
        store.set_json.assert_awaited_once_with("seo:stats:2026-10-18", {"a": 1}, 60)

    @pytest.mark.asyncio
    async def test_invalid_key_skipped(self):
        store = MagicMock()
        store.get_json = AsyncMock()
        store.set_json = AsyncMock()

        adapter = CounterStoreAdapter(store)

        assert await adapter.get("") is None
        await adapter.set("", {"a": 1}, 60)
        store.get_json.assert_not_awaited()
        store.set_json.assert_not_awaited()

    def test_requires_store(self):
        with pytest.raises(ValueError):
            CounterStoreAdapter(None)
