"""CredentialPool 유닛 테스트 (라운드 로빈/쿼터/쿨다운)"""

from __future__ import annotations

import asyncio
import json

import pytest

from src.engine.credential_pool import Credential, CredentialPool, load_credentials
from src.utils.date_utils import date_days_ago, today_str


class TestRoundRobin:
    """라운드 로빈 선택"""

    @pytest.mark.asyncio
    async def test_cycles_through_every_key(self, make_pool):
        pool = make_pool(3, daily_quota=10)

        picked = []
        for _ in range(6):
            credential = await pool.next_available()
            picked.append(credential.id)
            await pool.record_usage(credential.id)

        assert picked == ["key_1", "key_2", "key_3", "key_1", "key_2", "key_3"]

    @pytest.mark.asyncio
    async def test_skips_exhausted_key(self, make_pool, fake_store):
        pool = make_pool(3, daily_quota=10)
        fake_store.data[f"seo:quota:key_2:{today_str()}"] = {"used": 10, "date": today_str()}

        picked = [(await pool.next_available()).id for _ in range(4)]

        assert "key_2" not in picked
        assert picked == ["key_1", "key_3", "key_1", "key_3"]

    @pytest.mark.asyncio
    async def test_returns_none_when_all_exhausted(self, make_pool):
        pool = make_pool(2, daily_quota=1)

        for _ in range(2):
            credential = await pool.next_available()
            await pool.record_usage(credential.id)

        assert await pool.next_available() is None
        assert pool.has_any_quota() is False
        assert pool.total_remaining() == 0

    @pytest.mark.asyncio
    async def test_empty_pool(self, fake_store):
        pool = CredentialPool([], fake_store)

        assert await pool.next_available() is None
        assert pool.has_any_quota() is False
        assert pool.stats()["total_keys"] == 0


class TestUsagePersistence:
    """사용량 저장/동기화"""

    @pytest.mark.asyncio
    async def test_record_usage_persists_with_midnight_ttl(self, make_pool, fake_store):
        pool = make_pool(1, daily_quota=10)

        await pool.record_usage("key_1")
        await pool.record_usage("key_1")

        key = f"seo:quota:key_1:{today_str()}"
        assert fake_store.data[key] == {"used": 2, "date": today_str()}
        assert 1 <= fake_store.ttls[key] <= 24 * 60 * 60

    @pytest.mark.asyncio
    async def test_sync_picks_up_usage_from_other_process(self, make_pool, fake_store):
        pool = make_pool(1, daily_quota=10)
        fake_store.data[f"seo:quota:key_1:{today_str()}"] = {"used": 7, "date": today_str()}

        await pool.sync_from_store()

        assert pool.get("key_1").used_today == 7
        assert pool.total_remaining() == 3

    @pytest.mark.asyncio
    async def test_store_miss_keeps_memory_count(self, make_pool, fake_store):
        pool = make_pool(1, daily_quota=10)
        await pool.record_usage("key_1")

        fake_store.available = False
        await pool.sync_from_store()

        assert pool.get("key_1").used_today == 1

    @pytest.mark.asyncio
    async def test_new_day_resets_usage(self, make_pool):
        pool = make_pool(1, daily_quota=10)
        credential = pool.get("key_1")
        credential.used_today = 10
        credential.last_reset_date = date_days_ago(1)

        await pool.sync_from_store()

        assert credential.used_today == 0
        assert credential.last_reset_date == today_str()

    @pytest.mark.asyncio
    async def test_unknown_key_is_ignored(self, make_pool, fake_store):
        pool = make_pool(1)

        await pool.record_usage("key_99")
        pool.mark_failed("key_99")

        assert fake_store.set_calls == 0


class TestCooldown:
    """401/403 이후 키 쿨다운"""

    @pytest.mark.asyncio
    async def test_failed_key_skipped_then_reenabled(self, make_pool):
        pool = make_pool(2, daily_quota=10, cooldown_seconds=0.05)

        pool.mark_failed("key_1")
        picked = [(await pool.next_available()).id for _ in range(2)]
        assert picked == ["key_2", "key_2"]

        await asyncio.sleep(0.15)

        assert pool.get("key_1").is_active is True
        picked = {(await pool.next_available()).id for _ in range(2)}
        assert picked == {"key_1", "key_2"}

    @pytest.mark.asyncio
    async def test_all_failed_means_no_quota(self, make_pool):
        pool = make_pool(2, daily_quota=10)

        pool.mark_failed("key_1")
        pool.mark_failed("key_2")

        assert await pool.next_available() is None
        assert pool.has_any_quota() is False

    @pytest.mark.asyncio
    async def test_mark_failed_twice_keeps_single_timer(self, make_pool):
        pool = make_pool(1, cooldown_seconds=60)

        pool.mark_failed("key_1")
        pool.mark_failed("key_1")

        assert len(pool._reenable_handles) == 1

    @pytest.mark.asyncio
    async def test_close_cancels_pending_reenable(self, make_pool):
        pool = make_pool(1, cooldown_seconds=0.05)

        pool.mark_failed("key_1")
        pool.close()
        await asyncio.sleep(0.15)

        assert pool.get("key_1").is_active is False


class TestStats:
    """키 통계"""

    @pytest.mark.asyncio
    async def test_stats_aggregate(self, make_pool):
        pool = make_pool(2, daily_quota=5)
        await pool.record_usage("key_1")
        await pool.record_usage("key_1")
        await pool.record_usage("key_2")

        stats = pool.stats()

        assert stats["total_keys"] == 2
        assert stats["total_capacity"] == 10
        assert stats["total_used"] == 3
        assert stats["remaining_today"] == 7
        assert stats["keys"][0] == {"id": "key_1", "used": 2, "remaining": 3, "is_active": True}

    def test_remaining_never_negative(self, make_pool):
        pool = make_pool(1, daily_quota=5)
        pool.get("key_1").used_today = 8

        assert pool.get("key_1").remaining == 0
        assert pool.total_remaining() == 0

    def test_repr_hides_private_key(self, make_pool):
        pool = make_pool(1)

        text = repr(pool.get("key_1"))

        assert "PRIVATE KEY" not in text
        assert "key_1" in text


class TestLoadCredentials:
    """환경 변수 JSON 로드"""

    def test_camel_and_snake_case(self):
        raw = json.dumps([
            {"projectId": "p1", "clientEmail": "a@p1.iam", "privateKey": "-----BEGIN-----\\nAAA\\n-----END-----"},
            {"project_id": "p2", "client_email": "b@p2.iam", "private_key": "-----BEGIN-----\nBBB\n-----END-----"},
        ])

        credentials = load_credentials(raw, daily_quota=50)

        assert [c.id for c in credentials] == ["key_1", "key_2"]
        assert credentials[0].project_id == "p1"
        assert credentials[0].private_key == "-----BEGIN-----\nAAA\n-----END-----"
        assert credentials[1].client_email == "b@p2.iam"
        assert all(c.daily_quota == 50 and c.used_today == 0 and c.is_active for c in credentials)

    def test_invalid_entries_dropped(self):
        raw = json.dumps([
            {"clientEmail": "a@p1.iam", "privateKey": "k1"},
            {"clientEmail": "missing-key@p2.iam"},
            "not-an-object",
            {"clientEmail": "c@p3.iam", "privateKey": "k3"},
        ])

        credentials = load_credentials(raw)

        assert [c.id for c in credentials] == ["key_1", "key_4"]

    @pytest.mark.parametrize("raw", ["", "   ", "not json", '{"clientEmail": "a"}'])
    def test_unusable_input_yields_no_keys(self, raw):
        assert load_credentials(raw) == []


class SlowCounterStore:
    """저장에 시간이 걸리는 저장소 (Redis 왕복 흉내)"""

    def __init__(self, delay_s: float = 0.01):
        self.delay_s = delay_s
        self.data: dict = {}

    async def get(self, key):
        value = self.data.get(key)
        return dict(value) if value is not None else None

    async def set(self, key, value, ttl):
        await asyncio.sleep(self.delay_s)
        self.data[key] = dict(value)


class TestConcurrentUsage:
    """같은 프로세스 안의 동시 선택/기록"""

    @pytest.mark.asyncio
    async def test_overlapping_submissions_are_all_counted(self):
        """선택 → 제출 → 기록이 겹쳐도 저장값이 모든 사용분을 반영"""
        store = SlowCounterStore(delay_s=0.01)
        credential = Credential(
            id="key_1", project_id="p1", client_email="a@p1.iam",
            private_key="k1", daily_quota=10, last_reset_date=today_str(),
        )
        pool = CredentialPool([credential], store)

        async def _submit(offset: float):
            await asyncio.sleep(offset)
            credential = await pool.next_available()
            await asyncio.sleep(0.005)
            await pool.record_usage(credential.id)

        await asyncio.gather(*(_submit(i * 0.004) for i in range(5)))
        await pool.sync_from_store()
        pool.close()

        assert pool.get("key_1").used_today == 5
        assert store.data[f"seo:quota:key_1:{today_str()}"]["used"] == 5
