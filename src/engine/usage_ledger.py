"""Usage Ledger - 일자별 SEO 엔진 사용 통계

Redis 키 seo:stats:{YYYY-MM-DD} 에 하루치 통계를 JSON으로 저장합니다 (TTL 7일).
모든 갱신은 '읽기 → 더하기 → 저장'이며 삭제는 TTL에 맡깁니다.
"""

import asyncio
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from src.core.logging import logger
from src.utils.date_utils import date_days_ago, today_str

from .store_adapter import CounterStore


ENGINE_NAMES = ("google_indexing", "index_now", "google_ping")


@dataclass
class EngineCounters:
    """엔진별 카운터 (submitted == succeeded + failed)"""

    submitted: int = 0
    succeeded: int = 0
    failed: int = 0

    def add(self, success: bool, count: int = 1) -> None:
        self.submitted += count
        if success:
            self.succeeded += count
        else:
            self.failed += count


@dataclass
class DailyStats:
    """하루치 통계 문서"""

    date: str
    google_indexing: EngineCounters = field(default_factory=EngineCounters)
    index_now: EngineCounters = field(default_factory=EngineCounters)
    google_ping: EngineCounters = field(default_factory=EngineCounters)
    tenants_count: int = 0
    tenant_slugs: List[str] = field(default_factory=list)
    products_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date,
            "google_indexing": asdict(self.google_indexing),
            "index_now": asdict(self.index_now),
            "google_ping": asdict(self.google_ping),
            "tenants": {"count": self.tenants_count, "slugs": list(self.tenant_slugs)},
            "products": {"count": self.products_count},
        }

    @classmethod
    def from_dict(cls, date: str, data: Dict[str, Any]) -> "DailyStats":
        """저장된 문서 복원 (누락/손상 필드는 0으로)"""

        def _counters(raw: Any) -> EngineCounters:
            if not isinstance(raw, dict):
                return EngineCounters()
            try:
                return EngineCounters(
                    submitted=int(raw.get("submitted", 0)),
                    succeeded=int(raw.get("succeeded", 0)),
                    failed=int(raw.get("failed", 0)),
                )
            except (TypeError, ValueError):
                return EngineCounters()

        tenants = data.get("tenants") if isinstance(data.get("tenants"), dict) else {}
        products = data.get("products") if isinstance(data.get("products"), dict) else {}
        slugs = tenants.get("slugs") if isinstance(tenants.get("slugs"), list) else []

        try:
            tenants_count = int(tenants.get("count", len(slugs)))
            products_count = int(products.get("count", 0))
        except (TypeError, ValueError):
            tenants_count, products_count = len(slugs), 0

        return cls(
            date=date,
            google_indexing=_counters(data.get("google_indexing")),
            index_now=_counters(data.get("index_now")),
            google_ping=_counters(data.get("google_ping")),
            tenants_count=tenants_count,
            tenant_slugs=[str(s) for s in slugs],
            products_count=products_count,
        )


class UsageLedger:
    """SEO 엔진 사용 통계 기록기"""

    STATS_PREFIX = "seo:stats:"

    def __init__(self, store: CounterStore, ttl_days: int = 7):
        if store is None:
            raise ValueError("store must not be None")
        self.store = store
        self.ttl_seconds = ttl_days * 24 * 60 * 60
        # 같은 프로세스 안의 동시 갱신이 서로를 덮어쓰지 않도록 직렬화
        self._lock = asyncio.Lock()

    def _key(self, date: str) -> str:
        return f"{self.STATS_PREFIX}{date}"

    async def _load(self, date: str) -> DailyStats:
        stored = await self.store.get(self._key(date))
        if stored:
            return DailyStats.from_dict(date, stored)
        return DailyStats(date=date)

    async def _save(self, stats: DailyStats) -> None:
        await self.store.set(self._key(stats.date), stats.to_dict(), self.ttl_seconds)

    async def _update(self, mutate) -> None:
        async with self._lock:
            stats = await self._load(today_str())
            mutate(stats)
            await self._save(stats)

    async def record_google_indexing(self, success: bool) -> None:
        await self._update(lambda s: s.google_indexing.add(success))

    async def record_index_now(self, success: bool, url_count: int = 1) -> None:
        """IndexNow 결과 기록 (URL 개수 단위)"""
        await self._update(lambda s: s.index_now.add(success, url_count))

    async def record_google_ping(self, success: bool) -> None:
        await self._update(lambda s: s.google_ping.add(success))

    async def record_tenant_indexed(self, slug: str) -> None:
        """테넌트 색인 기록 (하루 단위 slug 중복 제거)"""

        def _mutate(stats: DailyStats) -> None:
            if slug not in stats.tenant_slugs:
                stats.tenant_slugs.append(slug)
                stats.tenants_count += 1

        await self._update(_mutate)

    async def record_product_indexed(self) -> None:
        """상품 색인 기록 (호출마다 +1)"""

        def _mutate(stats: DailyStats) -> None:
            stats.products_count += 1

        await self._update(_mutate)

    async def today_stats(self) -> DailyStats:
        return await self._load(today_str())

    async def stats_range(self, days: int = 7) -> List[DailyStats]:
        """오늘부터 과거 N일 통계 (기록 없는 날은 0)"""
        return [await self._load(date_days_ago(i)) for i in range(days)]

    async def summary(self) -> Dict[str, Any]:
        """오늘 통계 + 최근 7일 합계"""
        today = await self.today_stats()
        range_stats = await self.stats_range(7)

        last_7_days = {
            "total_submitted": 0,
            "total_succeeded": 0,
            "total_failed": 0,
            "tenants_indexed": 0,
            "products_indexed": 0,
        }
        for stats in range_stats:
            for name in ENGINE_NAMES:
                counters: EngineCounters = getattr(stats, name)
                last_7_days["total_submitted"] += counters.submitted
                last_7_days["total_succeeded"] += counters.succeeded
                last_7_days["total_failed"] += counters.failed
            last_7_days["tenants_indexed"] += stats.tenants_count
            last_7_days["products_indexed"] += stats.products_count

        logger.debug(f"[Ledger] 7-day summary: {last_7_days}")
        return {"today": today.to_dict(), "last_7_days": last_7_days}
