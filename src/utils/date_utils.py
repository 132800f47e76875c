"""날짜 유틸리티 (로컬 시간 기준)

쿼터/통계 키의 날짜와 TTL 계산이 같은 기준(로컬 자정)을 쓰도록 한 곳에 모아 둡니다.
"""
from datetime import datetime, timedelta
from typing import Optional


def today_str(now: Optional[datetime] = None) -> str:
    """오늘 날짜 (YYYY-MM-DD)"""
    current = now or datetime.now()
    return current.date().isoformat()


def date_days_ago(days: int, now: Optional[datetime] = None) -> str:
    """N일 전 날짜 (YYYY-MM-DD)"""
    current = (now or datetime.now()).date()
    return (current - timedelta(days=days)).isoformat()


def seconds_until_midnight(now: Optional[datetime] = None) -> int:
    """다음 로컬 자정까지 남은 초 (최소 1)

    Redis TTL 0은 즉시 만료이므로 자정 직전에도 1초는 남깁니다.
    """
    current = now or datetime.now()
    midnight = datetime.combine(current.date() + timedelta(days=1), datetime.min.time())
    return max(1, int((midnight - current).total_seconds()))
