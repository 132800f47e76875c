"""외부 저장소 서비스 - export only."""

from .impl import RedisCounterStore

__all__ = ["RedisCounterStore"]
