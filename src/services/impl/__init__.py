"""Services implementation package."""

from .counter_store import RedisCounterStore

__all__ = ["RedisCounterStore"]
