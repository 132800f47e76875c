"""Pacing Config - 요청 간격/청크 설정

기본값:
- Google Indexing 배치: URL 간 100ms
- 일괄 재색인: 10개 단위 청크, 청크 간 2초
"""

from dataclasses import dataclass

from src.core.config import settings


@dataclass
class PacingConfig:
    """요청 속도 조절 설정"""

    url_delay_s: float = 0.1  # Google Indexing 연속 호출 간격
    chunk_size: int = 10  # 재색인 동시 처리 테넌트 수
    chunk_delay_s: float = 2.0  # 재색인 청크 간 대기

    def __post_init__(self):
        """설정 검증"""
        if self.url_delay_s < 0:
            raise ValueError(f"url_delay_s must be >= 0 (got {self.url_delay_s})")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive (got {self.chunk_size})")
        if self.chunk_delay_s < 0:
            raise ValueError(f"chunk_delay_s must be >= 0 (got {self.chunk_delay_s})")

    @classmethod
    def from_settings(cls) -> "PacingConfig":
        return cls(
            url_delay_s=settings.google_indexing_url_delay_ms / 1000,
            chunk_size=settings.reindex_chunk_size,
            chunk_delay_s=settings.reindex_chunk_delay_s,
        )
