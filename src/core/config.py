"""설정 관리 - 환경 변수 로드 및 검증"""
from typing import List
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # Redis (쿼터/통계 카운터 저장소)
    redis_url: str = "redis://localhost:6379/0"
    seo_stats_ttl_days: int = 7

    # Google Indexing API
    # GOOGLE_INDEXING_KEYS: 서비스 계정 JSON 배열
    # [{"projectId": "...", "clientEmail": "...", "privateKey": "..."}]
    google_indexing_keys: str = ""
    google_indexing_daily_quota: int = 200  # 키당 일일 한도
    google_indexing_endpoint: str = "https://indexing.googleapis.com/v3/urlNotifications:publish"
    google_indexing_scope: str = "https://www.googleapis.com/auth/indexing"
    google_indexing_token_uri: str = "https://oauth2.googleapis.com/token"
    google_indexing_timeout_s: float = 15.0
    google_indexing_url_delay_ms: int = 100  # 배치 제출 시 요청 간 간격
    google_indexing_cooldown_s: int = 300  # 401/403 이후 키 비활성 시간 (5분)

    # IndexNow (Bing, Yandex 등 공용 프로토콜)
    indexnow_api_key: str = ""
    indexnow_endpoints: List[str] = [
        "https://api.indexnow.org/indexnow",
        "https://www.bing.com/indexnow",
        "https://yandex.com/indexnow",
    ]
    indexnow_max_urls: int = 10000  # 프로토콜 상한
    indexnow_timeout_s: float = 10.0

    # Google Sitemap Ping (무료, 무제한)
    google_ping_url: str = "https://www.google.com/ping"
    google_ping_timeout_s: float = 10.0

    # 플랫폼 도메인
    # 테넌트 스토어는 https://{slug}.{platform_domain} 에서 서비스됩니다.
    platform_domain: str = "fibidy.com"
    platform_sitemap_path: str = "/server-sitemap-index.xml"

    # 일괄 재색인: 청크 크기/청크 간 대기
    reindex_chunk_size: int = 10
    reindex_chunk_delay_s: float = 2.0
    reindex_max_slugs: int = 50

    # 관리자 엔드포인트 보호 (X-Admin-Token 헤더)
    seo_admin_token: str = ""

    # API
    api_title: str = "SEO 인덱싱 서비스"
    api_version: str = "1.0.0"
    api_description: str = "테넌트 스토어/상품 변경 시 검색엔진에 색인을 요청합니다."

    # 로깅
    log_level: str = "INFO"

    @field_validator("google_indexing_daily_quota", "indexnow_max_urls")
    @classmethod
    def validate_positive_limits(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("quota/limit values must be positive")
        return v

    @field_validator("seo_stats_ttl_days")
    @classmethod
    def validate_stats_ttl(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("seo_stats_ttl_days must be positive")
        return v

    @field_validator(
        "google_indexing_timeout_s",
        "indexnow_timeout_s",
        "google_ping_timeout_s",
    )
    @classmethod
    def validate_timeouts(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP timeouts must be positive")
        return v

    @field_validator("google_indexing_url_delay_ms", "google_indexing_cooldown_s")
    @classmethod
    def validate_non_negative_intervals(cls, v: int) -> int:
        if v < 0:
            raise ValueError("intervals must be >= 0")
        return v

    @field_validator("reindex_chunk_size", "reindex_max_slugs")
    @classmethod
    def validate_reindex_sizes(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("reindex sizes must be positive")
        return v

    @field_validator("reindex_chunk_delay_s")
    @classmethod
    def validate_chunk_delay(cls, v: float) -> float:
        if v < 0:
            raise ValueError("reindex_chunk_delay_s must be >= 0")
        return v

    @field_validator("platform_domain")
    @classmethod
    def validate_platform_domain(cls, v: str) -> str:
        v = v.strip().lower()
        if not v or "/" in v or v.startswith("."):
            raise ValueError("platform_domain must be a bare host name")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str) -> str:
        if not v:
            raise ValueError("redis_url must not be empty")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
