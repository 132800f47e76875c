"""Pydantic 스키마 정의 (Security & Validation Enhanced)"""
from typing import List
from pydantic import BaseModel, Field, field_validator
from datetime import datetime

from src.core.config import settings
from src.core.security import SecurityValidator
from src.engine.result import ChangeType


class BatchReindexRequest(BaseModel):
    """테넌트 일괄 재색인 요청"""
    slugs: List[str] = Field(..., min_length=1, description="재색인할 테넌트 slug 목록")

    @field_validator('slugs')
    @classmethod
    def validate_slugs(cls, v: List[str]) -> List[str]:
        """slug 검증: 개수 제한 + 형식"""
        if len(v) > settings.reindex_max_slugs:
            raise ValueError(f'최대 {settings.reindex_max_slugs}개 테넌트까지 요청할 수 있습니다')
        cleaned = []
        for slug in v:
            slug = slug.strip().lower()
            SecurityValidator.validate_slug(slug)
            cleaned.append(slug)
        return cleaned


class IndexUrlRequest(BaseModel):
    """단일 URL 색인 요청"""
    url: str = Field(..., min_length=1, max_length=2048, description="색인할 플랫폼 URL")
    type: ChangeType = Field(ChangeType.URL_UPDATED, description="URL_UPDATED 또는 URL_DELETED")

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """URL 검증"""
        v = v.strip()
        SecurityValidator.validate_url(v)
        return v


class HealthResponse(BaseModel):
    """헬스 체크 응답"""
    status: str
    timestamp: datetime
    version: str
