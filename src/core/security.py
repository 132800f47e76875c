"""
입력 보안 검증 및 관리자 엔드포인트 보호
"""

import hmac
import re
from typing import Optional
from fastapi import Header, HTTPException
from src.core.config import settings
from src.core.logging import logger, sanitize_for_log


class SecurityValidator:
    """입력 보안 검증"""

    MAX_URL_LENGTH = 2048

    # 테넌트 slug는 서브도메인으로 쓰이므로 DNS 라벨 규칙을 따름
    SLUG_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$")

    @staticmethod
    def validate_slug(slug: str) -> bool:
        """테넌트 slug 검증

        Args:
            slug: 테넌트 slug

        Returns:
            유효성 여부

        Raises:
            ValueError: 유효하지 않은 slug
        """
        if not slug:
            raise ValueError("slug는 필수입니다")

        if not SecurityValidator.SLUG_PATTERN.match(slug):
            logger.warning(f"Rejected slug: {sanitize_for_log(slug, max_length=70)}")
            raise ValueError("slug는 소문자/숫자/하이픈만 허용됩니다 (최대 63자)")

        return True

    @staticmethod
    def validate_url(url: str) -> bool:
        """URL 검증

        Args:
            url: URL 문자열

        Returns:
            유효성 여부

        Raises:
            ValueError: 유효하지 않은 URL
        """
        if not url:
            raise ValueError("URL은 필수입니다")

        if len(url) > SecurityValidator.MAX_URL_LENGTH:
            raise ValueError(f"URL은 {SecurityValidator.MAX_URL_LENGTH}자 이하여야 합니다")

        if not url.startswith(('http://', 'https://')):
            raise ValueError("URL은 http:// 또는 https://로 시작해야 합니다")

        return True


async def require_admin_token(x_admin_token: Optional[str] = Header(None)) -> None:
    """관리자 토큰 검증 (FastAPI dependency)

    - SEO_ADMIN_TOKEN 미설정: 503 (관리자 엔드포인트 비활성)
    - 헤더 누락/불일치: 401
    """
    expected = settings.seo_admin_token
    if not expected:
        raise HTTPException(status_code=503, detail="Admin endpoints are not configured")

    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        logger.warning("Admin token rejected")
        raise HTTPException(status_code=401, detail="Invalid admin token")
