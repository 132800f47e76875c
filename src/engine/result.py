"""Indexing Results - Standardized Result Format

Provides the result types returned by each indexing engine and the aggregate
returned by the orchestrator for every domain event.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


QUOTA_EXHAUSTED_MESSAGE = "quota exhausted"


class ChangeType(str, Enum):
    """Google Indexing API 알림 종류"""

    URL_UPDATED = "URL_UPDATED"
    URL_DELETED = "URL_DELETED"


class ErrorKind(str, Enum):
    """실패 분류

    엔진은 예외를 던지지 않고 이 분류와 함께 실패 결과를 반환합니다.
    """

    QUOTA_EXHAUSTED = "quota_exhausted"  # 사용 가능한 키 없음 (네트워크 호출 없음)
    AUTH_FAILURE = "auth_failure"  # 401/403 → 키 쿨다운
    TRANSPORT_FAILURE = "transport_failure"  # 네트워크/타임아웃
    HTTP_ERROR = "http_error"  # 그 외 비정상 응답
    INVALID_RESPONSE = "invalid_response"  # 2xx지만 JSON 객체가 아님
    INVALID_URL = "invalid_url"
    DISABLED = "disabled"  # 설정 누락으로 엔진 비활성


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class IndexResult:
    """Google Indexing API URL 단위 결과

    Attributes:
        url: 제출 URL
        success: 성공 여부
        credential_id: 사용한 키 id (키를 못 얻었으면 None)
        error: 오류 메시지
        error_kind: 오류 분류
        status_code: HTTP 상태 코드
        response: urlNotificationMetadata 등 응답 본문
    """

    url: str
    success: bool
    credential_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    status_code: Optional[int] = None
    response: Optional[Dict[str, Any]] = None

    @classmethod
    def succeeded(
        cls, url: str, credential_id: str, status_code: int, response: Dict[str, Any]
    ) -> "IndexResult":
        return cls(
            url=url,
            success=True,
            credential_id=credential_id,
            status_code=status_code,
            response=response,
        )

    @classmethod
    def quota_exhausted(cls, url: str) -> "IndexResult":
        """키 없음 (CredentialExhausted) - 네트워크 호출 없이 실패"""
        return cls(
            url=url,
            success=False,
            credential_id=None,
            error=QUOTA_EXHAUSTED_MESSAGE,
            error_kind=ErrorKind.QUOTA_EXHAUSTED,
        )

    @classmethod
    def failed(
        cls,
        url: str,
        credential_id: Optional[str],
        error: str,
        error_kind: ErrorKind,
        status_code: Optional[int] = None,
    ) -> "IndexResult":
        return cls(
            url=url,
            success=False,
            credential_id=credential_id,
            error=error,
            error_kind=error_kind,
            status_code=status_code,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["error_kind"] = self.error_kind.value if self.error_kind else None
        return data


@dataclass
class BroadcastResult:
    """IndexNow 엔드포인트 단위 결과"""

    endpoint: str
    status_code: Optional[int]
    success: bool
    error: Optional[str] = None


@dataclass
class BroadcastSubmission:
    """IndexNow 제출 결과 (엔드포인트 OR 성공)"""

    success: bool
    results: List[BroadcastResult] = field(default_factory=list)
    submitted_urls: int = 0
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None


@dataclass
class PingResult:
    """Google Sitemap Ping 결과"""

    sitemap_url: str
    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None


@dataclass
class EngineSummary:
    """AggregateResult 안의 엔진별 요약

    Attributes:
        success: 엔진 단위 성공 여부
        urls_submitted: 성공적으로 전달된 URL 수 (ping은 0 또는 1)
        attempted: 이 이벤트에서 엔진을 호출했는지 여부
        status_code: 단일 요청 엔진(ping)의 HTTP 상태
        quota_remaining: 기본 엔진의 남은 쿼터 (기본 엔진만)
        details: 엔진별 상세 결과 (dict 목록)
    """

    success: bool = False
    urls_submitted: int = 0
    attempted: bool = False
    status_code: Optional[int] = None
    quota_remaining: Optional[int] = None
    details: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def skipped(cls) -> "EngineSummary":
        return cls(success=False, attempted=False)

    @classmethod
    def from_index_results(
        cls, results: List[IndexResult], quota_remaining: int
    ) -> "EngineSummary":
        succeeded = [r for r in results if r.success]
        return cls(
            success=bool(succeeded),
            urls_submitted=len(succeeded),
            attempted=True,
            quota_remaining=quota_remaining,
            details=[r.to_dict() for r in results],
        )

    @classmethod
    def from_broadcast(cls, submission: BroadcastSubmission) -> "EngineSummary":
        return cls(
            success=submission.success,
            urls_submitted=submission.submitted_urls if submission.success else 0,
            attempted=True,
            details=[asdict(r) for r in submission.results],
        )

    @classmethod
    def from_ping(cls, result: PingResult) -> "EngineSummary":
        return cls(
            success=result.success,
            urls_submitted=1 if result.success else 0,
            attempted=True,
            status_code=result.status_code,
            details=[asdict(result)],
        )


@dataclass
class AggregateResult:
    """도메인 이벤트 1건의 통합 결과

    오케스트레이터가 이벤트 처리 후 외부로 반환하는 유일한 형식입니다.
    success는 세 엔진 중 하나라도 성공하면 True입니다.
    """

    target: str
    google_indexing: EngineSummary = field(default_factory=EngineSummary.skipped)
    index_now: EngineSummary = field(default_factory=EngineSummary.skipped)
    google_ping: EngineSummary = field(default_factory=EngineSummary.skipped)
    product_url: Optional[str] = None
    timestamp: str = field(default_factory=_now_iso)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return (
            self.google_indexing.success
            or self.index_now.success
            or self.google_ping.success
        )

    @classmethod
    def failed(
        cls, target: str, error: str, product_url: Optional[str] = None
    ) -> "AggregateResult":
        """예상치 못한 예외 발생 시 전부 실패로 채운 결과"""
        return cls(
            target=target,
            google_indexing=EngineSummary(quota_remaining=0),
            index_now=EngineSummary(),
            google_ping=EngineSummary(),
            product_url=product_url,
            error=error,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "success": self.success,
            "product_url": self.product_url,
            "google_indexing": asdict(self.google_indexing),
            "index_now": asdict(self.index_now),
            "google_ping": asdict(self.google_ping),
            "timestamp": self.timestamp,
            "error": self.error,
        }


@dataclass
class BatchReindexResult:
    """일괄 재색인 결과"""

    total: int
    successful: int
    failed_slugs: List[str] = field(default_factory=list)
    results: List[AggregateResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed_slugs": list(self.failed_slugs),
            "results": [r.to_dict() for r in self.results],
        }
