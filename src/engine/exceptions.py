"""Indexing Engine Exceptions

Raised by the low-level HTTP/auth clients. Engines catch every one of them at
their public boundary and convert it into a failed result.
"""

from typing import Optional


class IndexingEngineException(Exception):
    """인덱싱 엔진 기본 예외"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.status_code}: {self.message}"
        return self.message


class IndexingAuthError(IndexingEngineException):
    """인증 실패

    토큰 발급 거부 또는 401/403 응답. 해당 키는 쿨다운 처리됩니다.
    """

    pass


class IndexingTransportError(IndexingEngineException):
    """네트워크/타임아웃 예외

    요청이 응답을 받지 못한 경우 (재시도하지 않음)
    """

    pass
