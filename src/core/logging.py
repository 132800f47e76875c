"""로깅 설정 (Security Enhanced)

메시지 앞의 [KeyPool], [IndexNow] 같은 태그를 component 필드로 분리해
엔진별로 grep 하기 쉽게 출력합니다. 서비스 계정 PEM 블록과 Bearer 토큰은
어떤 로그에서든 핸들러 단계에서 가려집니다.

    2026-10-18 09:00:00 WARNING [keypool] Key key_2 marked as inactive for 300s
"""
import logging
import os
import re
import sys

from src.core.config import settings


# Production 환경에서는 DEBUG 로그 비활성화
IS_PRODUCTION = os.getenv("ENVIRONMENT", "development") == "production"

LOGGER_NAME = "seo_indexer"
DEFAULT_COMPONENT = "app"

_TAG_PATTERN = re.compile(r"^\[([A-Za-z_]+)\]\s*")
_PEM_PATTERN = re.compile(r"-----BEGIN [A-Z ]*PRIVATE KEY-----.*?(-----END [A-Z ]*PRIVATE KEY-----|$)", re.S)
_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9._\-]+")


class ComponentFilter(logging.Filter):
    """[Tag] 접두어 → record.component, 비밀값 가림"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()

        match = _TAG_PATTERN.match(message)
        if match:
            record.component = match.group(1).lower()
            message = message[match.end():]
        else:
            record.component = getattr(record, "component", DEFAULT_COMPONENT)

        message = _PEM_PATTERN.sub("***", message)
        message = _BEARER_PATTERN.sub(r"\1***", message)

        record.msg = message
        record.args = ()
        return True


def setup_logging() -> logging.Logger:
    """로거 초기화 및 설정"""

    logger = logging.getLogger(LOGGER_NAME)

    # Production에서는 최소 INFO 레벨
    log_level = settings.log_level.upper()
    if IS_PRODUCTION and log_level == "DEBUG":
        log_level = "INFO"

    logger.setLevel(getattr(logging, log_level))

    # 콘솔 핸들러
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, log_level))
    console_handler.addFilter(ComponentFilter())

    if IS_PRODUCTION:
        # Production: 한 줄에 시간/레벨/엔진/메시지
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(component)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        # Development: 호출 위치 포함
        formatter = logging.Formatter(
            fmt="%(asctime)s %(levelname)-7s [%(component)s] %(module)s:%(lineno)d %(message)s",
            datefmt="%H:%M:%S"
        )

    console_handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(console_handler)

    return logger


logger = setup_logging()


def mask_secret(value: str, visible: int = 4) -> str:
    """키/토큰의 앞뒤 일부만 남기고 마스킹

    Examples:
        >>> mask_secret("abcd1234efgh5678")
        'abcd...5678'
        >>> mask_secret("")
        'not configured'
    """
    if not value:
        return "not configured"
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{value[:visible]}...{value[-visible:]}"


def sanitize_for_log(value: str, max_length: int = 100) -> str:
    """민감 정보 제거 후 로깅용 문자열 반환

    Args:
        value: 로깅할 문자열
        max_length: 최대 길이

    Returns:
        제거된 문자열
    """
    if not value:
        return "[empty]"

    # PEM 키가 섞여 들어오는 경우 통째로 가림
    if "PRIVATE KEY" in value:
        return "***"

    # 민감한 패턴 마스킹
    patterns_to_mask = [
        ('password', '***'),
        ('token', '***'),
        ('api_key', '***'),
        ('secret', '***'),
        ('private_key', '***'),
    ]

    result = value
    for pattern, mask in patterns_to_mask:
        if pattern.lower() in result.lower():
            result = mask
            break

    # 길이 초과 시 절단
    if len(result) > max_length:
        result = result[:max_length] + "..."

    return result
