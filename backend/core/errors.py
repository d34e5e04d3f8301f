"""
Fetch error taxonomy

SourceAdapter.resolve()가 던지는 예외입니다. RateLimitedFetcher는 이 예외를
FetchOutcome으로 변환하며, 단일 항목 실패가 배치를 중단시키지 않습니다.

- NotFoundError: 검색 결과 0건 (재시도 안 함, 정상적인 실패)
- RateLimitedError: HTTP 429/403 (상한까지 재시도)
- TransportError / RequestTimeoutError: 네트워크 오류, 타임아웃 (재시도 안 함)
- ParseError: 응답 형식 이상 (재시도 안 함)
"""
from typing import Optional


class FetchError(Exception):
    """Base class for item-scoped fetch failures."""


class NotFoundError(FetchError):
    """Provider returned zero matches for the search term."""


class RateLimitedError(FetchError):
    """Provider throttled the request (HTTP 429 or 403)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransportError(FetchError):
    """Connection failure or unexpected HTTP status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(TransportError):
    """Request exceeded the fixed timeout."""


class ParseError(FetchError):
    """Provider payload could not be parsed into a record."""
