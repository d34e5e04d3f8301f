"""
Source adapter interface

소스 어댑터는 검색어 하나를 원격 조회해 RawAppRecord 하나로 정규화합니다.
실패는 core.errors 예외로 알립니다:

- NotFoundError: 결과 없음
- RateLimitedError: HTTP 429/403
- TransportError / RequestTimeoutError / ParseError: 재시도하지 않는 실패
"""
from abc import ABC, abstractmethod
from typing import Optional

from core.http_client import StoreHttpClient
from core.models import RawAppRecord, SearchTerm


class SourceAdapter(ABC):
    """Resolve a search term into a normalized RawAppRecord."""

    #: 설정 파일 search_terms 키와 결과 파일 이름에 쓰이는 소스 이름
    source_name: str = ""

    def __init__(self, http_client: Optional[StoreHttpClient] = None):
        self.http_client = http_client or StoreHttpClient()

    @abstractmethod
    def resolve(self, term: SearchTerm) -> RawAppRecord:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source_name={self.source_name!r})"
