"""
Rate-limited fetcher

검색어 하나를 소스 어댑터로 조회해 FetchOutcome 하나를 만듭니다.

재시도 정책:
- RateLimitedError (HTTP 429/403): 시도 k 실패 후 base_delay * k초 대기, 최대 max_attempts회
- NotFoundError: "no results" 실패, 재시도 없음
- 그 외 FetchError (타임아웃, 연결 오류, 파싱 오류): 즉시 실패
"""
import logging
import time
from typing import Optional

from config import MAX_FETCH_ATTEMPTS, RETRY_BASE_DELAY
from core.errors import FetchError, NotFoundError, RateLimitedError
from core.models import FetchOutcome, SearchTerm
from utils.logger import format_warning_log

logger = logging.getLogger(__name__)

NO_RESULTS_REASON = "no results"


class RateLimitedFetcher:
    """
    Bounded-retry fetch of a single search term.

    결과 컬렉션에 직접 쓰지 않습니다 (BatchProcessor 담당).

    Example:
        >>> fetcher = RateLimitedFetcher(max_attempts=3, base_delay=3.0)
        >>> outcome = fetcher.fetch(SearchTerm('Instagram', 'social'), adapter)
        >>> outcome.success, outcome.reason
        (False, 'rate limited after 3 retries')
    """

    def __init__(self, max_attempts: int = MAX_FETCH_ATTEMPTS, base_delay: float = RETRY_BASE_DELAY):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay

    def fetch(self, term: SearchTerm, adapter) -> FetchOutcome:
        source = getattr(adapter, 'source_name', type(adapter).__name__)
        last_error: Optional[RateLimitedError] = None

        for attempt in range(1, self.max_attempts + 1):
            logger.debug(f"[FETCH] source={source} | term={term.display_name} | attempt={attempt}")
            try:
                record = adapter.resolve(term)
            except NotFoundError:
                logger.info(f"No results found for {term.display_name} ({source})")
                return FetchOutcome.failed(term, NO_RESULTS_REASON, attempts=attempt)
            except RateLimitedError as e:
                last_error = e
                if attempt >= self.max_attempts:
                    break
                delay = self.base_delay * attempt
                logger.warning(format_warning_log(
                    "rate_limit",
                    f"term={term.display_name}",
                    f"{source} status={e.status_code} | retry in {delay:g}s ({attempt}/{self.max_attempts})"
                ))
                time.sleep(delay)
                continue
            except FetchError as e:
                logger.warning(format_warning_log(
                    type(e).__name__, f"term={term.display_name}", f"{source} | {e}"
                ))
                return FetchOutcome.failed(term, str(e) or type(e).__name__, attempts=attempt)

            return FetchOutcome.ok(term, record, attempts=attempt)

        logger.warning(format_warning_log(
            "rate_limit_exhausted",
            f"term={term.display_name}",
            f"{source} | last={last_error}"
        ))
        return FetchOutcome.failed(
            term,
            f"rate limited after {self.max_attempts} retries",
            attempts=self.max_attempts,
        )
