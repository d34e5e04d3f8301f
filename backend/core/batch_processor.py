"""
Batch processor

검색어 목록을 RateLimitedFetcher로 순차 조회하고 결과를 successful/failed로 나눕니다.

- 그룹(카테고리) 안에서는 한 번에 요청 하나, 요청 사이 request_delay초 대기
- 그룹 사이에는 group_delay초 대기
- 항목 하나의 실패는 배치를 중단시키지 않으며, 두 컬렉션 모두 입력 순서를 유지
"""
import logging
import time
from typing import Mapping, Optional, Sequence

from config import GROUP_DELAY, REQUEST_DELAY
from core.fetcher import RateLimitedFetcher
from core.models import BatchResult, SearchTerm
from utils.error_tracker import ErrorStep, ErrorTracker
from utils.logger import ProgressLogger

logger = logging.getLogger(__name__)


class BatchProcessor:
    """
    Sequential, paced driver over a list of search terms.

    Example:
        >>> processor = BatchProcessor(RateLimitedFetcher(), request_delay=1.0, group_delay=5.0)
        >>> result = processor.run_groups({'social': terms}, adapter)
        >>> len(result.successful) + len(result.failed) == len(terms)
        True
    """

    def __init__(
        self,
        fetcher: Optional[RateLimitedFetcher] = None,
        request_delay: float = REQUEST_DELAY,
        group_delay: float = GROUP_DELAY,
        error_tracker: Optional[ErrorTracker] = None,
    ):
        self.fetcher = fetcher or RateLimitedFetcher()
        self.request_delay = request_delay
        self.group_delay = group_delay
        self.error_tracker = error_tracker

    def run(self, terms: Sequence[SearchTerm], adapter, step_name: str = "fetch_batch") -> BatchResult:
        """
        검색어 목록을 순서대로 조회합니다. 단일 항목 실패로 예외를 던지지 않습니다.

        Returns:
            BatchResult (successful: RawAppRecord 목록, failed: {'name', 'reason'} 목록)
        """
        source = getattr(adapter, 'source_name', type(adapter).__name__)
        result = BatchResult()
        progress = ProgressLogger(logger, total=len(terms), step_name=step_name)
        progress.start(source=source)

        for index, term in enumerate(terms, start=1):
            outcome = self.fetcher.fetch(term, adapter)
            result.outcomes.append(outcome)

            if outcome.success:
                result.successful.append(outcome.record)
            else:
                result.failed.append({'name': term.display_name, 'reason': outcome.reason})
                if self.error_tracker is not None:
                    self.error_tracker.add_error(
                        source, ErrorStep.FETCH, outcome.reason,
                        target=term.display_name, attempts=outcome.attempts
                    )

            progress.tick(index, item_id=term.display_name)

            # 마지막 항목 뒤에는 대기하지 않음
            if index < len(terms) and self.request_delay > 0:
                time.sleep(self.request_delay)

        progress.end(successful=len(result.successful), failed=len(result.failed))
        return result

    def run_groups(self, groups: Mapping[str, Sequence[SearchTerm]], adapter) -> BatchResult:
        """
        카테고리별 검색어 묶음을 입력 순서대로 처리합니다.

        Args:
            groups: {카테고리 이름: 검색어 목록} (dict 삽입 순서 유지)
            adapter: SourceAdapter
        """
        combined = BatchResult()
        group_names = list(groups.keys())

        for position, group_name in enumerate(group_names, start=1):
            logger.info(f"Processing category: {group_name} ({position}/{len(group_names)})")
            combined.extend(self.run(groups[group_name], adapter, step_name=f"fetch_{group_name}"))

            if position < len(group_names) and self.group_delay > 0:
                time.sleep(self.group_delay)

        return combined
