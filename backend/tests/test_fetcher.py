import pytest
from conftest import FakeAdapter, make_ios_record

from core.errors import NotFoundError, ParseError, RateLimitedError, RequestTimeoutError
from core.fetcher import NO_RESULTS_REASON, RateLimitedFetcher
from core.models import SearchTerm


def test_fetch_success_on_first_attempt(no_sleep):
    record = make_ios_record("Instagram")
    adapter = FakeAdapter({"Instagram": [record]})

    outcome = RateLimitedFetcher().fetch(SearchTerm("Instagram", "social"), adapter)

    assert outcome.success
    assert outcome.record is record
    assert outcome.attempts == 1
    assert no_sleep == []


def test_not_found_fails_without_retry(no_sleep):
    adapter = FakeAdapter({"Ghost": [NotFoundError("nothing")]})

    outcome = RateLimitedFetcher().fetch(SearchTerm("Ghost"), adapter)

    assert not outcome.success
    assert outcome.reason == NO_RESULTS_REASON
    assert adapter.calls == ["Ghost"]
    assert no_sleep == []


def test_rate_limit_cap_makes_exactly_three_attempts(no_sleep):
    adapter = FakeAdapter({"Instagram": [RateLimitedError("HTTP 429", status_code=429)]})

    outcome = RateLimitedFetcher(max_attempts=3, base_delay=3.0).fetch(SearchTerm("Instagram"), adapter)

    assert not outcome.success
    assert outcome.reason == "rate limited after 3 retries"
    assert outcome.attempts == 3
    assert len(adapter.calls) == 3
    # 시도 k 실패 후 3 * k초, 마지막 시도 뒤에는 대기 없음
    assert no_sleep == [3.0, 6.0]


def test_rate_limit_then_success(no_sleep):
    record = make_ios_record("Discord")
    adapter = FakeAdapter({"Discord": [RateLimitedError("HTTP 403", status_code=403), record]})

    outcome = RateLimitedFetcher(max_attempts=3, base_delay=2.0).fetch(SearchTerm("Discord"), adapter)

    assert outcome.success
    assert outcome.attempts == 2
    assert no_sleep == [2.0]


def test_timeout_and_parse_errors_are_not_retried(no_sleep):
    adapter = FakeAdapter({
        "Slow": [RequestTimeoutError("timeout of 10s exceeded")],
        "Broken": [ParseError("malformed details page")],
    })
    fetcher = RateLimitedFetcher()

    slow = fetcher.fetch(SearchTerm("Slow"), adapter)
    broken = fetcher.fetch(SearchTerm("Broken"), adapter)

    assert slow.reason == "timeout of 10s exceeded"
    assert broken.reason == "malformed details page"
    assert adapter.calls == ["Slow", "Broken"]
    assert no_sleep == []


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        RateLimitedFetcher(max_attempts=0)
