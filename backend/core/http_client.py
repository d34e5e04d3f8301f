"""
스토어 HTTP 클라이언트

요청 한 번을 실행하고 결과를 HttpResult로 분류합니다.
재시도는 하지 않습니다 (Rate Limit 재시도는 core.fetcher.RateLimitedFetcher 담당).

주요 기능:
- 고정 타임아웃, 브라우저 User-Agent
- HTTP 에러 코드 분류 (RATE_LIMITED, IP_BLOCKED, SERVER_ERROR 등)
- HttpResult.raise_for_error()로 core.errors 예외 변환

사용 예시:
    from core.http_client import StoreHttpClient

    client = StoreHttpClient(timeout=10)
    result = client.request('https://itunes.apple.com/search', params={'term': 'instagram'})

    if result.success:
        data = result.data
    else:
        result.raise_for_error()
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from config import DEFAULT_USER_AGENT, REQUEST_TIMEOUT, get_request_kwargs
from core.errors import ParseError, RateLimitedError, RequestTimeoutError, TransportError


logger = logging.getLogger(__name__)


class HttpErrorCode:
    """
    HTTP 에러 코드 상수

    Attributes:
        IP_BLOCKED: HTTP 403 - 스토어가 요청을 거부 (rate limit 신호로 취급)
        RATE_LIMITED: HTTP 429 - 요청 과다
        TIMEOUT: 요청 타임아웃 (재시도 안 함)
        NETWORK_ERROR: 연결 오류, DNS 오류 등
        SERVER_ERROR: HTTP 5xx
        HTTP_ERROR: 그 외 4xx
        PARSE_ERROR: JSON 파싱 실패
    """
    IP_BLOCKED = "IP_BLOCKED"
    RATE_LIMITED = "RATE_LIMITED"
    TIMEOUT = "TIMEOUT"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_ERROR = "SERVER_ERROR"
    HTTP_ERROR = "HTTP_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    SUCCESS = "SUCCESS"


RATE_LIMIT_CODES = frozenset({HttpErrorCode.IP_BLOCKED, HttpErrorCode.RATE_LIMITED})


@dataclass
class HttpResult:
    """
    HTTP 요청 결과

    Attributes:
        success: 정상 응답(200-299) 여부
        data: parse_json=True면 dict, 아니면 str
        status_code: HTTP 상태 코드 (응답이 있었던 경우)
        error_code: HttpErrorCode 값 (실패 시)
        error_detail: 디버깅/로깅용 상세 메시지
        url: 요청 URL
    """
    success: bool
    data: Optional[Any] = None
    status_code: Optional[int] = None
    error_code: Optional[str] = None
    error_detail: Optional[str] = None
    url: Optional[str] = None

    @property
    def is_rate_limited(self) -> bool:
        return self.error_code in RATE_LIMIT_CODES

    def raise_for_error(self) -> None:
        """실패 결과를 core.errors 예외로 변환합니다. 성공이면 아무것도 하지 않습니다."""
        if self.success:
            return
        if self.is_rate_limited:
            raise RateLimitedError(self.error_detail, status_code=self.status_code)
        if self.error_code == HttpErrorCode.TIMEOUT:
            raise RequestTimeoutError(self.error_detail)
        if self.error_code == HttpErrorCode.PARSE_ERROR:
            raise ParseError(self.error_detail)
        raise TransportError(self.error_detail, status_code=self.status_code)


class StoreHttpClient:
    """
    스토어 요청용 HTTP 클라이언트

    세션 하나를 재사용하며, 모든 요청에 고정 타임아웃을 적용합니다.

    Example:
        >>> client = StoreHttpClient()
        >>> result = client.request(url, parse_json=False)
        >>> if result.is_rate_limited:
        ...     print(result.status_code)
    """

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            user_agent: User-Agent 헤더 값
            timeout: 요청 타임아웃 (초)
            session: 주입할 requests.Session (테스트용)
            default_headers: 모든 요청에 붙일 추가 헤더
        """
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()
        self.default_headers = dict(default_headers or {})

    def request(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        parse_json: bool = True,
    ) -> HttpResult:
        """
        GET 요청을 실행하고 결과를 분류합니다. 예외를 던지지 않습니다.

        Args:
            url: 요청 URL
            params: 쿼리 파라미터
            headers: 추가 헤더 (User-Agent는 자동 설정)
            parse_json: JSON 파싱 여부
        """
        req_headers = {'User-Agent': self.user_agent}
        req_headers.update(self.default_headers)
        if headers:
            req_headers.update(headers)

        try:
            response = self.session.get(
                url,
                params=params,
                headers=req_headers,
                **get_request_kwargs(self.timeout),
            )
        except requests.exceptions.Timeout:
            logger.debug(f"타임아웃: {url}")
            return HttpResult(
                success=False,
                error_code=HttpErrorCode.TIMEOUT,
                error_detail=f"timeout of {self.timeout:g}s exceeded",
                url=url,
            )
        except requests.exceptions.ConnectionError as e:
            logger.debug(f"연결 오류: {url} - {e}")
            return HttpResult(
                success=False,
                error_code=HttpErrorCode.NETWORK_ERROR,
                error_detail=f"connection error: {str(e)[:100]}",
                url=url,
            )
        except requests.exceptions.RequestException as e:
            logger.debug(f"요청 오류: {url} - {type(e).__name__}: {e}")
            return HttpResult(
                success=False,
                error_code=HttpErrorCode.NETWORK_ERROR,
                error_detail=f"{type(e).__name__}: {str(e)[:100]}",
                url=url,
            )

        return self._handle_response(response, url, parse_json)

    def _handle_response(self, response: requests.Response, url: str, parse_json: bool) -> HttpResult:
        """
        상태 코드별 분류:
        - 200-299: 성공
        - 403: IP_BLOCKED
        - 429: RATE_LIMITED
        - 5xx: SERVER_ERROR
        - 그 외: HTTP_ERROR
        """
        status_code = response.status_code

        if 200 <= status_code < 300:
            if not parse_json:
                return HttpResult(success=True, data=response.text, status_code=status_code, url=url)
            try:
                return HttpResult(success=True, data=response.json(), status_code=status_code, url=url)
            except ValueError as e:
                return HttpResult(
                    success=False,
                    status_code=status_code,
                    error_code=HttpErrorCode.PARSE_ERROR,
                    error_detail=f"invalid JSON response: {e}",
                    url=url,
                )

        if status_code == 403:
            return HttpResult(
                success=False,
                status_code=status_code,
                error_code=HttpErrorCode.IP_BLOCKED,
                error_detail="HTTP 403 Forbidden",
                url=url,
            )

        if status_code == 429:
            return HttpResult(
                success=False,
                status_code=status_code,
                error_code=HttpErrorCode.RATE_LIMITED,
                error_detail="HTTP 429 Too Many Requests",
                url=url,
            )

        if 500 <= status_code < 600:
            return HttpResult(
                success=False,
                status_code=status_code,
                error_code=HttpErrorCode.SERVER_ERROR,
                error_detail=f"HTTP {status_code}",
                url=url,
            )

        return HttpResult(
            success=False,
            status_code=status_code,
            error_code=HttpErrorCode.HTTP_ERROR,
            error_detail=f"HTTP {status_code}",
            url=url,
        )
