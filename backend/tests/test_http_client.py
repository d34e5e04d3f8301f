import pytest
import requests

from core.errors import ParseError, RateLimitedError, RequestTimeoutError, TransportError
from core.http_client import HttpErrorCode, StoreHttpClient


class FakeResponse:
    def __init__(self, status_code, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


def test_success_applies_timeout_and_user_agent():
    session = FakeSession(FakeResponse(200, {"results": []}))
    client = StoreHttpClient(user_agent="catalog-test", timeout=7, session=session)

    result = client.request("https://itunes.apple.com/search", params={"term": "x"})

    assert result.success
    assert result.data == {"results": []}
    url, kwargs = session.calls[0]
    assert kwargs["timeout"] == 7
    assert kwargs["headers"]["User-Agent"] == "catalog-test"
    assert kwargs["params"] == {"term": "x"}


@pytest.mark.parametrize(
    "status, code, exc_type",
    [
        (429, HttpErrorCode.RATE_LIMITED, RateLimitedError),
        (403, HttpErrorCode.IP_BLOCKED, RateLimitedError),
        (503, HttpErrorCode.SERVER_ERROR, TransportError),
        (404, HttpErrorCode.HTTP_ERROR, TransportError),
    ],
)
def test_status_classification(status, code, exc_type):
    client = StoreHttpClient(session=FakeSession(FakeResponse(status)))

    result = client.request("https://play.google.com/store/search", parse_json=False)

    assert not result.success
    assert result.error_code == code
    assert result.status_code == status
    with pytest.raises(exc_type):
        result.raise_for_error()


def test_timeout_is_classified():
    client = StoreHttpClient(timeout=10, session=FakeSession(error=requests.exceptions.ReadTimeout("slow")))

    result = client.request("https://itunes.apple.com/search")

    assert result.error_code == HttpErrorCode.TIMEOUT
    with pytest.raises(RequestTimeoutError):
        result.raise_for_error()


def test_connection_error_is_transport_error():
    client = StoreHttpClient(session=FakeSession(error=requests.exceptions.ConnectionError("refused")))

    result = client.request("https://itunes.apple.com/search")

    assert result.error_code == HttpErrorCode.NETWORK_ERROR
    with pytest.raises(TransportError):
        result.raise_for_error()


def test_invalid_json_is_parse_error():
    client = StoreHttpClient(session=FakeSession(FakeResponse(200, None, text="<html>")))

    result = client.request("https://itunes.apple.com/search")

    assert result.error_code == HttpErrorCode.PARSE_ERROR
    with pytest.raises(ParseError):
        result.raise_for_error()
