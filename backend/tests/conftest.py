import pytest

from core.errors import FetchError
from core.http_client import HttpResult
from core.models import RawAppRecord, SearchTerm
from utils import logger as logger_utils


@pytest.fixture(autouse=True)
def _no_file_logging(monkeypatch):
    monkeypatch.setattr(logger_utils, "FILE_LOGGING_ENABLED", False)


@pytest.fixture
def no_sleep(monkeypatch):
    import time

    sleeps = []
    monkeypatch.setattr(time, "sleep", lambda seconds: sleeps.append(seconds))
    return sleeps


def make_ios_record(title, bundle_id=None, **kwargs):
    kwargs.setdefault("developer", f"{title} Inc.")
    kwargs.setdefault("category", "Social Networking")
    return RawAppRecord(
        title=title,
        ios_bundle_id=bundle_id or f"com.example.{title.lower().replace(' ', '')}",
        store="itunes",
        **kwargs,
    )


def make_android_record(title, package_name=None, **kwargs):
    kwargs.setdefault("icon", f"https://play-lh.googleusercontent.com/{title.lower().replace(' ', '')}")
    kwargs.setdefault("cat_key", "SOCIAL")
    return RawAppRecord(
        title=title,
        android_package_name=package_name or f"com.example.{title.lower().replace(' ', '')}.android",
        store="playstore",
        **kwargs,
    )


class FakeAdapter:
    """
    스크립트된 응답을 돌려주는 소스 어댑터

    responses: {display_name: [RawAppRecord | FetchError, ...]}
    목록을 순서대로 소비하고, 마지막 항목은 반복됩니다.
    """

    source_name = "fake"

    def __init__(self, responses=None, default=None):
        self.responses = {k: list(v) for k, v in (responses or {}).items()}
        self.default = default
        self.calls = []

    def resolve(self, term: SearchTerm):
        self.calls.append(term.display_name)
        scripted = self.responses.get(term.display_name)
        if scripted:
            response = scripted.pop(0) if len(scripted) > 1 else scripted[0]
        elif self.default is not None:
            response = self.default
        else:
            response = make_ios_record(term.display_name)
        if isinstance(response, FetchError):
            raise response
        return response


class FakeHttpClient:
    """요청 URL/파라미터를 기록하고 준비된 HttpResult를 순서대로 반환"""

    def __init__(self, results):
        self.results = list(results)
        self.requests = []

    def request(self, url, params=None, headers=None, parse_json=True):
        self.requests.append((url, dict(params or {}), parse_json))
        return self.results.pop(0)


def ok(data):
    return HttpResult(success=True, data=data, status_code=200)


class FakeCursor:
    def __init__(self, conn):
        self.conn = conn
        self._result = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, query, params=None):
        self.conn.executed.append((query, params))
        self._result = self.conn._execute(query, params)

    def fetchone(self):
        return self._result


class FakeCatalogConnection:
    """
    available_app 테이블 하나를 흉내내는 psycopg 연결

    - 트랜잭션: 첫 쓰기에서 스냅샷, commit()에서 반영, rollback()에서 폐기
    - updated_at: 쓰기마다 증가하는 정수 시계
    - fail_on(params): 예외를 돌려주면 해당 INSERT에서 발생
    """

    def __init__(self, fail_on=None):
        self.rows = {}
        self._pending = None
        self.next_id = 1
        self.clock = 0
        self.commits = 0
        self.rollbacks = 0
        self.closed = False
        self.executed = []
        self.fail_on = fail_on

    def cursor(self):
        return FakeCursor(self)

    def commit(self):
        if self._pending is not None:
            self.rows = self._pending
            self._pending = None
        self.commits += 1

    def rollback(self):
        self._pending = None
        self.rollbacks += 1

    def close(self):
        self.closed = True

    def _tx_rows(self):
        if self._pending is None:
            self._pending = {key: dict(row) for key, row in self.rows.items()}
        return self._pending

    def _execute(self, query, params):
        statement = " ".join(query.split())
        if statement.startswith("INSERT INTO available_app"):
            if self.fail_on is not None:
                error = self.fail_on(params)
                if error is not None:
                    raise error
            name, category, android, ios, developer, icon, domains = params
            rows = self._tx_rows()
            self.clock += 1
            key = (ios, android)
            values = {
                "name": name,
                "category": category,
                "developer_name": developer,
                "icon": icon,
                "domain_name": domains,
                "updated_at": self.clock,
            }
            if key in rows:
                rows[key].update(values)
            else:
                rows[key] = dict(
                    values,
                    id=self.next_id,
                    ios_bundle_id=ios,
                    android_package_name=android,
                    created_at=self.clock,
                )
                self.next_id += 1
            return {"id": rows[key]["id"]}
        if "COUNT(*)" in statement:
            return {"total": len(self._tx_rows())}
        if statement.startswith("SELECT * FROM available_app"):
            row = self._tx_rows().get(tuple(params))
            return dict(row) if row else None
        return None


@pytest.fixture
def fake_conn():
    return FakeCatalogConnection()
