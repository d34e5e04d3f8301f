import json
import sys
import time

import psycopg
import pytest

import collect_full_pipeline
import upload_apps
from database import catalog_db
from database.db_errors import DatabaseUnavailableError, DB_UNAVAILABLE_EXIT_CODE


def _raise_operational(*args, **kwargs):
    raise psycopg.OperationalError("connection refused")


def test_connect_with_retry_raises_db_unavailable(monkeypatch):
    attempts = []

    def raise_operational(*args, **kwargs):
        attempts.append(args)
        raise psycopg.OperationalError("connection refused")

    monkeypatch.setattr(psycopg, "connect", raise_operational)
    monkeypatch.setattr(time, "sleep", lambda *_: None)

    with pytest.raises(DatabaseUnavailableError):
        catalog_db.connect_with_retry("dbname=test")

    assert len(attempts) == catalog_db.DB_CONNECT_MAX_RETRIES


def test_connect_with_retry_recovers(monkeypatch, fake_conn):
    results = [psycopg.OperationalError("the database system is starting up"), fake_conn]

    def flaky_connect(*args, **kwargs):
        result = results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(psycopg, "connect", flaky_connect)
    monkeypatch.setattr(time, "sleep", lambda *_: None)

    assert catalog_db.connect_with_retry("dbname=test") is fake_conn


def test_open_catalog_store_propagates_db_unavailable(monkeypatch):
    monkeypatch.setattr(psycopg, "connect", _raise_operational)
    monkeypatch.setattr(time, "sleep", lambda *_: None)

    with pytest.raises(DatabaseUnavailableError):
        with catalog_db.open_catalog_store("dbname=test"):
            pass


def test_upload_apps_returns_db_exit_code(monkeypatch, tmp_path):
    processed = tmp_path / "processed-result.json"
    processed.write_text(json.dumps([{"title": "Instagram", "ios_bundle_id": "com.burbn.instagram"}]))

    monkeypatch.setattr(psycopg, "connect", _raise_operational)
    monkeypatch.setattr(time, "sleep", lambda *_: None)
    monkeypatch.setattr(sys, "argv", ["upload_apps.py", "--input", str(processed)])

    assert upload_apps.main() == DB_UNAVAILABLE_EXIT_CODE
    assert not (tmp_path / "upload-report.json").exists()


def test_full_pipeline_returns_db_exit_code(monkeypatch):
    def raise_db_unavailable(*args, **kwargs):
        raise DatabaseUnavailableError("db down")

    monkeypatch.setattr(collect_full_pipeline, "run_pipeline", raise_db_unavailable)
    monkeypatch.setattr(sys, "argv", ["collect_full_pipeline.py"])

    assert collect_full_pipeline.main() == DB_UNAVAILABLE_EXIT_CODE
