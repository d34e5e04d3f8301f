import json
import logging
import os
import time

from utils import logger as logger_utils
from utils.error_tracker import ErrorStep, ErrorTracker


def test_cleanup_old_logs_removes_stale_files(tmp_path):
    old_file = tmp_path / "collect_store_apps_20000101_000000.log"
    new_file = tmp_path / "collect_store_apps_20990101_000000.log"
    other_file = tmp_path / "upload_apps_20000101_000000.log"

    old_file.write_text("old")
    new_file.write_text("new")
    other_file.write_text("other")

    now = time.time()
    old_time = now - (366 * 24 * 60 * 60)
    new_time = now - (24 * 60 * 60)
    os.utime(old_file, (old_time, old_time))
    os.utime(new_file, (new_time, new_time))
    os.utime(other_file, (old_time, old_time))

    removed = logger_utils.cleanup_old_logs(
        prefixes=["collect_store_apps"],
        max_age_days=365,
        log_dir=str(tmp_path),
    )

    assert removed == 1
    assert not old_file.exists()
    assert new_file.exists()
    assert other_file.exists()


def test_get_timestamped_logger_creates_distinct_files(tmp_path, monkeypatch):
    monkeypatch.setattr(logger_utils, "FILE_LOGGING_ENABLED", True)

    logger1 = logger_utils.get_timestamped_logger(
        name="TestRunLogger",
        file_prefix="collect_store_apps",
        log_dir=str(tmp_path),
        timestamp="20260101_000000_000001",
        console=False,
    )
    logger1.info("first")
    logger_utils.close_logger_handlers(logger1)

    logger2 = logger_utils.get_timestamped_logger(
        name="TestRunLogger",
        file_prefix="collect_store_apps",
        log_dir=str(tmp_path),
        timestamp="20260101_000000_000002",
        console=False,
    )
    logger2.info("second")
    logger_utils.close_logger_handlers(logger2)

    files = sorted(tmp_path.glob("collect_store_apps_*.log"))
    assert len(files) == 2
    assert "first" in files[0].read_text(encoding="utf-8")
    assert "second" in files[1].read_text(encoding="utf-8")


def test_progress_logger_emits_step_lines(caplog):
    logger = logging.getLogger("test_progress")
    progress = logger_utils.ProgressLogger(logger, total=20, step_name="fetch_social")

    with caplog.at_level(logging.INFO, logger="test_progress"):
        progress.start(source="app_store")
        for i in range(1, 21):
            progress.tick(i, item_id=f"app{i}")
        progress.end(successful=19, failed=1)

    messages = [r.getMessage() for r in caplog.records]
    assert messages[0] == "[STEP START] fetch_social | total=20 | source=app_store"
    assert sum(m.startswith("[PROGRESS]") for m in messages) == 10
    assert messages[-1].startswith("[STEP END] fetch_social")
    assert messages[-1].endswith("status=OK | successful=19 | failed=1")


def test_log_formatters():
    assert logger_utils.format_warning_log("rate_limit", "term=Instagram", "HTTP 429") == (
        "issue=rate_limit | target=term=Instagram | HTTP 429"
    )
    assert logger_utils.format_error_log("InvalidCategoryError", "batch=2", "rollback") == (
        "reason=InvalidCategoryError | target=batch=2 | action=rollback"
    )


def test_error_tracker_summary_and_report(tmp_path):
    tracker = ErrorTracker(name="unit", log_errors=False)
    tracker.add_error("app_store", ErrorStep.FETCH, "no results", target="Ghost", attempts=1)
    tracker.add_error("catalog_db", ErrorStep.UPSERT, ValueError("Invalid category: TOOLS"), target="App 7")

    summary = tracker.get_summary()
    assert summary["total_errors"] == 2
    assert summary["errors_by_step"] == {"app_store:fetch": 1, "catalog_db:upsert": 1}
    assert summary["error_types"] == {"Failure": 1, "ValueError": 1}

    path = tracker.save_to_file(filename="report.json", directory=str(tmp_path))
    report = json.loads((tmp_path / "report.json").read_text(encoding="utf-8"))
    assert path == str(tmp_path / "report.json")
    assert report["tracker_name"] == "unit"
    assert len(report["all_errors"]) == 2


def test_error_tracker_caps_stored_errors():
    tracker = ErrorTracker(name="capped", max_errors=2, log_errors=False)
    for i in range(3):
        tracker.add_error("app_store", ErrorStep.FETCH, f"failure {i}")

    assert [e.error_message for e in tracker.errors] == ["failure 1", "failure 2"]
