#!/usr/bin/env python3
"""
수집 결과 병합 스크립트 (병합 스테이지)

App Store 결과와 Play Store 결과를 제목으로 매칭해 CanonicalAppRecord 배열을 만듭니다.
양쪽에서 모두 찾은 앱만 결과에 포함되고, 나머지는 skipped 목록에 기록됩니다.

Usage:
    python reconcile_apps.py
    python reconcile_apps.py --app-store data/appstore-result.json \\
        --play-store data/playstore-result.json --output data/processed-result.json
"""
import sys
import os
import argparse
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    APP_STORE_RESULT_FILE,
    CONFIG_ERROR_EXIT_CODE,
    DATA_DIR,
    PLAY_STORE_RESULT_FILE,
    PROCESSED_RESULT_FILE,
    SKIPPED_APPS_FILE,
    ConfigurationError,
)
from core.models import ReconcileResult
from core.reconciler import Reconciler
from utils.error_tracker import ErrorTracker
from utils.logger import (
    cleanup_old_logs,
    get_timestamped_logger,
    log_step_end,
    log_step_start,
    route_library_logs,
)
from utils.result_files import load_stage_records, write_canonical_records, write_skipped_titles

LOG_FILE_PREFIX = "reconcile_apps"


def run_reconcile(
    app_store_path: str,
    play_store_path: str,
    output_path: str,
    logger,
    skipped_path: Optional[str] = None,
    error_tracker: Optional[ErrorTracker] = None,
) -> ReconcileResult:
    """
    두 수집 결과 파일을 병합해 저장합니다.

    Raises:
        ConfigurationError: 입력 파일을 읽을 수 없을 때
    """
    app_store_records = load_stage_records(app_store_path)
    play_store_records = load_stage_records(play_store_path)
    logger.info(
        f"Loaded records: app_store={len(app_store_records)} | play_store={len(play_store_records)}"
    )

    result = Reconciler(error_tracker=error_tracker).merge(app_store_records, play_store_records)

    write_canonical_records(output_path, result.canonical)
    skipped_path = skipped_path or os.path.join(os.path.dirname(output_path), SKIPPED_APPS_FILE)
    write_skipped_titles(skipped_path, result.skipped)

    logger.info(f"Processed {len(result.canonical)} apps | skipped={len(result.skipped)}")
    return result


def main() -> int:
    parser = argparse.ArgumentParser(description="Merge App Store and Play Store results")
    parser.add_argument("--app-store", default=os.path.join(DATA_DIR, APP_STORE_RESULT_FILE))
    parser.add_argument("--play-store", default=os.path.join(DATA_DIR, PLAY_STORE_RESULT_FILE))
    parser.add_argument("--output", default=os.path.join(DATA_DIR, PROCESSED_RESULT_FILE))
    args = parser.parse_args()

    logger = get_timestamped_logger("reconcile_apps", file_prefix=LOG_FILE_PREFIX)
    route_library_logs(logger)
    cleanup_old_logs([LOG_FILE_PREFIX, "error_report_reconcile_apps"])

    start_perf = log_step_start("reconcile_apps", logger)
    try:
        tracker = ErrorTracker(name="reconcile_apps", log_errors=False)
        run_reconcile(args.app_store, args.play_store, args.output, logger, error_tracker=tracker)
        if tracker.get_error_count():
            tracker.save_to_file()
    except ConfigurationError as e:
        logger.error(str(e))
        log_step_end("reconcile_apps", start_perf, "CONFIG_ERROR", logger)
        return CONFIG_ERROR_EXIT_CODE
    except OSError:
        logger.exception("[ERROR] failed to write reconcile results")
        log_step_end("reconcile_apps", start_perf, "FAIL", logger)
        return 1

    log_step_end("reconcile_apps", start_perf, "OK", logger)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
