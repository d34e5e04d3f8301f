#!/usr/bin/env python3
"""
병합 결과 DB 업로드 스크립트 (저장 스테이지)

Usage:
    python upload_apps.py
    python upload_apps.py --input data/processed-result.json --batch-size 10
    python upload_apps.py --skip-init         # 스키마 초기화 생략
"""
import sys
import os
import argparse
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import psycopg

from config import (
    CONFIG_ERROR_EXIT_CODE,
    DATA_DIR,
    PROCESSED_RESULT_FILE,
    UPLOAD_REPORT_FILE,
    UPSERT_BATCH_SIZE,
    ConfigurationError,
)
from database.catalog_db import UpsertReport, open_catalog_store
from database.db_errors import DatabaseUnavailableError, DB_UNAVAILABLE_EXIT_CODE
from utils.error_tracker import ErrorTracker
from utils.logger import (
    cleanup_old_logs,
    get_timestamped_logger,
    log_step_end,
    log_step_start,
    route_library_logs,
)
from utils.result_files import load_canonical_records, write_upload_report

LOG_FILE_PREFIX = "upload_apps"


def run_upload(
    input_path: str,
    logger,
    batch_size: int = UPSERT_BATCH_SIZE,
    skip_init: bool = False,
    report_path: Optional[str] = None,
    dsn: Optional[str] = None,
) -> UpsertReport:
    """
    병합 결과를 읽어 available_app 테이블에 upsert하고 리포트를 저장합니다.

    Raises:
        ConfigurationError: 입력 파일을 읽을 수 없을 때
        DatabaseUnavailableError: DB 연결 재시도가 모두 실패했을 때
    """
    records = load_canonical_records(input_path)
    logger.info(f"Loaded {len(records)} apps from {input_path}")

    tracker = ErrorTracker(name="upload_apps", log_errors=False)
    with open_catalog_store(dsn, error_tracker=tracker) as store:
        if not skip_init:
            store.initialize_schema()
        report = store.upsert_all(records, batch_size=batch_size)

    logger.info("\nUpload Results:")
    logger.info(f"Successfully uploaded: {report.successful} apps")
    logger.info(f"Failed to upload: {report.failed} apps")
    for error in report.errors:
        logger.info(f"  - {error['app']}: {error['error']}")

    report_path = report_path or os.path.join(os.path.dirname(input_path), UPLOAD_REPORT_FILE)
    write_upload_report(report_path, report)
    if tracker.get_error_count():
        tracker.save_to_file()
    return report


def main() -> int:
    parser = argparse.ArgumentParser(description="Upload reconciled apps to the catalog database")
    parser.add_argument("--input", default=os.path.join(DATA_DIR, PROCESSED_RESULT_FILE))
    parser.add_argument(
        "--batch-size",
        type=int,
        default=UPSERT_BATCH_SIZE,
        help=f"Records per transaction (default: {UPSERT_BATCH_SIZE})",
    )
    parser.add_argument("--skip-init", action="store_true", help="Skip schema initialization")
    args = parser.parse_args()

    logger = get_timestamped_logger("upload_apps", file_prefix=LOG_FILE_PREFIX)
    route_library_logs(logger)
    cleanup_old_logs([LOG_FILE_PREFIX, "error_report_upload_apps"])

    start_perf = log_step_start("upload_apps", logger)
    try:
        run_upload(args.input, logger, batch_size=args.batch_size, skip_init=args.skip_init)
    except ConfigurationError as e:
        logger.error(str(e))
        log_step_end("upload_apps", start_perf, "CONFIG_ERROR", logger)
        return CONFIG_ERROR_EXIT_CODE
    except DatabaseUnavailableError:
        logger.exception("[ERROR] DB unavailable")
        log_step_end("upload_apps", start_perf, "DB_UNAVAILABLE", logger)
        return DB_UNAVAILABLE_EXIT_CODE
    except psycopg.Error:
        logger.exception("[ERROR] schema initialization failed")
        log_step_end("upload_apps", start_perf, "FAIL", logger)
        return 1
    except OSError:
        logger.exception("[ERROR] failed to write upload report")
        log_step_end("upload_apps", start_perf, "FAIL", logger)
        return 1

    log_step_end("upload_apps", start_perf, "OK", logger)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
