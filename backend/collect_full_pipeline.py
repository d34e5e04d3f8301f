#!/usr/bin/env python3
"""
전체 파이프라인 실행 스크립트

수집(App Store, Play Store) -> 병합 -> DB 업로드를 한 프로세스에서 순서대로 실행합니다.

Usage:
    python collect_full_pipeline.py
    python collect_full_pipeline.py --config data/apps.json --data-dir data
    python collect_full_pipeline.py --skip-upload          # 파일 생성까지만
"""
import sys
import os
import argparse
import time
from datetime import datetime

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    APP_STORE_RESULT_FILE,
    CONFIG_ERROR_EXIT_CODE,
    DATA_DIR,
    PLAY_STORE_RESULT_FILE,
    PROCESSED_RESULT_FILE,
    UPSERT_BATCH_SIZE,
    ConfigurationError,
)
from database.db_errors import DatabaseUnavailableError, DB_UNAVAILABLE_EXIT_CODE
from scrapers import APP_STORE, PLAY_STORE
from utils.logger import cleanup_old_logs, get_timestamped_logger, route_library_logs

from collect_store_apps import run_collection
from reconcile_apps import run_reconcile
from upload_apps import run_upload

LOG_FILE_PREFIX = "collect_full_pipeline"


def run_pipeline(config_path, data_dir: str, batch_size: int, skip_upload: bool, logger) -> None:
    """
    단일 파이프라인 사이클을 실행합니다.

    Raises:
        ConfigurationError: 설정/입력 파일 오류
        DatabaseUnavailableError: DB 연결 실패
    """
    start_ts = datetime.now().isoformat()
    logger.info("=" * 70)
    logger.info(f"Full Pipeline Started at {start_ts}")
    logger.info("=" * 70)

    run_collection([APP_STORE, PLAY_STORE], config_path, data_dir, logger)

    processed_path = os.path.join(data_dir, PROCESSED_RESULT_FILE)
    run_reconcile(
        os.path.join(data_dir, APP_STORE_RESULT_FILE),
        os.path.join(data_dir, PLAY_STORE_RESULT_FILE),
        processed_path,
        logger,
    )

    if skip_upload:
        logger.info("[INFO] --skip-upload: DB 업로드를 건너뜁니다.")
    else:
        run_upload(processed_path, logger, batch_size=batch_size)

    logger.info("=" * 70)
    logger.info(f"Full Pipeline Completed at {datetime.now().isoformat()}")
    logger.info("=" * 70)


def main() -> int:
    parser = argparse.ArgumentParser(description="Run collection, reconciliation and upload")
    parser.add_argument("--config", default=None, help="Apps config JSON (default: CATALOG_APPS_CONFIG)")
    parser.add_argument("--data-dir", default=DATA_DIR, help=f"Directory for stage files (default: {DATA_DIR})")
    parser.add_argument("--batch-size", type=int, default=UPSERT_BATCH_SIZE)
    parser.add_argument("--skip-upload", action="store_true", help="Stop after reconciliation")
    args = parser.parse_args()

    logger = get_timestamped_logger("collect_full_pipeline", file_prefix=LOG_FILE_PREFIX)
    route_library_logs(logger)
    cleanup_old_logs([LOG_FILE_PREFIX])

    start_perf = time.perf_counter()
    logger.info(f"[STEP START] collect_full_pipeline | {datetime.now().isoformat()}")
    status = "OK"
    exit_code = 0
    try:
        run_pipeline(args.config, args.data_dir, args.batch_size, args.skip_upload, logger)
    except ConfigurationError as e:
        logger.error(str(e))
        status, exit_code = "CONFIG_ERROR", CONFIG_ERROR_EXIT_CODE
    except DatabaseUnavailableError:
        logger.exception("[ERROR] DB unavailable")
        status, exit_code = "DB_UNAVAILABLE", DB_UNAVAILABLE_EXIT_CODE
    except Exception:
        logger.exception("[ERROR] pipeline failed")
        status, exit_code = "FAIL", 1

    elapsed = time.perf_counter() - start_perf
    logger.info(
        f"[STEP END] collect_full_pipeline | {datetime.now().isoformat()} | "
        f"elapsed={elapsed:.2f}s | status={status}"
    )
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
