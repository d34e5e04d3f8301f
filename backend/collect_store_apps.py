#!/usr/bin/env python3
"""
스토어 앱 정보 수집 스크립트 (수집 스테이지)

설정 파일의 카테고리별 앱 이름을 스토어에서 검색해 결과 파일과 실패 목록을 저장합니다.

Usage:
    python collect_store_apps.py                          # App Store + Play Store
    python collect_store_apps.py --source app_store       # App Store만
    python collect_store_apps.py --source play_store      # Play Store만
    python collect_store_apps.py --config data/apps.json --output-dir data
"""
import sys
import os
import argparse
from typing import Dict, Mapping, Optional, Sequence

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from config import (
    APP_STORE_FAILED_FILE,
    APP_STORE_RESULT_FILE,
    CONFIG_ERROR_EXIT_CODE,
    DATA_DIR,
    PLAY_STORE_FAILED_FILE,
    PLAY_STORE_RESULT_FILE,
    ConfigurationError,
    load_apps_config,
)
from core.batch_processor import BatchProcessor
from core.models import BatchResult
from scrapers import APP_STORE, PLAY_STORE, SourceAdapter, get_adapter
from scrapers.search_terms import build_search_groups
from utils.error_tracker import ErrorTracker
from utils.logger import (
    cleanup_old_logs,
    get_timestamped_logger,
    log_step_end,
    log_step_start,
    route_library_logs,
)
from utils.result_files import write_failed_items, write_stage_result

LOG_FILE_PREFIX = "collect_store_apps"

# 소스별 (결과 파일, 실패 목록 파일)
SOURCE_FILES = {
    APP_STORE: (APP_STORE_RESULT_FILE, APP_STORE_FAILED_FILE),
    PLAY_STORE: (PLAY_STORE_RESULT_FILE, PLAY_STORE_FAILED_FILE),
}
SOURCE_CHOICES = [APP_STORE, PLAY_STORE, "all"]


def resolve_sources(choice: str) -> list:
    return [APP_STORE, PLAY_STORE] if choice == "all" else [choice]


def collect_source(
    source: str,
    groups: Mapping[str, Sequence],
    output_dir: str,
    logger,
    adapter: Optional[SourceAdapter] = None,
    processor: Optional[BatchProcessor] = None,
) -> BatchResult:
    """소스 하나를 수집하고 결과/실패 파일을 저장합니다."""
    step_name = f"COLLECT_{source.upper()}"
    start_perf = log_step_start(step_name, logger)
    status = "OK"

    tracker = None
    if processor is None:
        tracker = ErrorTracker(name=f"collect_{source}", log_errors=False)
        processor = BatchProcessor(error_tracker=tracker)
    adapter = adapter or get_adapter(source)

    try:
        result = processor.run_groups(groups, adapter)

        result_file, failed_file = SOURCE_FILES[source]
        write_stage_result(os.path.join(output_dir, result_file), result)
        write_failed_items(os.path.join(output_dir, failed_file), result.failed)

        logger.info(
            f"[{source}] Completed: successful={len(result.successful)} | failed={len(result.failed)}"
        )
        for item in result.failed:
            logger.info(f"  - {item['name']}: {item['reason']}")

        if tracker is not None and tracker.get_error_count():
            tracker.save_to_file()
        return result
    except Exception:
        status = "FAIL"
        raise
    finally:
        log_step_end(step_name, start_perf, status, logger)


def run_collection(
    sources: Sequence[str],
    config_path: Optional[str],
    output_dir: str,
    logger,
    adapters: Optional[Mapping[str, SourceAdapter]] = None,
    processor: Optional[BatchProcessor] = None,
) -> Dict[str, BatchResult]:
    """
    설정 파일을 읽고 소스별 수집을 순서대로 실행합니다.

    Raises:
        ConfigurationError: 설정 파일이 없거나 깨졌을 때 (수집 시작 전)
    """
    apps_config = load_apps_config(config_path)
    groups = build_search_groups(apps_config)
    total_terms = sum(len(terms) for terms in groups.values())
    logger.info(f"Loaded {total_terms} apps in {len(groups)} categories")

    adapters = adapters or {}
    results = {}
    for source in sources:
        results[source] = collect_source(
            source, groups, output_dir, logger,
            adapter=adapters.get(source),
            processor=processor,
        )
    return results


def main() -> int:
    parser = argparse.ArgumentParser(description="Collect app records from the stores")
    parser.add_argument(
        "--source",
        choices=SOURCE_CHOICES,
        default="all",
        help="Store to collect from (default: all)",
    )
    parser.add_argument("--config", default=None, help="Apps config JSON (default: CATALOG_APPS_CONFIG)")
    parser.add_argument("--output-dir", default=DATA_DIR, help=f"Directory for result files (default: {DATA_DIR})")
    args = parser.parse_args()

    logger = get_timestamped_logger("collect_store_apps", file_prefix=LOG_FILE_PREFIX)
    route_library_logs(logger)
    cleanup_old_logs([LOG_FILE_PREFIX, "error_report_collect_"])

    start_perf = log_step_start("collect_store_apps", logger)
    try:
        run_collection(resolve_sources(args.source), args.config, args.output_dir, logger)
    except ConfigurationError as e:
        logger.error(str(e))
        log_step_end("collect_store_apps", start_perf, "CONFIG_ERROR", logger)
        return CONFIG_ERROR_EXIT_CODE
    except Exception:
        logger.exception("[ERROR] collect_store_apps failed")
        log_step_end("collect_store_apps", start_perf, "FAIL", logger)
        return 1

    log_step_end("collect_store_apps", start_perf, "OK", logger)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
