"""
로깅 모듈
콘솔과 파일에 동시에 로그를 출력합니다.

로그 정책:
- 라이브러리 모듈은 logging.getLogger(__name__) 사용
- 스테이지 스크립트는 get_timestamped_logger()로 실행 단위 파일 생성
- 스텝 경계는 [STEP START] / [STEP END], 진행률은 [PROGRESS]
"""
import os
import sys
import time
import logging
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import Optional, List

# 로그 디렉토리 설정
LOG_DIR = os.getenv(
    'CATALOG_LOG_DIR',
    os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'logs')
)

# 파일 로깅 전역 스위치 (CI 등에서 끄기 위함)
FILE_LOGGING_ENABLED = os.getenv('CATALOG_FILE_LOGGING', 'true').lower() in ('1', 'true', 'yes')

DEFAULT_LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5


def ensure_log_dir(log_dir: Optional[str] = None) -> str:
    """로그 디렉토리 생성"""
    target_dir = log_dir or LOG_DIR
    os.makedirs(target_dir, exist_ok=True)
    return target_dir


def _build_timestamped_log_file(prefix: str, timestamp: Optional[str] = None) -> str:
    resolved_timestamp = timestamp or datetime.now().strftime('%Y%m%d_%H%M%S')
    return f"{prefix}_{resolved_timestamp}.log"


def get_logger(
    name: str,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    console: bool = True,
    file_logging: bool = True,
    log_dir: Optional[str] = None,
    rotate: bool = True,
    force_new_handlers: bool = False
) -> logging.Logger:
    """
    로거를 생성하거나 가져옵니다.

    Args:
        name: 로거 이름 (예: 'collect_store_apps', 'catalog_db')
        log_file: 로그 파일 이름 (없으면 name + '.log' 사용)
        level: 로그 레벨 (기본: INFO)
        console: 콘솔 출력 여부
        file_logging: 파일 로깅 여부 (FILE_LOGGING_ENABLED가 false면 무시)
        log_dir: 로그 디렉토리 (없으면 LOG_DIR)
        rotate: RotatingFileHandler 사용 여부
        force_new_handlers: 기존 핸들러를 닫고 새로 구성

    Returns:
        설정된 Logger 인스턴스
    """
    logger = logging.getLogger(name)

    # 이미 핸들러가 있으면 기존 로거 반환
    if logger.handlers and not force_new_handlers:
        return logger
    if logger.handlers and force_new_handlers:
        close_logger_handlers(logger)

    logger.setLevel(level)
    formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_logging and FILE_LOGGING_ENABLED:
        target_dir = ensure_log_dir(log_dir)
        log_path = os.path.join(target_dir, log_file or f"{name}.log")

        if rotate:
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=DEFAULT_MAX_BYTES,
                backupCount=DEFAULT_BACKUP_COUNT,
                encoding='utf-8'
            )
        else:
            file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_timestamped_logger(
    name: str,
    file_prefix: str,
    level: int = logging.INFO,
    console: bool = True,
    file_logging: bool = True,
    log_dir: Optional[str] = None,
    timestamp: Optional[str] = None
) -> logging.Logger:
    """실행 시각이 파일명에 들어가는 로거를 생성합니다."""
    log_file = _build_timestamped_log_file(file_prefix, timestamp)
    return get_logger(
        name,
        log_file=log_file,
        level=level,
        console=console,
        file_logging=file_logging,
        log_dir=log_dir,
        rotate=False,
    )


def cleanup_old_logs(
    prefixes: List[str],
    max_age_days: int = 90,
    log_dir: Optional[str] = None
) -> int:
    """지정된 접두어 로그 중 보관 기간을 지난 파일을 삭제합니다. 삭제 개수를 반환합니다."""
    target_dir = log_dir or LOG_DIR
    if not os.path.isdir(target_dir):
        return 0

    cutoff = time.time() - (max_age_days * 24 * 60 * 60)
    removed = 0
    for entry in os.scandir(target_dir):
        if not entry.is_file():
            continue
        if not any(entry.name.startswith(prefix) for prefix in prefixes):
            continue
        try:
            if entry.stat().st_mtime < cutoff:
                os.remove(entry.path)
                removed += 1
        except OSError:
            continue
    return removed


def close_logger_handlers(logger: logging.Logger) -> None:
    """로거 핸들러를 닫고 해제합니다."""
    for handler in list(logger.handlers):
        try:
            handler.flush()
            handler.close()
        finally:
            logger.removeHandler(handler)


LIBRARY_LOGGER_NAMES = ('core', 'scrapers', 'database', 'utils')


def route_library_logs(logger: logging.Logger, names=LIBRARY_LOGGER_NAMES) -> None:
    """스크립트 로거의 핸들러를 라이브러리 모듈 로거에도 연결합니다 (같은 실행 로그 파일에 기록)."""
    for name in names:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logger.level)
        for handler in logger.handlers:
            if handler not in library_logger.handlers:
                library_logger.addHandler(handler)


def log_step_start(step_name: str, logger: logging.Logger) -> float:
    logger.info(f"[STEP START] {step_name} | {datetime.now().isoformat()}")
    return time.perf_counter()


def log_step_end(step_name: str, start_perf: float, status: str, logger: logging.Logger) -> None:
    elapsed = time.perf_counter() - start_perf
    logger.info(
        f"[STEP END] {step_name} | {datetime.now().isoformat()} | elapsed={elapsed:.2f}s | status={status}"
    )


class ProgressLogger:
    """
    배치 작업 진행률 로깅 유틸리티.

    - interval_percent 간격으로만 INFO 로그 출력
    - 개별 항목은 DEBUG 레벨
    - 종료 시 소요시간과 요약 통계를 INFO로 출력
    """

    def __init__(self, logger: logging.Logger, total: int, step_name: str = "batch",
                 interval_percent: int = 10):
        self.logger = logger
        self.total = total
        self.step_name = step_name
        self.interval = max(1, total * interval_percent // 100)
        self.last_logged = 0
        self.start_time = None
        self.stats = {}

    def start(self, **context):
        self.start_time = time.perf_counter()
        self.stats = {}
        ctx = ' | '.join(f"{k}={v}" for k, v in context.items())
        self.logger.info(f"[STEP START] {self.step_name} | total={self.total}" + (f" | {ctx}" if ctx else ""))

    def tick(self, current: int, item_id: str = None):
        if item_id:
            self.logger.debug(f"[ITEM] {current}/{self.total} | id={item_id}")

        if current - self.last_logged >= self.interval or current == self.total:
            pct = current * 100 // self.total if self.total > 0 else 100
            self.logger.info(f"[PROGRESS] {self.step_name} {current}/{self.total} ({pct}%)")
            self.last_logged = current

    def end(self, status: str = "OK", **stats):
        elapsed = time.perf_counter() - self.start_time if self.start_time else 0
        self.stats.update(stats)
        stats_str = ' | '.join(f"{k}={v}" for k, v in self.stats.items())
        self.logger.info(
            f"[STEP END] {self.step_name} | elapsed={elapsed:.2f}s | status={status}"
            + (f" | {stats_str}" if stats_str else "")
        )


def format_error_log(reason: str, target: str, action: str, detail: str = None) -> str:
    """
    ERROR 로그 포맷: 원인 + 영향 + 조치를 한 줄에 포함.

    Example:
        format_error_log("InvalidCategoryError", "batch=2", "rollback", "Invalid category: TOOLS")
        -> "reason=InvalidCategoryError | target=batch=2 | action=rollback | Invalid category: TOOLS"
    """
    msg = f"reason={reason} | target={target} | action={action}"
    if detail:
        msg += f" | {detail}"
    return msg


def format_warning_log(issue: str, target: str, detail: str = None) -> str:
    """
    WARNING 로그 포맷: 이상 징후 요약.

    Example:
        format_warning_log("rate_limit", "term=Instagram", "HTTP 429")
        -> "issue=rate_limit | target=term=Instagram | HTTP 429"
    """
    msg = f"issue={issue} | target={target}"
    if detail:
        msg += f" | {detail}"
    return msg
