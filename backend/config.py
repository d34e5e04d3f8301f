# -*- coding: utf-8 -*-
"""
전역 설정값 관리
모든 설정값은 환경변수로 덮어쓸 수 있으며, 스테이지 스크립트가 최상단에서 참조합니다.
"""
import os
import json
from typing import Any, Dict

import urllib3

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y")


# SSL 검증 (사내 프록시 환경에서만 false 권장)
SSL_VERIFY = _env_bool("CATALOG_SSL_VERIFY", "true")
if not SSL_VERIFY:
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

# 데이터 파일 위치 (수집 결과, 병합 결과, 업로드 리포트)
DATA_DIR = os.getenv("CATALOG_DATA_DIR", os.path.join(os.path.dirname(BASE_DIR), "data"))
APPS_CONFIG_PATH = os.getenv("CATALOG_APPS_CONFIG", os.path.join(DATA_DIR, "apps.json"))

APP_STORE_RESULT_FILE = "appstore-result.json"
PLAY_STORE_RESULT_FILE = "playstore-result.json"
APP_STORE_FAILED_FILE = "failed_itunes_apps.json"
PLAY_STORE_FAILED_FILE = "failed_playstore_apps.json"
PROCESSED_RESULT_FILE = "processed-result.json"
SKIPPED_APPS_FILE = "skipped-apps.json"
UPLOAD_REPORT_FILE = "upload-report.json"

# ============ 수집 설정 ============

# User-Agent 헤더 (봇 차단 방지)
DEFAULT_USER_AGENT = os.getenv(
    "CATALOG_USER_AGENT",
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) '
    'AppleWebKit/537.36 (KHTML, like Gecko) '
    'Chrome/120.0.0.0 Safari/537.36'
)

# 요청 타임아웃 (초) - 모든 원격 호출에 적용
REQUEST_TIMEOUT = float(os.getenv("CATALOG_REQUEST_TIMEOUT_SEC", "10"))

# 요청 간 딜레이 (초) - 같은 카테고리 안에서 연속 요청 사이
REQUEST_DELAY = float(os.getenv("CATALOG_REQUEST_DELAY_SEC", "1.0"))

# 카테고리(그룹) 간 딜레이 (초)
GROUP_DELAY = float(os.getenv("CATALOG_GROUP_DELAY_SEC", "5.0"))

# Rate Limit 재시도: 대기 시간 = RETRY_BASE_DELAY * 시도 횟수
MAX_FETCH_ATTEMPTS = int(os.getenv("CATALOG_MAX_ATTEMPTS", "3"))
RETRY_BASE_DELAY = float(os.getenv("CATALOG_RETRY_BASE_DELAY_SEC", "3.0"))

# ============ DB 설정 ============

# psycopg DSN 참고: https://www.psycopg.org/psycopg3/docs/basic/usage.html
DB_DSN = os.getenv("CATALOG_DB_DSN")
DB_HOST = os.getenv("CATALOG_DB_HOST", "localhost")
DB_PORT = int(os.getenv("CATALOG_DB_PORT", "5432"))
DB_NAME = os.getenv("CATALOG_DB_NAME", "app_catalog")
DB_USER = os.getenv("CATALOG_DB_USER", "app_catalog")
DB_PASSWORD = os.getenv("CATALOG_DB_PASSWORD", "")

# 연결 재시도 설정
DB_CONNECT_MAX_RETRIES = int(os.getenv("CATALOG_DB_CONNECT_MAX_RETRIES", "5"))
DB_CONNECT_RETRY_DELAY_SEC = float(os.getenv("CATALOG_DB_CONNECT_RETRY_DELAY_SEC", "2.0"))

# 업로드 배치 크기 (배치 하나 = 트랜잭션 하나)
UPSERT_BATCH_SIZE = int(os.getenv("CATALOG_UPSERT_BATCH_SIZE", "10"))

# 설정 오류 시 종료 코드
CONFIG_ERROR_EXIT_CODE = 2

# 프록시 설정 (환경변수 HTTP_PROXY, HTTPS_PROXY가 설정되어 있으면 사용)
HTTP_PROXY = os.environ.get('HTTP_PROXY', None)
HTTPS_PROXY = os.environ.get('HTTPS_PROXY', None)


class ConfigurationError(RuntimeError):
    """Raised when run input (apps config, stage files) is missing or corrupt."""


def get_proxies():
    """프록시 설정 반환 (설정되지 않으면 None)"""
    proxies = {}
    if HTTP_PROXY:
        proxies['http'] = HTTP_PROXY
    if HTTPS_PROXY:
        proxies['https'] = HTTPS_PROXY
    return proxies if proxies else None


def get_request_kwargs(timeout: float = None) -> Dict[str, Any]:
    """requests 라이브러리용 공통 설정 반환"""
    kwargs = {
        'timeout': timeout if timeout is not None else REQUEST_TIMEOUT,
        'verify': SSL_VERIFY,
    }
    proxies = get_proxies()
    if proxies:
        kwargs['proxies'] = proxies
    return kwargs


def build_dsn() -> str:
    """DB DSN 문자열을 구성합니다."""
    return DB_DSN or (
        f"host={DB_HOST} port={DB_PORT} dbname={DB_NAME} "
        f"user={DB_USER} password={DB_PASSWORD}"
    )


def load_apps_config(path: str = None) -> Dict[str, Any]:
    """
    앱 목록 설정 파일(JSON)을 읽습니다.

    형식:
        {"categories": {"social": {"apps": ["instagram", {"display_name": "TikTok"}]}}}

    Args:
        path: 설정 파일 경로 (없으면 APPS_CONFIG_PATH)

    Returns:
        파싱된 설정 딕셔너리

    Raises:
        ConfigurationError: 파일이 없거나, JSON이 깨졌거나, categories가 없을 때
    """
    config_path = path or APPS_CONFIG_PATH
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Failed to load configuration: file not found ({config_path})") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to load configuration: {config_path}: {e}") from e

    categories = data.get('categories') if isinstance(data, dict) else None
    if not isinstance(categories, dict):
        raise ConfigurationError(
            f"Failed to load configuration: 'categories' mapping missing in {config_path}"
        )

    for name, group in categories.items():
        apps = group.get('apps') if isinstance(group, dict) else None
        if not isinstance(apps, list):
            raise ConfigurationError(
                f"Failed to load configuration: category '{name}' has no 'apps' list"
            )

    return data
