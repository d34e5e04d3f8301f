"""
Stage result files

수집/병합/업로드 스테이지가 주고받는 JSON 파일을 읽고 씁니다.

- 수집 결과: {"timestamp", "success", "total_apps", "total_failed", "apps", "failed_apps"}
- 실패 목록: [{"name", "reason"}]
- 병합 결과: CanonicalAppRecord 배열 (+ skipped 제목 목록)
- 업로드 리포트: {"timestamp", "successful", "failed", "errors"}
"""
import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Sequence

from config import ConfigurationError
from core.models import BatchResult, CanonicalAppRecord, RawAppRecord

logger = logging.getLogger(__name__)


def write_json(path: str, payload: Any) -> str:
    """JSON 파일을 저장하고 경로를 반환합니다. 상위 디렉토리는 자동 생성."""
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=str)
    logger.info(f"Saved: {path}")
    return path


def read_json(path: str) -> Any:
    """JSON 파일을 읽습니다. 없거나 깨진 파일은 ConfigurationError."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Input file not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read {path}: {e}") from e


def build_stage_result(result: BatchResult) -> Dict[str, Any]:
    return {
        'timestamp': datetime.now().isoformat(),
        'success': True,
        'total_apps': len(result.successful),
        'total_failed': len(result.failed),
        'apps': [record.to_dict() for record in result.successful],
        'failed_apps': list(result.failed),
    }


def write_stage_result(path: str, result: BatchResult) -> str:
    return write_json(path, build_stage_result(result))


def write_failed_items(path: str, failed: Sequence[Dict[str, str]]) -> str:
    return write_json(path, [{'name': item['name'], 'reason': item['reason']} for item in failed])


def load_stage_records(path: str) -> List[RawAppRecord]:
    """
    수집 결과 파일에서 RawAppRecord 목록을 읽습니다.
    스테이지 결과 객체({"apps": [...]})와 배열 형식 모두 허용합니다.

    Raises:
        ConfigurationError: 파일을 읽을 수 없거나 형식이 맞지 않을 때
    """
    data = read_json(path)
    if isinstance(data, dict):
        data = data.get('apps')
    if not isinstance(data, list):
        raise ConfigurationError(f"Unexpected stage file format: {path}")

    records = []
    for index, item in enumerate(data):
        try:
            records.append(RawAppRecord.from_dict(item))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid record #{index} in {path}: {e}") from e
    return records


def write_canonical_records(path: str, records: Iterable[CanonicalAppRecord]) -> str:
    return write_json(path, [record.to_dict() for record in records])


def load_canonical_records(path: str) -> List[CanonicalAppRecord]:
    """병합 결과 파일(CanonicalAppRecord 배열)을 읽습니다."""
    data = read_json(path)
    if not isinstance(data, list):
        raise ConfigurationError(f"Unexpected processed file format: {path}")
    try:
        return [CanonicalAppRecord.from_dict(item) for item in data]
    except (TypeError, AttributeError) as e:
        raise ConfigurationError(f"Invalid record in {path}: {e}") from e


def write_skipped_titles(path: str, titles: Sequence[str]) -> str:
    return write_json(path, {
        'timestamp': datetime.now().isoformat(),
        'total_skipped': len(titles),
        'skipped': list(titles),
    })


def write_upload_report(path: str, report) -> str:
    payload = {'timestamp': datetime.now().isoformat()}
    payload.update(report.to_dict())
    return write_json(path, payload)
