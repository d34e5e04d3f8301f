"""
에러 추적 모듈
스테이지별 실패를 누적 기록하여 실행 후 실패 리포트로 남깁니다.
"""
import os
import json
from datetime import datetime
from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field, asdict
from enum import Enum

from .logger import get_logger, LOG_DIR


class ErrorStep(Enum):
    """에러 발생 단계"""
    FETCH = "fetch"              # 소스 조회
    RECONCILE = "reconcile"      # 소스 간 병합
    UPSERT = "upsert"            # DB 저장


@dataclass
class ErrorRecord:
    """에러 레코드"""
    timestamp: str
    source: str
    step: str
    target: Optional[str]
    error_type: str
    error_message: str
    extra_info: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)

    def to_summary(self) -> str:
        target_info = f"target={self.target}" if self.target else "no_target"
        return f"[{self.source}:{self.step}] {target_info} - {self.error_type}: {self.error_message[:100]}"


class ErrorTracker:
    """
    에러 추적기

    BatchProcessor, CatalogStore가 실패를 기록하면 스테이지 종료 시
    save_to_file()로 JSON 리포트를 남깁니다.
    """

    def __init__(self, name: str = "default", max_errors: int = 10000, log_errors: bool = True):
        """
        Args:
            name: 추적기 이름 (리포트 파일 구분용)
            max_errors: 최대 보관 에러 수 (메모리 관리)
            log_errors: 기록 시 로그 출력 여부
        """
        self.name = name
        self.max_errors = max_errors
        self.errors: List[ErrorRecord] = []
        self.error_counts: Dict[str, int] = {}  # source:step별 카운트
        self.logger = get_logger(f"error_tracker_{name}", log_file=f"errors_{name}.log") if log_errors else None

    def add_error(
        self,
        source: str,
        step: ErrorStep,
        error: Union[Exception, str],
        target: Optional[str] = None,
        **extra_info
    ) -> ErrorRecord:
        """
        에러를 기록합니다.

        Args:
            source: 소스 이름 ('app_store', 'play_store', 'catalog_db')
            step: 에러 발생 단계
            error: 예외 또는 실패 사유 문자열
            target: 대상 (앱 이름, 배치 번호 등)
            **extra_info: 추가 정보 (attempts, batch 등)
        """
        step_name = step.value if isinstance(step, ErrorStep) else str(step)
        error_type = type(error).__name__ if isinstance(error, Exception) else "Failure"

        record = ErrorRecord(
            timestamp=datetime.now().isoformat(),
            source=source,
            step=step_name,
            target=target,
            error_type=error_type,
            error_message=str(error)[:500],
            extra_info=extra_info
        )

        if len(self.errors) >= self.max_errors:
            self.errors.pop(0)
        self.errors.append(record)

        count_key = f"{source}:{step_name}"
        self.error_counts[count_key] = self.error_counts.get(count_key, 0) + 1

        if self.logger:
            self.logger.error(record.to_summary())
        return record

    def get_errors_by_step(self, step: ErrorStep) -> List[ErrorRecord]:
        step_name = step.value if isinstance(step, ErrorStep) else str(step)
        return [e for e in self.errors if e.step == step_name]

    def get_error_count(self) -> int:
        return len(self.errors)

    def get_summary(self) -> Dict[str, Any]:
        """에러 요약 정보"""
        error_types: Dict[str, int] = {}
        for e in self.errors:
            error_types[e.error_type] = error_types.get(e.error_type, 0) + 1
        return {
            'total_errors': len(self.errors),
            'errors_by_step': dict(self.error_counts),
            'error_types': error_types,
            'recent_errors': [e.to_dict() for e in self.errors[-20:]],
        }

    def save_to_file(self, filename: Optional[str] = None, directory: Optional[str] = None) -> str:
        """
        에러 리포트를 JSON 파일로 저장

        Returns:
            저장된 파일 경로
        """
        if filename is None:
            timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
            filename = f"error_report_{self.name}_{timestamp}.json"

        target_dir = directory or LOG_DIR
        os.makedirs(target_dir, exist_ok=True)
        filepath = os.path.join(target_dir, filename)

        report = {
            'generated_at': datetime.now().isoformat(),
            'tracker_name': self.name,
            'summary': self.get_summary(),
            'all_errors': [e.to_dict() for e in self.errors],
        }

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(report, f, ensure_ascii=False, indent=2, default=str)

        if self.logger:
            self.logger.info(f"Error report saved to: {filepath}")
        return filepath
