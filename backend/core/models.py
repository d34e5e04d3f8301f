"""
Catalog data model

수집 → 병합 → 저장 파이프라인에서 주고받는 레코드 타입입니다.

- SearchTerm: 입력 (읽기 전용)
- RawAppRecord: 소스 하나에서 조회한 앱 정보 (ios_bundle_id, android_package_name 중 하나만 존재)
- FetchOutcome: 검색어 하나의 조회 결과 (성공/실패)
- CanonicalAppRecord: 두 소스를 병합한 앱 정보 (없는 필드는 직렬화에서 제외)
"""
from dataclasses import dataclass, field, fields, asdict
from typing import Any, Dict, List, Mapping, Optional


@dataclass(frozen=True)
class SearchTerm:
    """
    조회 입력 단위

    Attributes:
        display_name: 표시용 앱 이름 (결과 레코드의 title로 사용)
        category: 설정 파일의 카테고리 이름 (소스에서 카테고리를 못 찾을 때 사용)
        queries: 소스별 검색어 재정의 {'app_store': ..., 'play_store': ...}
    """
    display_name: str
    category: Optional[str] = None
    queries: Mapping[str, str] = field(default_factory=dict, hash=False, compare=False)

    def query_for(self, source: str) -> str:
        """소스에 보낼 검색어를 반환합니다. 재정의가 없으면 display_name."""
        return self.queries.get(source) or self.display_name


@dataclass
class RawAppRecord:
    """
    소스 하나에서 조회한 앱 레코드

    ios_bundle_id와 android_package_name 중 정확히 하나만 값을 가지며,
    나머지는 직렬화 시 null로 명시됩니다.
    """
    title: str
    ios_bundle_id: Optional[str] = None
    android_package_name: Optional[str] = None
    developer: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    cat_key: Optional[str] = None
    cat_keys: List[str] = field(default_factory=list)
    icon: Optional[str] = None
    icon_72: Optional[str] = None
    website: Optional[str] = None
    domain_name: List[str] = field(default_factory=list)
    app_availability: Dict[str, Any] = field(default_factory=dict)
    app_country: Optional[str] = None
    market_status: Optional[str] = None
    store: Optional[str] = None
    search_term: Optional[str] = None
    # 상업 정보 (App Store 위주, 없을 수 있음)
    price: Optional[float] = None
    currency: Optional[str] = None
    size: Optional[int] = None
    current_version: Optional[str] = None
    minimum_os_version: Optional[str] = None
    release_date: Optional[str] = None
    age_rating: Optional[str] = None

    def __post_init__(self):
        has_bundle = bool(self.ios_bundle_id)
        has_package = bool(self.android_package_name)
        if has_bundle == has_package:
            raise ValueError(
                f"RawAppRecord '{self.title}' must carry exactly one of "
                f"ios_bundle_id / android_package_name"
            )
        # 빈 문자열은 null로 통일
        if not has_bundle:
            self.ios_bundle_id = None
        if not has_package:
            self.android_package_name = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RawAppRecord":
        """수집 결과 JSON(apps 배열의 항목)에서 레코드를 복원합니다. 모르는 키는 무시합니다."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if 'title' not in values:
            raise ValueError("record without title")
        return cls(**values)


@dataclass
class FetchOutcome:
    """
    검색어 하나의 조회 결과

    Attributes:
        success: 성공 여부
        term: 입력 검색어
        record: 성공 시 RawAppRecord
        reason: 실패 사유 ("no results", "rate limited after 3 retries", ...)
        attempts: 실제 요청 시도 횟수
    """
    success: bool
    term: SearchTerm
    record: Optional[RawAppRecord] = None
    reason: Optional[str] = None
    attempts: int = 1

    @classmethod
    def ok(cls, term: SearchTerm, record: RawAppRecord, attempts: int = 1) -> "FetchOutcome":
        return cls(success=True, term=term, record=record, attempts=attempts)

    @classmethod
    def failed(cls, term: SearchTerm, reason: str, attempts: int = 1) -> "FetchOutcome":
        return cls(success=False, term=term, reason=reason, attempts=attempts)


@dataclass
class CanonicalAppRecord:
    """
    두 소스를 병합한 앱 레코드

    키 집합은 고정이며, None은 "필드 없음" 하나의 상태만 뜻합니다.
    to_dict()는 없는 필드를 제외한 희소 딕셔너리를 반환합니다.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    developer: Optional[str] = None
    ios_bundle_id: Optional[str] = None
    android_package_name: Optional[str] = None
    app_country: Optional[str] = None
    market_status: Optional[str] = None
    icon: Optional[str] = None
    icon_72: Optional[str] = None
    cat_key: Optional[str] = None
    cat_keys: Optional[List[str]] = None
    app_availability: Optional[Dict[str, Any]] = None
    website: Optional[str] = None
    domain_name: Optional[List[str]] = None
    is_popular: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CanonicalAppRecord":
        """병합 결과 JSON에서 복원합니다. 'isPopular' 같은 이전 키 이름도 받습니다."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if 'is_popular' not in values and 'isPopular' in data:
            values['is_popular'] = data['isPopular']
        return cls(**values)


@dataclass
class BatchResult:
    """BatchProcessor 실행 결과 (입력 순서 유지)"""
    successful: List[RawAppRecord] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)
    outcomes: List[FetchOutcome] = field(default_factory=list)

    def extend(self, other: "BatchResult") -> None:
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)
        self.outcomes.extend(other.outcomes)


@dataclass
class ReconcileResult:
    """Reconciler 실행 결과"""
    canonical: List[CanonicalAppRecord] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
