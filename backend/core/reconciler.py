"""
Cross-source reconciler

App Store 레코드(A)마다 Play Store 레코드(B)에서 같은 앱을 찾아 하나의
CanonicalAppRecord로 병합합니다.

- 매칭 키: 제목 소문자 + 공백 제거, 완전 일치만 (퍼지 매칭 없음)
- B의 순서상 첫 번째 일치 레코드 하나만 사용
- 매칭되지 않은 A는 skipped에 제목으로 기록하고 출력하지 않음 (양쪽 모두 확인된 앱만 저장)
- B에만 있는 레코드는 무시
"""
import logging
import re
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from core.models import CanonicalAppRecord, RawAppRecord, ReconcileResult
from utils.error_tracker import ErrorStep

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_MOBILE_SEGMENT = "mobile"


def normalize_title(title: Optional[str]) -> str:
    """매칭 키: 소문자 변환 후 모든 공백 제거"""
    return _WHITESPACE_RE.sub("", (title or "").lower())


def clean_website_url(url: Optional[str]) -> str:
    """
    개발자 웹사이트 URL 정리

    경로의 첫 번째 'mobile' 세그먼트를 제거하고 끝의 슬래시를 모두 지웁니다.
    'https://chat.example/mobile/' -> 'https://chat.example'
    'chat.example/mobile/' -> 'chat.example' (스킴 없는 URL은 전체가 경로로 파싱됨)
    """
    if not url:
        return ""
    url = url.strip()
    parts = urlsplit(url)
    segments = parts.path.split("/")
    if _MOBILE_SEGMENT in segments:
        segments.remove(_MOBILE_SEGMENT)
        url = urlunsplit((parts.scheme, parts.netloc, "/".join(segments), parts.query, parts.fragment))
    return url.rstrip("/")


def url_origin(url: str) -> Optional[str]:
    """'scheme://host[:port]' 반환. 절대 URL이 아니면 None."""
    parts = urlsplit(url)
    if parts.scheme in ("http", "https") and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return None


def build_domain_names(cleaned_url: str) -> List[str]:
    """[정리된 URL, origin] 에서 빈 값/중복/절대 URL이 아닌 항목을 제거합니다."""
    domains: List[str] = []
    for candidate in (cleaned_url, url_origin(cleaned_url) if cleaned_url else None):
        if not candidate or url_origin(candidate) is None:
            continue
        if candidate not in domains:
            domains.append(candidate)
    return domains


class Reconciler:
    """
    Merge two independently fetched record sets into canonical records.

    Example:
        >>> result = Reconciler().merge(app_store_records, play_store_records)
        >>> [r.title for r in result.canonical], result.skipped
    """

    def __init__(self, error_tracker=None):
        self.error_tracker = error_tracker

    def merge(self, records_a: Sequence[RawAppRecord], records_b: Sequence[RawAppRecord]) -> ReconcileResult:
        index = self._index_by_title(records_b)
        result = ReconcileResult()

        for record_a in records_a:
            record_b = index.get(normalize_title(record_a.title))
            if record_b is None:
                logger.info(f"No match found for: {record_a.title}")
                result.skipped.append(record_a.title)
                if self.error_tracker:
                    self.error_tracker.add_error(
                        "reconciler", ErrorStep.RECONCILE, "no matching play store record", target=record_a.title
                    )
                continue

            logger.debug(f"Matching app: {record_a.title} -> {record_b.title}")
            result.canonical.append(self.merge_pair(record_a, record_b))

        logger.info(
            f"Reconciled {len(result.canonical)} apps "
            f"(skipped={len(result.skipped)}, app_store={len(records_a)}, play_store={len(records_b)})"
        )
        return result

    @staticmethod
    def _index_by_title(records: Sequence[RawAppRecord]) -> Dict[str, RawAppRecord]:
        """정규화 제목 -> B의 첫 번째 레코드"""
        index: Dict[str, RawAppRecord] = {}
        for record in records:
            index.setdefault(normalize_title(record.title), record)
        return index

    @staticmethod
    def merge_pair(record_a: RawAppRecord, record_b: RawAppRecord) -> CanonicalAppRecord:
        """
        필드별 병합 정책:
        - A(App Store): title, description, category, developer, ios_bundle_id, app_country, market_status
        - B(Play Store): android_package_name, icon, icon_72, cat_key, cat_keys, app_availability
        - website/domain_name: A의 website를 정리해서 생성
        """
        website = clean_website_url(record_a.website)
        domain_name = build_domain_names(website)

        return CanonicalAppRecord(
            title=record_a.title,
            description=record_a.description,
            category=record_a.category,
            developer=record_a.developer,
            ios_bundle_id=record_a.ios_bundle_id,
            app_country=record_a.app_country,
            market_status=record_a.market_status,
            android_package_name=record_b.android_package_name,
            icon=record_b.icon,
            icon_72=record_b.icon_72,
            cat_key=record_b.cat_key,
            cat_keys=list(record_b.cat_keys) if record_b.cat_keys else None,
            app_availability=dict(record_b.app_availability) if record_b.app_availability else None,
            website=website or None,
            domain_name=domain_name or None,
            is_popular=True,
        )
