"""
검색어 생성

앱 목록 설정(apps.json)을 SearchTerm 묶음으로 변환합니다.
Play Store 검색은 앱 이름만으로는 엉뚱한 결과가 나오는 경우가 많아
특수 케이스 표와 'app' / 'game' 접미어를 붙인 검색어를 사용합니다.
"""
import re
from typing import Any, Dict, List, Mapping

from config import ConfigurationError
from core.models import SearchTerm

APP_STORE = 'app_store'
PLAY_STORE = 'play_store'

# 설정 파일 search_terms 키 -> 소스 이름
_SEARCH_TERM_KEYS = {
    'itunes': APP_STORE,
    'app_store': APP_STORE,
    'playstore': PLAY_STORE,
    'play_store': PLAY_STORE,
}

# 자주 쓰는 앱은 검색어를 직접 지정
SPECIAL_SEARCH_TERMS = {
    "instagram": "instagram app",
    "facebook": "facebook app meta",
    "whatsapp messenger": "whatsapp messenger app",
    "snapchat": "snapchat app",
    "tiktok": "tiktok app bytedance",
    "discord": "discord chat app",
    "telegram": "telegram messenger app",
    "messenger": "facebook messenger app",
    "twitter": "twitter app",
    "youtube": "youtube app google",
    "netflix": "netflix app streaming",
    "disney plus": "disney+ app streaming",
    "spotify": "spotify music app",
    "amazon prime video": "amazon prime video app",
    "twitch": "twitch streaming app",
    "pinterest": "pinterest app",
    "reddit": "reddit official app",
    "google drive": "google drive app",
    "microsoft office": "microsoft office app",
    "zoom": "zoom meetings app",
    "microsoft teams": "microsoft teams app",
}

_GAME_NAME_RE = re.compile(r"game|games|puzzle|io$", re.IGNORECASE)


def capitalize_app_name(app_name: str) -> str:
    """단어 첫 글자만 대문자로: 'whatsapp messenger' -> 'Whatsapp Messenger'"""
    return " ".join(word[:1].upper() + word[1:] for word in app_name.split(" "))


def generate_play_store_query(app_name: str) -> str:
    """Play Store 검색어 생성"""
    special = SPECIAL_SEARCH_TERMS.get(app_name.lower())
    if special:
        return special
    if _GAME_NAME_RE.search(app_name):
        return f"{app_name} game"
    return f"{app_name} app"


def build_search_term(entry: Any, category: str) -> SearchTerm:
    """
    설정 파일 항목 하나를 SearchTerm으로 변환합니다.

    지원 형식:
        "instagram"
        {"name": "Instagram", "search_term": "instagram app"}
        {"display_name": "Instagram", "search_terms": {"itunes": "instagram", "playstore": "instagram app"}}
    """
    if isinstance(entry, str):
        name = entry.strip()
        if not name:
            raise ConfigurationError(f"empty app name in category '{category}'")
        return SearchTerm(
            display_name=capitalize_app_name(name),
            category=category,
            queries={APP_STORE: name, PLAY_STORE: generate_play_store_query(name)},
        )

    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"unsupported app entry in category '{category}': {entry!r}")

    display_name = entry.get('display_name') or entry.get('name')
    if not display_name:
        raise ConfigurationError(f"app entry without display_name/name in category '{category}'")

    queries: Dict[str, str] = {}
    for key, value in (entry.get('search_terms') or {}).items():
        source = _SEARCH_TERM_KEYS.get(key)
        if source and value:
            queries[source] = value
    if entry.get('search_term'):
        queries.setdefault(PLAY_STORE, entry['search_term'])

    return SearchTerm(display_name=display_name, category=category, queries=queries)


def build_search_groups(apps_config: Mapping[str, Any]) -> Dict[str, List[SearchTerm]]:
    """load_apps_config() 결과를 {카테고리: [SearchTerm, ...]} 로 변환합니다 (순서 유지)."""
    groups: Dict[str, List[SearchTerm]] = {}
    for category, group in apps_config['categories'].items():
        groups[category] = [build_search_term(entry, category) for entry in group['apps']]
    return groups
