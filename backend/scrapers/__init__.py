"""
Source adapters

    from scrapers import get_adapter

    adapter = get_adapter('app_store')
    record = adapter.resolve(SearchTerm('Instagram', 'social'))
"""
from typing import Dict, Type

from .base import SourceAdapter
from .app_store_search_adapter import AppStoreSearchAdapter
from .play_store_scrape_adapter import PlayStoreScrapeAdapter
from .search_terms import APP_STORE, PLAY_STORE

ADAPTERS: Dict[str, Type[SourceAdapter]] = {
    APP_STORE: AppStoreSearchAdapter,
    PLAY_STORE: PlayStoreScrapeAdapter,
}


def get_adapter(source_name: str, **kwargs) -> SourceAdapter:
    """소스 이름으로 어댑터 인스턴스를 생성합니다."""
    try:
        adapter_cls = ADAPTERS[source_name]
    except KeyError:
        raise ValueError(f"Unknown source: {source_name}. Must be one of: {sorted(ADAPTERS)}") from None
    return adapter_cls(**kwargs)


__all__ = [
    'SourceAdapter',
    'AppStoreSearchAdapter',
    'PlayStoreScrapeAdapter',
    'ADAPTERS',
    'APP_STORE',
    'PLAY_STORE',
    'get_adapter',
]
