"""
App Store Search Adapter
iTunes Search API로 검색어 하나를 조회해 첫 번째 결과를 RawAppRecord로 변환합니다.
"""
from typing import Any, Dict

from core.errors import NotFoundError, ParseError
from core.models import RawAppRecord, SearchTerm
from scrapers.base import SourceAdapter
from scrapers.search_terms import APP_STORE

API_BASE_URL = 'https://itunes.apple.com/search'
DEFAULT_COUNTRY = 'US'
AVAILABLE_IN = ['IN', 'US', 'UK']


class AppStoreSearchAdapter(SourceAdapter):
    """catalog-search 소스 (JSON API)"""

    source_name = APP_STORE

    def __init__(self, http_client=None, country: str = DEFAULT_COUNTRY):
        super().__init__(http_client)
        self.country = country

    def build_params(self, term: SearchTerm) -> Dict[str, Any]:
        return {
            'term': term.query_for(self.source_name),
            'entity': 'software',
            'limit': 1,
            'country': self.country,
        }

    def resolve(self, term: SearchTerm) -> RawAppRecord:
        result = self.http_client.request(API_BASE_URL, params=self.build_params(term))
        result.raise_for_error()

        payload = result.data
        if not isinstance(payload, dict) or not isinstance(payload.get('results'), list):
            raise ParseError(f"unexpected iTunes payload for '{term.display_name}'")
        if not payload['results']:
            raise NotFoundError(f"no results for '{term.query_for(self.source_name)}'")

        return self.parse_app_data(payload['results'][0], term)

    def parse_app_data(self, data: Dict[str, Any], term: SearchTerm) -> RawAppRecord:
        """API 응답의 첫 번째 결과를 레코드로 변환합니다. 형식이 맞지 않으면 ParseError."""
        if not isinstance(data, dict):
            raise ParseError(f"unexpected iTunes result for '{term.display_name}': {type(data).__name__}")

        bundle_id = data.get('bundleId')
        if not bundle_id or not isinstance(bundle_id, str):
            raise ParseError(f"iTunes result without bundleId for '{term.display_name}'")

        try:
            genre = data.get('primaryGenreName') or term.category or ''
            cat_key = genre.upper()
            website = data.get('sellerUrl')
            size = data.get('fileSizeBytes')

            return RawAppRecord(
                title=term.display_name,
                ios_bundle_id=bundle_id,
                android_package_name=None,
                developer=data.get('sellerName') or data.get('artistName'),
                description=data.get('description'),
                category=genre,
                cat_key=cat_key,
                cat_keys=[cat_key, 'APPLICATION'],
                icon=data.get('artworkUrl512') or data.get('artworkUrl100'),
                icon_72=data.get('artworkUrl100'),
                website=website,
                domain_name=[website] if website else [],
                app_availability={'available_in': list(AVAILABLE_IN), 'package_name': bundle_id},
                app_country=self.country,
                market_status='PUBLISHED',
                store='itunes',
                search_term=term.query_for(self.source_name),
                price=data.get('price'),
                currency=data.get('currency'),
                size=int(size) if size else None,
                current_version=data.get('version'),
                minimum_os_version=data.get('minimumOsVersion'),
                release_date=data.get('releaseDate'),
                age_rating=data.get('trackContentRating'),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise ParseError(f"invalid iTunes result for '{term.display_name}': {e}") from e
