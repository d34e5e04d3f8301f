"""
Play Store Scrape Adapter
Play Store 검색 페이지에서 패키지명을 찾고, 상세 페이지 HTML에서 앱 정보를 추출합니다.

요청 2회 (StoreHttpClient: 고정 타임아웃, 429/403 분류):
1. https://play.google.com/store/search?q=<검색어>&c=apps  -> 첫 번째 details 링크의 패키지명
2. https://play.google.com/store/apps/details?id=<패키지명>&hl=en -> 아이콘, 개발자, 설명, 카테고리, 웹사이트

HTML 파싱은 BeautifulSoup (lxml 파서)로 합니다.
"""
import logging
import re
from typing import List, Optional
from urllib.parse import parse_qs, urlsplit

from bs4 import BeautifulSoup

from core.errors import NotFoundError, ParseError
from core.models import RawAppRecord, SearchTerm
from scrapers.base import SourceAdapter
from scrapers.search_terms import PLAY_STORE

logger = logging.getLogger(__name__)

SEARCH_URL = 'https://play.google.com/store/search'
DETAILS_URL = 'https://play.google.com/store/apps/details'
AVAILABLE_IN = ['IN', 'US']

HTML_PARSER = 'lxml'
ICON_HOST_PREFIX = 'https://play-lh.googleusercontent.com/'

DETAILS_HREF_RE = re.compile(r'/store/apps/details\?id=')
DEVELOPER_HREF_RE = re.compile(r'^/store/apps/(dev|developer)\?id=')
CATEGORY_HREF_RE = re.compile(r'/store/apps/category/')


def details_url(package_name: str) -> str:
    return f"{DETAILS_URL}?id={package_name}"


def make_soup(page_html: str) -> BeautifulSoup:
    return BeautifulSoup(page_html or '', HTML_PARSER)


def extract_package_name(soup: BeautifulSoup) -> Optional[str]:
    """검색 결과의 첫 번째 details 링크에서 id 파라미터를 꺼냅니다."""
    for link in soup.find_all('a', href=DETAILS_HREF_RE):
        package_ids = parse_qs(urlsplit(link['href']).query).get('id')
        if package_ids and package_ids[0].strip():
            return package_ids[0].strip()
    return None


def extract_category(soup: BeautifulSoup) -> Optional[str]:
    """
    카테고리 추출 (앞에서부터 우선):
    1. itemprop="genre" 링크
    2. 카테고리 페이지 링크
    3. breadcrumb 안의 첫 번째 링크
    4. <meta itemprop="applicationCategory">
    """
    genre = soup.find(attrs={'itemprop': 'genre'})
    if genre and genre.get_text(strip=True):
        return genre.get_text(strip=True)

    category_link = soup.find('a', href=CATEGORY_HREF_RE)
    if category_link and category_link.get_text(strip=True):
        return category_link.get_text(strip=True)

    breadcrumb = soup.find(class_=re.compile('breadcrumb'))
    if breadcrumb:
        crumb = breadcrumb.find('a')
        if crumb and crumb.get_text(strip=True):
            return crumb.get_text(strip=True)

    meta = soup.find('meta', attrs={'itemprop': 'applicationCategory'})
    if meta and meta.get('content', '').strip():
        return meta['content'].strip()
    return None


def extract_icon(soup: BeautifulSoup) -> str:
    """첫 번째 play-lh 이미지 URL에서 크기 접미어(=s512 등)를 제거합니다."""
    image = soup.find('img', src=lambda src: bool(src) and src.startswith(ICON_HOST_PREFIX))
    if image:
        return image['src'].split('=')[0]
    og_image = soup.find('meta', attrs={'property': 'og:image'})
    if og_image and og_image.get('content', '').startswith(ICON_HOST_PREFIX):
        return og_image['content'].split('=')[0]
    return ''


def extract_developer(soup: BeautifulSoup) -> str:
    link = soup.find('a', href=DEVELOPER_HREF_RE)
    return link.get_text(strip=True) if link else ''


def extract_description(soup: BeautifulSoup) -> str:
    meta = soup.find('meta', attrs={'name': 'description'})
    return meta.get('content', '').strip() if meta else ''


def extract_developer_website(soup: BeautifulSoup) -> Optional[str]:
    link = soup.find(
        lambda tag: tag.name == 'a'
        and tag.has_attr('href')
        and tag.get_text(strip=True).lower() == 'developer website'
    )
    return link['href'].strip() if link else None


class PlayStoreScrapeAdapter(SourceAdapter):
    """store-scrape 소스 (HTML)"""

    source_name = PLAY_STORE

    def __init__(self, http_client=None, language: str = 'en'):
        super().__init__(http_client)
        self.language = language

    def resolve(self, term: SearchTerm) -> RawAppRecord:
        query = term.query_for(self.source_name)

        search_result = self.http_client.request(SEARCH_URL, params={'q': query, 'c': 'apps'}, parse_json=False)
        search_result.raise_for_error()

        package_name = extract_package_name(make_soup(search_result.data))
        if not package_name:
            raise NotFoundError(f"package name not found for '{query}'")
        logger.debug(f"Found package name: {package_name} for {term.display_name}")

        details_result = self.http_client.request(
            DETAILS_URL, params={'id': package_name, 'hl': self.language}, parse_json=False
        )
        details_result.raise_for_error()

        return self.parse_details(details_result.data or '', package_name, term)

    def parse_details(self, details_html: str, package_name: str, term: SearchTerm) -> RawAppRecord:
        """상세 페이지 HTML을 레코드로 변환합니다."""
        soup = make_soup(details_html)
        icon = extract_icon(soup)
        developer = extract_developer(soup)
        description = extract_description(soup)

        # 아이콘/개발자/설명이 모두 없으면 상세 페이지가 아닌 것으로 판단
        if not (icon or developer or description):
            raise ParseError(f"malformed details page for '{package_name}'")

        store_url = details_url(package_name)
        developer_website = extract_developer_website(soup)

        category = extract_category(soup) or term.category or ''
        if not category:
            logger.debug(f"Category not found for {term.display_name}")
        cat_key = category.upper()

        return RawAppRecord(
            title=term.display_name,
            ios_bundle_id=None,
            android_package_name=package_name,
            developer=developer,
            description=description,
            category=category,
            cat_key=cat_key,
            cat_keys=[cat_key, 'APPLICATION'],
            icon=icon,
            icon_72=f"{icon}=s72-rw" if icon else '',
            website=developer_website or store_url,
            domain_name=self.build_domains(store_url, developer_website),
            app_availability={'available_in': list(AVAILABLE_IN), 'package_name': package_name},
            app_country='US',
            market_status='PUBLISHED',
            store='playstore',
            search_term=term.query_for(self.source_name),
        )

    @staticmethod
    def build_domains(store_url: str, developer_website: Optional[str]) -> List[str]:
        """스토어 URL + 개발자 웹사이트 origin (잘못된 URL은 건너뜀)"""
        domains = [store_url]
        if developer_website:
            parts = urlsplit(developer_website)
            if parts.scheme and parts.netloc:
                origin = f"{parts.scheme}://{parts.netloc}"
                if origin not in domains:
                    domains.append(origin)
            else:
                logger.debug(f"Invalid developer website URL: {developer_website}")
        return domains
