"""
Core 모듈

앱 카탈로그 동기화의 핵심 기능을 제공합니다:

- http_client: 스토어 HTTP 클라이언트 (타임아웃, 상태 코드 분류)
- fetcher: Rate Limit 재시도 (최대 시도 횟수 제한)
- batch_processor: 검색어 목록 순차 조회 + 요청/그룹 간 대기
- reconciler: App Store / Play Store 결과 병합

사용 예:
    from core.batch_processor import BatchProcessor
    from core.reconciler import Reconciler
    from scrapers import get_adapter

    result = BatchProcessor().run_groups(groups, get_adapter('app_store'))
    merged = Reconciler().merge(app_store_records, play_store_records)
"""
