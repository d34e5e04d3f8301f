"""
Catalog Database
병합된 앱 레코드(CanonicalAppRecord)를 PostgreSQL available_app 테이블에 저장합니다.

- (ios_bundle_id, android_package_name) 쌍 기준 upsert
- 카테고리는 app_category enum으로 정규화 (대소문자 무시)
- 배치 하나 = 트랜잭션 하나, 배치 안에서 하나라도 실패하면 배치 전체 rollback

연결은 open_catalog_store()로 열고 닫습니다 (전역 연결 없음):

    with open_catalog_store() as store:
        store.initialize_schema()
        report = store.upsert_all(records, batch_size=10)
"""
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union

import psycopg
from psycopg.rows import dict_row

from config import (
    DB_CONNECT_MAX_RETRIES,
    DB_CONNECT_RETRY_DELAY_SEC,
    UPSERT_BATCH_SIZE,
    build_dsn,
)
from core.models import CanonicalAppRecord
from database.db_errors import (
    CatalogRecordError,
    DatabaseUnavailableError,
    InvalidCategoryError,
    MissingIdentifierError,
)
from utils.error_tracker import ErrorStep, ErrorTracker
from utils.logger import format_error_log

DB_LOGGER = logging.getLogger(__name__)

TABLE_NAME = "available_app"
CATEGORY_TYPE = "app_category"
UNIQUE_CONSTRAINT = "unique_ios_bundle_id_android_package_name"


class AppCategory(str, Enum):
    """available_app.category 에 저장되는 값 (app_category enum)"""
    SOCIAL = "social"
    ENTERTAINMENT = "entertainment"
    GAMES = "games"
    MUSIC = "music"
    DATING = "dating"


def normalize_category(label: Optional[str]) -> AppCategory:
    """
    스토어 카테고리 라벨을 AppCategory로 변환합니다. 'social', 'SOCIAL', 'Social' 모두 같은 값.

    Raises:
        InvalidCategoryError: enum에 없는 라벨이거나 비어 있을 때
    """
    if not isinstance(label, str) or not label.strip():
        raise InvalidCategoryError(f"Invalid category: {label}")
    try:
        return AppCategory[label.strip().upper()]
    except KeyError:
        raise InvalidCategoryError(f"Invalid category: {label}") from None


RecordLike = Union[CanonicalAppRecord, Mapping[str, Any]]


def _as_dict(record: RecordLike) -> Dict[str, Any]:
    if isinstance(record, CanonicalAppRecord):
        return record.to_dict()
    return dict(record)


def normalize_app(record: RecordLike) -> Dict[str, Any]:
    """
    CanonicalAppRecord를 available_app 행 값으로 변환합니다.

    Raises:
        MissingIdentifierError: 두 식별자가 모두 없을 때
        InvalidCategoryError: 카테고리를 정규화할 수 없을 때
    """
    data = _as_dict(record)
    ios_bundle_id = data.get('ios_bundle_id') or None
    android_package_name = data.get('android_package_name') or None
    if ios_bundle_id is None and android_package_name is None:
        raise MissingIdentifierError(
            f"Missing identifiers: {data.get('title')} has neither ios_bundle_id nor android_package_name"
        )

    domain_name = data.get('domain_name')
    return {
        'name': data.get('title'),
        'category': normalize_category(data.get('cat_key') or data.get('category')).value,
        'android_package_name': android_package_name,
        'ios_bundle_id': ios_bundle_id,
        'developer_name': data.get('developer'),
        'icon': data.get('icon'),
        'domain_name': list(domain_name) if isinstance(domain_name, (list, tuple)) else [],
    }


@dataclass
class UpsertReport:
    """upsert_all() 결과"""
    successful: int = 0
    failed: int = 0
    errors: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'successful': self.successful, 'failed': self.failed, 'errors': list(self.errors)}


def connect_with_retry(dsn: Optional[str] = None) -> psycopg.Connection:
    """DB 연결을 생성합니다. 실패 시 재시도하고, 끝내 실패하면 DatabaseUnavailableError."""
    dsn = dsn or build_dsn()
    last_exc = None
    for attempt in range(1, DB_CONNECT_MAX_RETRIES + 1):
        step_label = f"DB_CONNECT_ATTEMPT_{attempt}"
        start_monotonic = time.monotonic()
        DB_LOGGER.info("[STEP START] %s | %s", step_label, datetime.now().isoformat())
        try:
            conn = psycopg.connect(dsn, row_factory=dict_row)
        except psycopg.OperationalError as exc:
            last_exc = exc
            DB_LOGGER.info(
                "[STEP END] %s | elapsed=%.2fs | status=FAIL",
                step_label,
                time.monotonic() - start_monotonic,
            )
            if attempt < DB_CONNECT_MAX_RETRIES:
                DB_LOGGER.warning(
                    "DB 연결 실패: %s초 후 재시도 (%s/%s) | %s",
                    DB_CONNECT_RETRY_DELAY_SEC,
                    attempt,
                    DB_CONNECT_MAX_RETRIES,
                    exc,
                )
                time.sleep(DB_CONNECT_RETRY_DELAY_SEC)
            continue

        DB_LOGGER.info(
            "[STEP END] %s | elapsed=%.2fs | status=SUCCESS",
            step_label,
            time.monotonic() - start_monotonic,
        )
        if attempt > 1:
            DB_LOGGER.info("DB 연결 복구 완료: 시도 횟수=%s", attempt)
        return conn

    raise DatabaseUnavailableError(
        f"database unavailable after {DB_CONNECT_MAX_RETRIES} attempts: {last_exc}"
    ) from last_exc


@contextmanager
def open_catalog_store(dsn: Optional[str] = None, error_tracker: Optional[ErrorTracker] = None) -> Iterator["CatalogStore"]:
    """
    실행 단위로 DB 연결을 열고, 종료 시 반드시 닫습니다.

    Example:
        with open_catalog_store() as store:
            store.upsert_all(records)
    """
    conn = connect_with_retry(dsn)
    try:
        yield CatalogStore(conn, error_tracker=error_tracker)
    finally:
        if not conn.closed:
            conn.close()


class CatalogStore:
    """
    available_app 테이블 접근 객체

    Attributes:
        conn: psycopg 연결 (dict_row). 생명주기는 호출자가 관리합니다.
        error_tracker: 배치 실패를 기록할 추적기 (선택)
    """

    def __init__(self, conn: psycopg.Connection, error_tracker: Optional[ErrorTracker] = None):
        self.conn = conn
        self.error_tracker = error_tracker

    # ------------------------------------------------------------------
    # 스키마
    # ------------------------------------------------------------------

    def initialize_schema(self) -> None:
        """
        enum 타입, 테이블, updated_at 트리거를 생성합니다.
        여러 번 실행해도 같은 스키마가 됩니다 (기존 데이터 유지).
        """
        enum_values = ", ".join(f"'{category.value}'" for category in AppCategory)
        try:
            with self.conn.cursor() as cursor:
                cursor.execute(f"""
                    DO $$
                    BEGIN
                        IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = '{CATEGORY_TYPE}') THEN
                            CREATE TYPE {CATEGORY_TYPE} AS ENUM ({enum_values});
                        END IF;
                    END $$;
                """)

                # NULLS NOT DISTINCT: 한쪽 식별자가 NULL인 쌍도 중복으로 판단 (PostgreSQL 15+)
                cursor.execute(f"""
                    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                        id SERIAL PRIMARY KEY,
                        name TEXT,
                        category {CATEGORY_TYPE} NOT NULL,
                        android_package_name TEXT DEFAULT NULL,
                        ios_bundle_id TEXT DEFAULT NULL,
                        developer_name TEXT,
                        icon VARCHAR,
                        domain_name TEXT[] DEFAULT '{{}}'::text[],
                        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
                        updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
                        CONSTRAINT {UNIQUE_CONSTRAINT}
                            UNIQUE NULLS NOT DISTINCT (ios_bundle_id, android_package_name),
                        CONSTRAINT available_app_identifier_present
                            CHECK (ios_bundle_id IS NOT NULL OR android_package_name IS NOT NULL)
                    )
                """)

                cursor.execute("""
                    CREATE OR REPLACE FUNCTION update_updated_at()
                    RETURNS TRIGGER AS $$
                    BEGIN
                        NEW.updated_at = clock_timestamp();
                        RETURN NEW;
                    END;
                    $$ LANGUAGE plpgsql
                """)
                cursor.execute(f"DROP TRIGGER IF EXISTS update_available_app_timestamp ON {TABLE_NAME}")
                cursor.execute(f"""
                    CREATE TRIGGER update_available_app_timestamp
                        BEFORE UPDATE ON {TABLE_NAME}
                        FOR EACH ROW
                        EXECUTE FUNCTION update_updated_at()
                """)
            self.conn.commit()
        except psycopg.Error:
            self._rollback_quietly()
            DB_LOGGER.exception("Error initializing database")
            raise
        DB_LOGGER.info("Database initialized successfully")

    # ------------------------------------------------------------------
    # upsert
    # ------------------------------------------------------------------

    def upsert_app(self, cursor, record: RecordLike) -> int:
        """레코드 하나를 upsert하고 id를 반환합니다. 커밋은 호출자가 합니다."""
        row = normalize_app(record)
        cursor.execute(
            f"""
            INSERT INTO {TABLE_NAME} (
                name,
                category,
                android_package_name,
                ios_bundle_id,
                developer_name,
                icon,
                domain_name
            ) VALUES (%s, %s::{CATEGORY_TYPE}, %s, %s, %s, %s, %s)
            ON CONFLICT ON CONSTRAINT {UNIQUE_CONSTRAINT}
            DO UPDATE SET
                name = EXCLUDED.name,
                category = EXCLUDED.category,
                developer_name = EXCLUDED.developer_name,
                icon = EXCLUDED.icon,
                domain_name = EXCLUDED.domain_name,
                updated_at = clock_timestamp()
            RETURNING id
            """,
            (
                row['name'],
                row['category'],
                row['android_package_name'],
                row['ios_bundle_id'],
                row['developer_name'],
                row['icon'],
                row['domain_name'],
            ),
        )
        return cursor.fetchone()['id']

    def upsert_all(self, records: Sequence[RecordLike], batch_size: int = UPSERT_BATCH_SIZE) -> UpsertReport:
        """
        레코드를 batch_size 단위 트랜잭션으로 저장합니다.

        배치 안에서 하나라도 실패하면 (카테고리 오류, 제약 위반, DB 오류) 배치 전체를
        rollback하고 배치의 모든 레코드를 같은 에러로 실패 처리합니다.
        실패한 배치가 있어도 다음 배치는 계속 진행합니다.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")

        report = UpsertReport()
        total_batches = (len(records) + batch_size - 1) // batch_size

        for start in range(0, len(records), batch_size):
            batch = records[start:start + batch_size]
            batch_no = start // batch_size + 1

            try:
                with self.conn.cursor() as cursor:
                    for record in batch:
                        self.upsert_app(cursor, record)
                self.conn.commit()
            except (CatalogRecordError, psycopg.Error) as e:
                self._rollback_quietly()
                DB_LOGGER.error(format_error_log(
                    type(e).__name__,
                    f"batch={batch_no}/{total_batches} (index {start})",
                    "rollback",
                    str(e),
                ))
                for record in batch:
                    title = _as_dict(record).get('title')
                    report.failed += 1
                    report.errors.append({'app': title, 'error': str(e)})
                    if self.error_tracker is not None:
                        self.error_tracker.add_error(
                            'catalog_db', ErrorStep.UPSERT, e, target=title, batch=batch_no
                        )
                continue

            report.successful += len(batch)
            DB_LOGGER.info(f"[BATCH] {batch_no}/{total_batches} committed | records={len(batch)}")

        return report

    def _rollback_quietly(self) -> None:
        """연결이 끊긴 경우에도 다음 배치를 진행할 수 있도록 rollback 실패는 로그만 남깁니다."""
        try:
            self.conn.rollback()
        except psycopg.Error as e:
            DB_LOGGER.warning(f"rollback failed: {e}")

    # ------------------------------------------------------------------
    # 조회
    # ------------------------------------------------------------------

    def get_app(self, ios_bundle_id: Optional[str], android_package_name: Optional[str]) -> Optional[Dict[str, Any]]:
        """식별자 쌍으로 행 하나를 조회합니다."""
        with self.conn.cursor() as cursor:
            cursor.execute(
                f"""
                SELECT * FROM {TABLE_NAME}
                WHERE ios_bundle_id IS NOT DISTINCT FROM %s
                  AND android_package_name IS NOT DISTINCT FROM %s
                """,
                (ios_bundle_id, android_package_name),
            )
            row = cursor.fetchone()
        self.conn.rollback()
        return dict(row) if row else None

    def count_apps(self) -> int:
        with self.conn.cursor() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM {TABLE_NAME}")
            total = cursor.fetchone()['total']
        self.conn.rollback()
        return total
