from __future__ import annotations

import logging
import threading
from typing import Optional, cast

from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database

from .config import (
    get_mongo_db_name,
    get_mongo_uri,
    get_server_selection_timeout_ms,
)


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_client() -> MongoClient:
    """전역 MongoClient 를 반환한다. 최초 호출 시 연결을 연다.

    - MONGO_URI 에서 URI 를 읽어온다.
    - ping 으로 연결을 검증한다.
    - URI 에 기본 데이터베이스가 없고 MONGO_DB_NAME 도 없으면 에러를 발생시킨다.
    - 서비스가 사용하는 컬렉션의 인덱스를 한 번만 생성한다.
    """

    global _client, _db

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        uri = get_mongo_uri()
        client: MongoClient = MongoClient(
            uri,
            serverSelectionTimeoutMS=get_server_selection_timeout_ms(),
            tz_aware=True,
        )

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        db_name = get_mongo_db_name()
        try:
            if db_name:
                db = client[db_name]
            else:
                db = client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        try:
            ensure_indexes(db)
        except Exception as exc:  # noqa: BLE001
            # 유니크 인덱스가 없으면 첫 접속 upsert 의 원자성이 깨지므로 치명적 오류로 본다.
            logger.error("failed to ensure MongoDB indexes: %s", exc)
            client.close()
            raise

        _client = client
        _db = db

        safe_db = cast(Database, _db)
        logger.info("MongoDB connected and indexes ensured (db=%s)", safe_db.name)
        return _client


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다."""

    if _db is None:
        get_client()
    assert _db is not None  # get_client 가 실패했다면 예외가 이미 발생했어야 한다.
    return _db


def close_client() -> None:
    """애플리케이션 종료 시 MongoClient 를 닫는다. 여러 번 호출해도 안전하다."""

    global _client, _db

    with _lock:
        if _client is None:
            return
        _client.close()
        _client = None
        _db = None
        logger.info("MongoDB client closed")


def ensure_indexes(db: Database) -> None:
    """필수 인덱스를 생성한다. 중복 생성은 MongoDB 가 무시하므로 idempotent 하다."""

    users = db["users"]

    # 첫 요청 동시 유입 시에도 identity 당 레코드는 하나만 생성되어야 한다.
    users.create_index(
        [("identity", ASCENDING)],
        name="uniq_identity",
        unique=True,
    )

    animations = db["animations"]

    # 히스토리 사이드바: 최근 수정 순 목록
    animations.create_index(
        [("identity", ASCENDING), ("updated_at", DESCENDING)],
        name="idx_identity_updated_at_desc",
    )

    transactions = db["credit_transactions"]

    transactions.create_index(
        [("identity", ASCENDING), ("created_at", DESCENDING), ("_id", DESCENDING)],
        name="idx_identity_created_at_desc",
    )

    orders = db["payment_orders"]

    orders.create_index(
        [("order_id", ASCENDING)],
        name="uniq_order_id",
        unique=True,
    )
