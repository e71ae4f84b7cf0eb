from __future__ import annotations

import logging
import threading
from typing import Optional

from pymongo import MongoClient
from pymongo.database import Database

from .config import load_mongo_config


logger = logging.getLogger(__name__)


_client: Optional[MongoClient] = None
_db: Optional[Database] = None
_lock = threading.Lock()


def get_database() -> Database:
    """전역 기본 Database 객체를 반환한다.

    - 최초 호출 시 MongoClient 를 만들고 ping 으로 연결을 검증한다.
    - DB 이름은 MONGO_DB_NAME 우선, 없으면 URI 의 기본 DB 를 사용한다.
    - 컬렉션 인덱스는 각 레포지토리가 생성자에서 직접 보장한다.
    """

    global _client, _db

    if _db is not None:
        return _db

    with _lock:
        if _db is not None:
            return _db

        config = load_mongo_config()
        client: MongoClient = MongoClient(config.uri)

        try:
            client.admin.command("ping")
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(f"failed to connect to MongoDB: {exc}") from exc

        try:
            db = client[config.db_name] if config.db_name else client.get_default_database()
        except Exception as exc:  # noqa: BLE001
            client.close()
            raise RuntimeError(
                "MongoDB database name must be specified via MONGO_DB_NAME or in MONGO_URI (mongodb://.../db_name)",
            ) from exc

        _client = client
        _db = db
        logger.info("MongoDB connected (db=%s)", db.name)
        return db


def close_client() -> None:
    global _client, _db

    with _lock:
        if _client is not None:
            _client.close()
        _client = None
        _db = None
