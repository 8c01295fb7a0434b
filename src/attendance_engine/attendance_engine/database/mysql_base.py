from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector

from .connection import DatabaseConnection

DUPLICATE_KEY_ERRNO = 1062


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == DUPLICATE_KEY_ERRNO


def dump_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def load_json(value: Any, default: Any = None) -> Any:
    """Decode a MySQL JSON column.

    mysql-connector can return JSON as:
    - str
    - bytes / bytearray (C extension)
    - already-decoded dict / list
    """

    if value is None:
        return default
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        if not value.strip():
            return default
        return json.loads(value)
    return value
