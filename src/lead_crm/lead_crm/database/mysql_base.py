from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StorageUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)

# Errors that mean "the database is not reachable", as opposed to bad SQL or data.
CONNECTIVITY_ERRORS = (mysql.connector.errors.InterfaceError, mysql.connector.errors.OperationalError)


def _rollback_quietly(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        logger.warning("Rollback failed; connection already lost")


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StorageUnavailableError("Database is unavailable") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except CONNECTIVITY_ERRORS as e:
        _rollback_quietly(conn)
        raise StorageUnavailableError("Database is unavailable") from e
    except Exception:
        _rollback_quietly(conn)
        raise
    finally:
        conn.close()


def is_duplicate_key(error: mysql.connector.Error) -> bool:
    return getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def is_missing_reference(error: mysql.connector.Error) -> bool:
    """Foreign key points at a row that does not exist."""
    return getattr(error, "errno", None) == errorcode.ER_NO_REFERENCED_ROW_2


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def to_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for DATETIME columns."""
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Refusing to store a naive datetime")
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_db_datetime(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC from DATETIME columns -> aware UTC."""
    if value is None:
        return None
    return value.replace(tzinfo=timezone.utc)


def to_db_json(value: Optional[dict]) -> Optional[str]:
    return json.dumps(value) if value is not None else None


def from_db_json(value: Any) -> Optional[dict]:
    """mysql-connector returns JSON columns as str or bytes depending on version."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value
