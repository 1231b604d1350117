from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import mysql.connector

from ..core.constants import MYSQL_DUPLICATE_ENTRY
from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


def is_duplicate_entry(err: BaseException) -> bool:
    return isinstance(err, mysql.connector.IntegrityError) and getattr(err, "errno", None) == MYSQL_DUPLICATE_ENTRY


def _rollback(conn) -> None:
    # a dropped connection cannot roll back; the original error is what gets reported
    try:
        conn.rollback()
    except mysql.connector.Error as e:
        logger.warning("MySQL rollback failed: %s", e)


def _close(conn) -> None:
    try:
        conn.close()
    except mysql.connector.Error as e:
        logger.warning("MySQL close failed: %s", e)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield ``(conn, cursor)`` inside one transaction.

    Commits on success and rolls back on any error. Driver errors that escape
    the block are re-raised as StoreUnavailableError, except duplicate-key
    IntegrityErrors which repositories translate themselves.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        logger.error("MySQL connection failed: %s", e)
        raise StoreUnavailableError(f"No se pudo conectar con la base de datos: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        _rollback(conn)
        if is_duplicate_entry(e):
            raise
        logger.error("MySQL query failed: %s", e)
        raise StoreUnavailableError(f"Error de base de datos: {e}") from e
    except Exception:
        _rollback(conn)
        raise
    finally:
        _close(conn)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def normalize_mysql_date(value: Any) -> date:
    """DATE columns come back as ``date``; some drivers/configs return strings."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return datetime.strptime(value[:10], "%Y-%m-%d").date()
    raise TypeError(f"Unsupported MySQL DATE value type: {type(value)!r}")
