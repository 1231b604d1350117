from __future__ import annotations

from datetime import date, datetime
from unittest.mock import MagicMock

import mysql.connector
import pytest

from school_attendance.config import get_settings_module
from school_attendance.core.exceptions import StoreUnavailableError
from school_attendance.database.bootstrap import _strip_comments, _strip_create_db_and_use, iter_sql_statements
from school_attendance.database.connection import DBConfig
from school_attendance.database.mysql_base import db_cursor, is_duplicate_entry, normalize_mysql_date


def _factory():
    cur = MagicMock()
    conn = MagicMock()
    conn.cursor.return_value = cur
    factory = MagicMock()
    factory.connect.return_value = conn
    return factory, conn, cur


def test_db_cursor_commits_on_success():
    factory, conn, cur = _factory()

    with db_cursor(factory) as (_, c):
        c.execute("SELECT 1")

    conn.cursor.assert_called_once_with(dictionary=True)
    conn.commit.assert_called_once()
    conn.rollback.assert_not_called()
    cur.close.assert_called_once()
    conn.close.assert_called_once()


def test_db_cursor_wraps_driver_errors_and_rolls_back():
    factory, conn, cur = _factory()
    cur.execute.side_effect = mysql.connector.OperationalError(msg="Lost connection", errno=2013)

    with pytest.raises(StoreUnavailableError):
        with db_cursor(factory) as (_, c):
            c.execute("SELECT 1")

    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    conn.close.assert_called_once()


def test_db_cursor_lets_duplicate_entry_through():
    factory, conn, cur = _factory()
    cur.execute.side_effect = mysql.connector.IntegrityError(msg="Duplicate entry", errno=1062)

    with pytest.raises(mysql.connector.IntegrityError):
        with db_cursor(factory) as (_, c):
            c.execute("INSERT ...")

    conn.rollback.assert_called_once()


def test_db_cursor_rolls_back_on_python_errors():
    factory, conn, _ = _factory()

    with pytest.raises(KeyError):
        with db_cursor(factory):
            raise KeyError("x")

    conn.rollback.assert_called_once()
    conn.close.assert_called_once()


def test_db_cursor_connect_failure_is_store_unavailable():
    factory = MagicMock()
    factory.connect.side_effect = mysql.connector.InterfaceError(msg="Can't connect", errno=2003)

    with pytest.raises(StoreUnavailableError):
        with db_cursor(factory):
            pass


def test_is_duplicate_entry():
    assert is_duplicate_entry(mysql.connector.IntegrityError(msg="dup", errno=1062))
    assert not is_duplicate_entry(mysql.connector.IntegrityError(msg="fk", errno=1452))
    assert not is_duplicate_entry(ValueError("1062"))


def test_normalize_mysql_date():
    assert normalize_mysql_date(date(2025, 10, 27)) == date(2025, 10, 27)
    assert normalize_mysql_date(datetime(2025, 10, 27, 23, 59)) == date(2025, 10, 27)
    assert normalize_mysql_date("2025-10-27") == date(2025, 10, 27)
    with pytest.raises(TypeError):
        normalize_mysql_date(20251027)


def test_iter_sql_statements_respects_quotes():
    sql = "CREATE TABLE a (x INT);\nINSERT INTO a VALUES ('x;y');\n  \nSELECT 1"

    assert list(iter_sql_statements(sql)) == [
        "CREATE TABLE a (x INT)",
        "INSERT INTO a VALUES ('x;y')",
        "SELECT 1",
    ]


def test_schema_preprocessing_drops_database_and_comments():
    sql = "-- comment\nCREATE DATABASE foo;\nUSE foo;\nCREATE TABLE t (id INT);"

    stripped = _strip_comments(_strip_create_db_and_use(sql))

    assert list(iter_sql_statements(stripped)) == ["CREATE TABLE t (id INT)"]


def test_db_config_from_dict_defaults():
    cfg = DBConfig.from_dict({"host": "db", "port": "3307"})

    assert (cfg.host, cfg.port, cfg.user, cfg.database, cfg.connection_timeout) == (
        "db",
        3307,
        "root",
        "school_attendance",
        10,
    )


@pytest.mark.parametrize(
    "env, expected",
    [
        ("production", "school_attendance.config.production"),
        ("prod", "school_attendance.config.production"),
        ("TESTING", "school_attendance.config.testing"),
        ("whatever", "school_attendance.config.development"),
    ],
)
def test_get_settings_module(monkeypatch, env, expected):
    monkeypatch.setenv("APP_ENV", env)

    assert get_settings_module() == expected


def test_db_cursor_reports_lost_connection_even_if_rollback_fails():
    factory, conn, cur = _factory()
    cur.execute.side_effect = mysql.connector.OperationalError(msg="Lost connection", errno=2013)
    conn.rollback.side_effect = mysql.connector.OperationalError(msg="MySQL Connection not available", errno=2055)

    with pytest.raises(StoreUnavailableError) as exc:
        with db_cursor(factory) as (_, c):
            c.execute("SELECT 1")

    assert "Lost connection" in str(exc.value)
    conn.close.assert_called_once()


def test_db_cursor_python_error_survives_failed_rollback():
    factory, conn, _ = _factory()
    conn.rollback.side_effect = mysql.connector.OperationalError(msg="gone", errno=2055)

    with pytest.raises(KeyError):
        with db_cursor(factory):
            raise KeyError("x")


def test_db_cursor_ignores_close_failure_after_commit():
    factory, conn, _ = _factory()
    conn.close.side_effect = mysql.connector.OperationalError(msg="gone", errno=2055)

    with db_cursor(factory) as (_, c):
        c.execute("SELECT 1")

    conn.commit.assert_called_once()
