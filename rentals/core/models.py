"""Lightweight database helpers for storing regions."""
from __future__ import annotations

import os
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence
from urllib.parse import unquote, urlparse

try:  # Optional import for MySQL support
    import pymysql
    from pymysql.cursors import DictCursor
except ImportError:  # pragma: no cover - pymysql is optional
    pymysql = None  # type: ignore
    DictCursor = None  # type: ignore


LIKE_ESCAPE = "!"


@dataclass
class RegionRecord:
    id: int
    name: str
    country_code: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class DatabaseSession:
    """Minimal DB-API session wrapper with context aware placeholders."""

    def __init__(self, connection, placeholder: str):
        self.connection = connection
        self.placeholder = placeholder

    # -- DB-API compatibility -------------------------------------------------
    def _prepare_sql(self, sql: str) -> str:
        if self.placeholder == "?":
            return sql
        return sql.replace("?", self.placeholder)

    def execute(self, sql: str, params: tuple = ()):
        cursor = self.connection.cursor()
        cursor.execute(self._prepare_sql(sql), params)
        return cursor

    def fetchone(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        row = cursor.fetchone()
        cursor.close()
        return row

    def fetchall(self, sql: str, params: tuple = ()):
        cursor = self.execute(sql, params)
        rows = cursor.fetchall()
        cursor.close()
        return rows

    def commit(self) -> None:
        self.connection.commit()

    def rollback(self) -> None:
        self.connection.rollback()

    def close(self) -> None:
        self.connection.close()


class SessionFactory:
    def __init__(self, url: str, placeholder: str, driver: str):
        self.url = url
        self.placeholder = placeholder
        self.driver = driver

    def __call__(self) -> DatabaseSession:
        connection = create_connection(self.url, self.driver)
        return DatabaseSession(connection, self.placeholder)


_engine_lock = threading.Lock()
_database_url: Optional[str] = None
_session_factory: Optional[SessionFactory] = None


# ---------------------------------------------------------------------------

def _default_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///rentals.db")


def configure_engine(url: Optional[str] = None) -> str:
    """Configure database access using the provided URL."""

    global _database_url, _session_factory
    with _engine_lock:
        _database_url = url or _default_database_url()
        driver, placeholder = detect_driver(_database_url)
        _session_factory = SessionFactory(_database_url, placeholder, driver)
    run_migrations()
    return _database_url


def detect_driver(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    if parsed.scheme.startswith("mysql"):
        if pymysql is None:
            raise RuntimeError("PyMySQL is required for MySQL connections")
        return "mysql", "%s"
    if parsed.scheme.startswith("sqlite") or parsed.scheme == "":
        return "sqlite", "?"
    raise ValueError(f"Unsupported database scheme: {parsed.scheme}")


def sqlite_path(url: str) -> str:
    # sqlite:///relative.db and sqlite:////absolute/path.db
    parsed = urlparse(url)
    path = unquote(parsed.path or parsed.netloc or "")
    if parsed.scheme and path.startswith("/"):
        path = path[1:]
    if not path:
        raise ValueError(f"Missing sqlite database path in {url!r}")
    return os.path.abspath(path)


def create_connection(url: str, driver: str):
    if driver == "sqlite":
        connection = sqlite3.connect(sqlite_path(url), check_same_thread=False)
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys=ON")
        return connection

    if driver == "mysql":
        assert pymysql is not None and DictCursor is not None
        parsed = urlparse(url)
        params = {
            "host": parsed.hostname or "localhost",
            "user": parsed.username,
            "password": parsed.password,
            "database": parsed.path.lstrip("/") or None,
            "port": parsed.port or 3306,
            "cursorclass": DictCursor,
            "autocommit": False,
        }
        return pymysql.connect(**params)

    raise ValueError(f"Unsupported driver: {driver}")


def get_session_factory() -> SessionFactory:
    if _session_factory is None:
        configure_engine()
    assert _session_factory is not None
    return _session_factory


@contextmanager
def session_scope(session_factory: Optional[SessionFactory] = None):
    factory = session_factory or get_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------

def run_migrations() -> None:
    factory = get_session_factory()
    session = factory()
    id_column = (
        "INTEGER PRIMARY KEY AUTOINCREMENT"
        if factory.driver == "sqlite"
        else "INTEGER PRIMARY KEY AUTO_INCREMENT"
    )
    try:
        session.execute(
            f"""
            CREATE TABLE IF NOT EXISTS regions (
                id {id_column},
                name VARCHAR(255) NOT NULL,
                country_code VARCHAR(2) NOT NULL,
                created_at VARCHAR(40) NOT NULL,
                updated_at VARCHAR(40) NOT NULL
            )
            """
        )
        if factory.driver == "sqlite":
            session.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_regions_country_code
                ON regions (country_code)
                """
            )
        session.commit()
    finally:
        session.close()


# ---------------------------------------------------------------------------

def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def escape_like(value: str) -> str:
    for char in (LIKE_ESCAPE, "%", "_"):
        value = value.replace(char, LIKE_ESCAPE + char)
    return value


def _region_from_row(row) -> RegionRecord:
    return RegionRecord(
        id=row["id"],
        name=row["name"],
        country_code=row["country_code"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def select_regions(
    session: DatabaseSession,
    where: str = "",
    params: Sequence[Any] = (),
) -> List[RegionRecord]:
    sql = "SELECT * FROM regions"
    if where:
        sql = f"{sql} WHERE {where}"
    rows = session.fetchall(f"{sql} ORDER BY id", tuple(params))
    return [_region_from_row(row) for row in rows]


def regions_by_lower_name(session: DatabaseSession, name: str) -> List[RegionRecord]:
    return select_regions(session, "lower(name) = ?", (name.lower(),))


def regions_by_name_prefix(session: DatabaseSession, prefix: str) -> List[RegionRecord]:
    pattern = escape_like(prefix.lower()) + "%"
    return select_regions(session, f"lower(name) LIKE ? ESCAPE '{LIKE_ESCAPE}'", (pattern,))


def regions_by_country_codes(session: DatabaseSession, codes: Iterable[str]) -> List[RegionRecord]:
    codes = [code.lower() for code in codes]
    if not codes:
        return []
    placeholders = ", ".join("?" for _ in codes)
    return select_regions(session, f"country_code IN ({placeholders})", codes)


def insert_region(session: DatabaseSession, *, name: str, country_code: str) -> RegionRecord:
    now = utcnow_iso()
    cursor = session.execute(
        """
        INSERT INTO regions (name, country_code, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        """,
        (name, country_code, now, now),
    )
    return RegionRecord(
        id=cursor.lastrowid,
        name=name,
        country_code=country_code,
        created_at=now,
        updated_at=now,
    )


def update_region(session: DatabaseSession, *, region_id: int, name: str, country_code: str) -> str:
    now = utcnow_iso()
    session.execute(
        "UPDATE regions SET name = ?, country_code = ?, updated_at = ? WHERE id = ?",
        (name, country_code, now, region_id),
    )
    return now


def count_regions(session: DatabaseSession) -> int:
    row = session.fetchone("SELECT COUNT(*) AS cnt FROM regions")
    if isinstance(row, dict):
        return int(row["cnt"])
    return int(row[0])
