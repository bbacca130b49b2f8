from __future__ import annotations

import logging
import math
import os
import sqlite3
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Iterator

from models import EMPLOYEE_NAME, EMPLOYEE_NUMBER, SETTINGS_KEYS, EmployeeSettings, Entry, Project
from utils import format_date, month_bounds

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A database operation failed."""


def get_db_path() -> Path:
    """Get database path from environment variable or default location."""
    if env_path := os.environ.get("PROJECT_HOURS_DB"):
        return Path(env_path)
    return Path(__file__).parent / "data" / "project_hours.db"


SCHEMA = """
    CREATE TABLE IF NOT EXISTS projects (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        projectId TEXT NOT NULL,
        projectName TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS entries (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        date TEXT NOT NULL,
        projectId TEXT NOT NULL,
        projectName TEXT NOT NULL,
        hours REAL NOT NULL
    );

    CREATE TABLE IF NOT EXISTS app_settings (
        key TEXT PRIMARY KEY,
        value TEXT
    );

    CREATE INDEX IF NOT EXISTS idx_entries_date ON entries(date);
    CREATE INDEX IF NOT EXISTS idx_entries_project ON entries(projectId);
"""


class Storage:
    """Handle on the project hours database.

    One connection is opened by open() and shared by every operation until
    close(). Each write commits on its own; nothing spans two calls.
    """

    def __init__(self, path: Path | None = None):
        self.path = path or get_db_path()
        self._conn: sqlite3.Connection | None = None

    def open(self) -> Storage:
        """Open the connection and create tables if they don't exist."""
        if self._conn is not None:
            return self
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            conn = sqlite3.connect(self.path)
            conn.row_factory = sqlite3.Row
            conn.executescript(SCHEMA)
            conn.commit()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open database {self.path}: {exc}") from exc
        self._conn = conn
        logger.debug("Opened database %s", self.path)
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug("Closed database %s", self.path)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> Storage:
        return self.open()

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("Database is not open")
        return self._conn

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        """Run statements and commit, rolling back on failure."""
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StorageError(str(exc)) from exc

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        try:
            return self.connection.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(str(exc)) from exc

    # --- Projects ---

    def insert_project(self, project: Project) -> int:
        """Insert a project. Returns the new row id."""
        with self._write() as conn:
            cursor = conn.execute(
                "INSERT INTO projects (projectId, projectName) VALUES (?, ?)",
                (project.project_id, project.project_name),
            )
        logger.debug("Inserted project %s (%s)", project.project_id, project.project_name)
        return cursor.lastrowid

    def delete_project(self, project_row_id: int) -> int:
        """Delete a project by its row id. Entries are left alone."""
        with self._write() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE id = ?", (project_row_id,))
        logger.debug("Deleted project row %s", project_row_id)
        return cursor.rowcount

    def get_projects(self) -> list[Project]:
        """All projects ordered by name, ignoring case."""
        rows = self._query("SELECT * FROM projects ORDER BY projectName COLLATE NOCASE")
        return [
            Project(id=row["id"], project_id=row["projectId"], project_name=row["projectName"])
            for row in rows
        ]

    # --- Entries ---

    def insert_entry(self, entry: Entry) -> int:
        """Insert an entry. Returns the new row id."""
        hours = float(entry.hours)
        if not math.isfinite(hours) or hours < 0:
            raise ValueError(f"Cannot store {entry.hours} hours")
        with self._write() as conn:
            cursor = conn.execute(
                """
                INSERT INTO entries (date, projectId, projectName, hours)
                VALUES (?, ?, ?, ?)
                """,
                (format_date(entry.date), entry.project_id, entry.project_name, hours),
            )
        logger.debug("Inserted %sh for %s on %s", entry.hours, entry.project_id, entry.date)
        return cursor.lastrowid

    def get_entries(self, limit: int = 500) -> list[Entry]:
        """Most recent entries first."""
        rows = self._query(
            "SELECT * FROM entries ORDER BY date DESC, id DESC LIMIT ?", (limit,)
        )
        return [_row_to_entry(row) for row in rows]

    def get_entries_range(self, start: date, end: date) -> list[Entry]:
        """Entries with start <= date < end."""
        rows = self._query(
            """
            SELECT * FROM entries
            WHERE date >= ? AND date < ?
            ORDER BY projectName COLLATE NOCASE, date
            """,
            (format_date(start), format_date(end)),
        )
        return [_row_to_entry(row) for row in rows]

    def get_entries_for_month(self, year: int, month: int) -> list[Entry]:
        """Get all entries for a calendar month."""
        return self.get_entries_range(*month_bounds(year, month))

    def delete_entries_by_project(self, project_id: str) -> int:
        """Delete every entry recorded against a project number."""
        with self._write() as conn:
            cursor = conn.execute("DELETE FROM entries WHERE projectId = ?", (project_id,))
        logger.debug("Deleted %d entries for project %s", cursor.rowcount, project_id)
        return cursor.rowcount

    def delete_range(self, start: date, end: date) -> int:
        """Delete entries with start <= date < end. Returns rows deleted."""
        with self._write() as conn:
            cursor = conn.execute(
                "DELETE FROM entries WHERE date >= ? AND date < ?",
                (format_date(start), format_date(end)),
            )
        return cursor.rowcount

    def delete_month(self, year: int, month: int) -> int:
        """Delete all entries of a calendar month."""
        count = self.delete_range(*month_bounds(year, month))
        logger.info("Deleted %d entries for %04d-%02d", count, year, month)
        return count

    # --- Settings ---

    def get_setting(self, key: str) -> str:
        """Get a setting value, empty string when unset."""
        _check_setting_key(key)
        rows = self._query("SELECT value FROM app_settings WHERE key = ? LIMIT 1", (key,))
        if not rows or rows[0]["value"] is None:
            return ""
        return rows[0]["value"]

    def set_setting(self, key: str, value: str) -> None:
        """Insert or replace a setting."""
        _check_setting_key(key)
        with self._write() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO app_settings (key, value) VALUES (?, ?)",
                (key, value),
            )

    def get_settings(self) -> EmployeeSettings:
        return EmployeeSettings(
            employee_name=self.get_setting(EMPLOYEE_NAME),
            employee_number=self.get_setting(EMPLOYEE_NUMBER),
        )

    def save_settings(self, settings: EmployeeSettings) -> None:
        self.set_setting(EMPLOYEE_NAME, settings.employee_name)
        self.set_setting(EMPLOYEE_NUMBER, settings.employee_number)


def _check_setting_key(key: str) -> None:
    if key not in SETTINGS_KEYS:
        raise ValueError(f"Unknown setting {key!r}")


def _row_to_entry(row: sqlite3.Row) -> Entry:
    return Entry(
        id=row["id"],
        date=date.fromisoformat(row["date"]),
        project_id=row["projectId"],
        project_name=row["projectName"],
        hours=Decimal(str(row["hours"])),
    )
