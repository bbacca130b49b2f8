"""Shared fixtures for tests."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path, monkeypatch):
    """Keep databases and exported reports out of the source tree."""
    monkeypatch.setenv("PROJECT_HOURS_DB", str(tmp_path / "project_hours.db"))
    monkeypatch.setenv("PROJECT_HOURS_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.delenv("PROJECT_HOURS_FONT", raising=False)
    monkeypatch.delenv("PROJECT_HOURS_BOLD_FONT", raising=False)


@pytest.fixture
def store(tmp_path: Path) -> Generator:
    """An open Storage on a temporary database."""
    from storage import Storage

    storage = Storage(tmp_path / "test_hours.db")
    storage.open()
    yield storage
    storage.close()


@pytest.fixture
def alpha():
    from models import Project

    return Project(project_id="P1", project_name="Alpha")


@pytest.fixture
def beta():
    from models import Project

    return Project(project_id="P2", project_name="Beta")


@pytest.fixture
def march_entries():
    """The March 2024 example: Alpha 3.5 + 1.5, Beta 5.0."""
    from models import Entry

    return [
        Entry(date=date(2024, 3, 5), project_id="P1", project_name="Alpha", hours=Decimal("3.5")),
        Entry(date=date(2024, 3, 12), project_id="P1", project_name="Alpha", hours=Decimal("1.5")),
        Entry(date=date(2024, 3, 20), project_id="P2", project_name="Beta", hours=Decimal("5.0")),
    ]


@pytest.fixture
def sample_metadata():
    from models import ReportMetadata

    return ReportMetadata(
        employee_name="Dana Levi",
        employee_number="4711",
        month_label="2024-03",
        print_date=date(2024, 4, 2),
    )
