#!/usr/bin/env python3
"""Import project hours from an Excel workbook.

The first sheet is read. Row 1 holds headers; the columns used are Date,
Project No., Project Name and Hours, matched by header text. Without
recognised headers the columns are taken in that order from column A.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path

from openpyxl import load_workbook

from models import Entry
from storage import Storage
from utils import parse_date, parse_hours

logger = logging.getLogger(__name__)

HEADER_ALIASES = {
    "date": "date",
    "project no.": "project_id",
    "project no": "project_id",
    "project number": "project_id",
    "project id": "project_id",
    "project name": "project_name",
    "project": "project_name",
    "hours": "hours",
}
DEFAULT_COLUMNS = {"date": 0, "project_id": 1, "project_name": 2, "hours": 3}


@dataclass
class ImportResult:
    entries: list[Entry] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


def find_columns(header: tuple) -> dict[str, int]:
    """Map field names to column indexes from a header row."""
    columns: dict[str, int] = {}
    for index, value in enumerate(header):
        if value is None:
            continue
        name = HEADER_ALIASES.get(str(value).strip().lower())
        if name and name not in columns:
            columns[name] = index
    if len(columns) < len(DEFAULT_COLUMNS):
        return dict(DEFAULT_COLUMNS)
    return columns


def has_header(row: tuple) -> bool:
    return any(str(v).strip().lower() in HEADER_ALIASES for v in row if v is not None)


def parse_cell_date(val) -> date:
    """Dates come back from openpyxl as datetime objects or text."""
    if isinstance(val, datetime):
        return val.date()
    if isinstance(val, date):
        return val
    return parse_date(str(val))


def parse_row(row: tuple, columns: dict[str, int]) -> Entry | None:
    """Build an entry from a sheet row. None for blank rows, ValueError for bad ones."""
    def cell(name: str):
        index = columns[name]
        return row[index] if index < len(row) else None

    values = [cell(name) for name in DEFAULT_COLUMNS]
    if all(v is None or str(v).strip() == "" for v in values):
        return None

    raw_date, raw_pid, raw_name, raw_hours = values
    if raw_date is None:
        raise ValueError("missing date")
    project_id = str(raw_pid).strip() if raw_pid is not None else ""
    project_name = str(raw_name).strip() if raw_name is not None else ""
    if not project_id or not project_name:
        raise ValueError("missing project number or name")
    # Whole project numbers can come back as floats, e.g. 1024.0
    if isinstance(raw_pid, float) and raw_pid.is_integer():
        project_id = str(int(raw_pid))

    return Entry(
        date=parse_cell_date(raw_date),
        project_id=project_id,
        project_name=project_name,
        hours=parse_hours("" if raw_hours is None else str(raw_hours)),
    )


def read_workbook(path: Path) -> ImportResult:
    """Read entries from the first sheet of a workbook."""
    wb = load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        result = ImportResult()
        if header is None:
            return result

        columns = find_columns(header)
        if not has_header(header):
            # The first row is data
            _collect(result, header, columns, 1)

        for row_num, row in enumerate(rows, start=2):
            _collect(result, row, columns, row_num)
        return result
    finally:
        wb.close()


def _collect(result: ImportResult, row: tuple, columns: dict[str, int], row_num: int) -> None:
    try:
        entry = parse_row(row, columns)
    except ValueError as exc:
        result.errors.append(f"Row {row_num}: {exc}")
        return
    if entry is not None:
        result.entries.append(entry)


def import_workbook(storage: Storage, path: Path) -> ImportResult:
    """Insert every valid row of a workbook into the database."""
    result = read_workbook(path)
    for entry in result.entries:
        storage.insert_entry(entry)
    logger.info("Imported %d entries from %s", len(result.entries), path)
    return result


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: import_data.py <workbook.xlsx>")
        return 2

    path = Path(args[0])
    with Storage() as storage:
        result = import_workbook(storage, path)

    for error in result.errors:
        print(f"Skipped {error}")
    print(f"Imported {len(result.entries)} entries from {path.name}")
    return 1 if result.errors else 0


if __name__ == "__main__":
    sys.exit(main())
