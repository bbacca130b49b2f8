"""Date and input helpers for project hours."""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation

DATE_FORMAT = "%Y-%m-%d"
PRINT_DATE_FORMAT = "%d/%m/%Y"

# One entry covers at most a full day
MAX_HOURS = Decimal("24")


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Get (first day, first day of next month) for a calendar month.

    The end date is exclusive.
    """
    start = date(year, month, 1)
    if month == 12:
        end = date(year + 1, 1, 1)
    else:
        end = date(year, month + 1, 1)
    return start, end


def month_label(year: int, month: int) -> str:
    """Zero-padded yyyy-MM label, e.g. 2024-03."""
    return f"{year:04d}-{month:02d}"


def parse_month_label(label: str) -> tuple[int, int]:
    """Parse a yyyy-MM label into (year, month)."""
    parts = label.strip().split("-")
    if len(parts) != 2:
        raise ValueError(f"Invalid month {label!r}, expected yyyy-MM")
    try:
        year, month = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Invalid month {label!r}, expected yyyy-MM") from exc
    if not 1 <= month <= 12 or year < 1:
        raise ValueError(f"Invalid month {label!r}, expected yyyy-MM")
    return year, month


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move a (year, month) pair by delta months."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def report_filename(year: int, month: int) -> str:
    return f"Report_{month_label(year, month)}.pdf"


def format_date(d: date) -> str:
    return d.strftime(DATE_FORMAT)


def parse_date(val: str) -> date:
    """Parse a yyyy-MM-dd string."""
    return date.fromisoformat(val.strip())


def parse_hours(val: str) -> Decimal:
    """Parse hours typed by the user.

    Accepts a comma as decimal separator. Raises ValueError for empty,
    non-numeric, non-finite or negative input and for more than MAX_HOURS.
    """
    text = val.strip().replace(",", ".")
    if not text:
        raise ValueError("Enter the number of hours")
    try:
        hours = Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"Invalid number of hours: {val.strip()}") from exc
    if not hours.is_finite():
        raise ValueError(f"Invalid number of hours: {val.strip()}")
    if hours < 0:
        raise ValueError("Hours cannot be negative")
    if hours > MAX_HOURS:
        raise ValueError(f"Hours cannot exceed {MAX_HOURS}")
    return hours


def format_hours(hours: Decimal) -> str:
    return f"{hours:.2f}"


def format_percentage(pct: Decimal) -> str:
    return f"{pct:.2f}%"
