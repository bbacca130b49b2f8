"""Monthly aggregation and report building.

Both steps are pure: they take a snapshot of entries and return new values,
so they can run anywhere without locking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable

from models import TOTAL_PROJECT_ID, AggregatedRow, Entry, Report, ReportMetadata, ReportRow

ZERO = Decimal("0")
HUNDRED = Decimal("100")


@dataclass(frozen=True)
class MonthlyAggregate:
    rows: dict[tuple[str, str], Decimal] = field(default_factory=dict)
    period_total: Decimal = ZERO

    @property
    def is_empty(self) -> bool:
        return not self.rows

    def as_rows(self) -> list[AggregatedRow]:
        return [
            AggregatedRow(project_id=pid, project_name=pname, total_hours=hours)
            for (pid, pname), hours in self.rows.items()
        ]


def aggregate(entries: Iterable[Entry], period_start: date, period_end: date) -> MonthlyAggregate:
    """Sum hours per (project_id, project_name) over [period_start, period_end).

    Entries must already be restricted to the period. Two entries are merged
    only when both project_id and project_name match.
    """
    rows: dict[tuple[str, str], Decimal] = {}
    total = ZERO
    for entry in entries:
        if not period_start <= entry.date < period_end:
            raise ValueError(
                f"Entry dated {entry.date} is outside {period_start} - {period_end}"
            )
        rows[entry.key] = rows.get(entry.key, ZERO) + entry.hours
        total += entry.hours
    return MonthlyAggregate(rows=rows, period_total=total)


def percentage_of(hours: Decimal, period_total: Decimal) -> Decimal:
    if period_total > 0:
        return hours / period_total * HUNDRED
    return ZERO


def build_report(
    rows: dict[tuple[str, str], Decimal],
    period_total: Decimal,
    metadata: ReportMetadata,
) -> Report:
    """Rank aggregated rows by share of the month and append the total row.

    Rows are ordered by percentage descending; equal percentages fall back to
    project_id, then project_name, ascending.
    """
    report_rows = [
        ReportRow(
            percentage=percentage_of(hours, period_total),
            project_id=pid,
            project_name=pname,
            hours=hours,
        )
        for (pid, pname), hours in rows.items()
    ]
    report_rows.sort(key=lambda r: (-r.percentage, r.project_id, r.project_name))
    report_rows.append(
        ReportRow(
            percentage=HUNDRED,
            project_id=TOTAL_PROJECT_ID,
            project_name="",
            hours=period_total,
            is_total=True,
        )
    )
    return Report(metadata=metadata, period_total=period_total, rows=report_rows)
