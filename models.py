from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

EMPLOYEE_NAME = "employee_name"
EMPLOYEE_NUMBER = "employee_number"
SETTINGS_KEYS = (EMPLOYEE_NAME, EMPLOYEE_NUMBER)

TOTAL_PROJECT_ID = "TOTAL"


@dataclass
class Project:
    project_id: str
    project_name: str
    id: int | None = None

    @property
    def label(self) -> str:
        """Name followed by the project number, as shown in pickers."""
        return f"{self.project_name}  ({self.project_id})"


@dataclass(frozen=True)
class Entry:
    """Hours logged against a project on one day.

    project_id and project_name are copied from the project when the entry
    is saved and are never updated afterwards.
    """

    date: date
    project_id: str
    project_name: str
    hours: Decimal
    id: int | None = None

    @classmethod
    def for_project(cls, project: Project, day: date, hours: Decimal) -> Entry:
        return cls(
            date=day,
            project_id=project.project_id,
            project_name=project.project_name,
            hours=hours,
        )

    @property
    def key(self) -> tuple[str, str]:
        return (self.project_id, self.project_name)


@dataclass
class EmployeeSettings:
    employee_name: str = ""
    employee_number: str = ""


@dataclass(frozen=True)
class AggregatedRow:
    project_id: str
    project_name: str
    total_hours: Decimal


@dataclass(frozen=True)
class ReportRow:
    percentage: Decimal
    project_id: str
    project_name: str
    hours: Decimal
    is_total: bool = False

    @property
    def highlighted(self) -> bool:
        """Project rows with a positive share get the highlight colour."""
        return not self.is_total and self.percentage > 0


@dataclass(frozen=True)
class ReportMetadata:
    employee_name: str
    employee_number: str
    month_label: str
    print_date: date


@dataclass
class Report:
    metadata: ReportMetadata
    period_total: Decimal
    rows: list[ReportRow] = field(default_factory=list)

    @property
    def project_rows(self) -> list[ReportRow]:
        """Rows without the trailing total."""
        return [row for row in self.rows if not row.is_total]

    @property
    def total_row(self) -> ReportRow | None:
        if self.rows and self.rows[-1].is_total:
            return self.rows[-1]
        return None
