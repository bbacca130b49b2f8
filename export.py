"""Export a month as a PDF report and optionally purge its entries."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Protocol

from models import Entry, Report, ReportMetadata
from report import MonthlyAggregate, aggregate, build_report
from storage import Storage
from utils import month_bounds, month_label, report_filename

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Base class for export workflow errors."""


class WorkflowBusyError(ExportError):
    """An export is already running on this workflow."""


class NothingToExportError(ExportError):
    """The month has no entries."""


class WorkflowState(Enum):
    IDLE = "idle"
    LOADING = "loading"
    RENDERING = "rendering"
    AWAITING_SHARE_RESULT = "awaiting_share_result"
    AWAITING_DELETE_CONFIRMATION = "awaiting_delete_confirmation"
    PURGING = "purging"


class Renderer(Protocol):
    def render(self, report: Report) -> bytes: ...


ShareFn = Callable[[bytes, str], Awaitable[Path]]
ConfirmFn = Callable[[str], Awaitable["bool | None"]]


@dataclass
class MonthView:
    """Entries of one month with their aggregate and report."""

    year: int
    month: int
    entries: list[Entry] = field(default_factory=list)
    aggregate: MonthlyAggregate = field(default_factory=MonthlyAggregate)
    report: Report | None = None

    @property
    def label(self) -> str:
        return month_label(self.year, self.month)

    @property
    def is_empty(self) -> bool:
        return self.aggregate.is_empty

    @property
    def exportable(self) -> bool:
        """At least one entry and a positive total."""
        return not self.is_empty and self.aggregate.period_total > 0


@dataclass
class ExportResult:
    month_label: str
    path: Path
    purged: bool
    view: MonthView


def get_export_dir() -> Path:
    """Get export directory from environment variable or default location."""
    if env_path := os.environ.get("PROJECT_HOURS_EXPORT_DIR"):
        return Path(env_path)
    return Path(__file__).parent / "exports"


class FileShare:
    """Saves rendered reports into a directory."""

    def __init__(self, export_dir: Path | None = None):
        self.export_dir = export_dir or get_export_dir()

    async def __call__(self, content: bytes, filename: str) -> Path:
        self.export_dir.mkdir(parents=True, exist_ok=True)
        path = self.export_dir / filename
        path.write_bytes(content)
        logger.info("Saved report %s (%d bytes)", path, len(content))
        return path


class ExportWorkflow:
    """Build, render and share a monthly report, then offer to purge the month.

    One run at a time: calling export_month() while a run is in progress
    raises WorkflowBusyError.
    """

    def __init__(
        self,
        storage: Storage,
        renderer: Renderer,
        share: ShareFn,
        confirm_purge: ConfirmFn,
        today: Callable[[], date] = date.today,
    ):
        self.storage = storage
        self.renderer = renderer
        self.share = share
        self.confirm_purge = confirm_purge
        self.today = today
        self._state = WorkflowState.IDLE

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is not WorkflowState.IDLE

    def _set_state(self, state: WorkflowState) -> None:
        logger.debug("Export workflow: %s -> %s", self._state.value, state.value)
        self._state = state

    def load_month(self, year: int, month: int) -> MonthView:
        """Read a month's entries and settings and build its report."""
        start, end = month_bounds(year, month)
        entries = self.storage.get_entries_range(start, end)
        settings = self.storage.get_settings()

        agg = aggregate(entries, start, end)
        metadata = ReportMetadata(
            employee_name=settings.employee_name,
            employee_number=settings.employee_number,
            month_label=month_label(year, month),
            print_date=self.today(),
        )
        report = build_report(agg.rows, agg.period_total, metadata)
        return MonthView(year=year, month=month, entries=entries, aggregate=agg, report=report)

    async def export_month(self, year: int, month: int) -> ExportResult:
        if self.is_busy:
            raise WorkflowBusyError(
                f"Export already in progress ({self._state.value})"
            )
        self._set_state(WorkflowState.LOADING)
        try:
            return await self._run(year, month)
        finally:
            self._set_state(WorkflowState.IDLE)

    async def _run(self, year: int, month: int) -> ExportResult:
        view = self.load_month(year, month)
        if not view.exportable:
            raise NothingToExportError(f"No hours logged for {view.label}")

        self._set_state(WorkflowState.RENDERING)
        content = self.renderer.render(view.report)

        self._set_state(WorkflowState.AWAITING_SHARE_RESULT)
        path = await self.share(content, report_filename(year, month))

        self._set_state(WorkflowState.AWAITING_DELETE_CONFIRMATION)
        confirmed = await self.confirm_purge(view.label)
        if confirmed is not True:
            return ExportResult(month_label=view.label, path=path, purged=False, view=view)

        self._set_state(WorkflowState.PURGING)
        start, end = month_bounds(year, month)
        deleted = self.storage.delete_range(start, end)
        logger.info("Purged %d entries for %s", deleted, view.label)
        refreshed = self.load_month(year, month)
        return ExportResult(month_label=view.label, path=path, purged=True, view=refreshed)
