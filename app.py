#!/usr/bin/env python3
"""Project hours TUI application."""

from __future__ import annotations

import logging
import os
from datetime import date

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.logging import TextualHandler
from textual.widgets import Static, Footer, DataTable
from rich.text import Text

from export import (
    ExportResult,
    ExportWorkflow,
    FileShare,
    MonthView,
    NothingToExportError,
    ShareFn,
    WorkflowBusyError,
    Renderer,
)
from models import EmployeeSettings, Entry, Project, ReportRow
from pdf_render import PdfRenderer
from screens import (
    AddEntryScreen,
    ConfirmScreen,
    MonthSelectScreen,
    ProjectManagementScreen,
    ProjectSelectScreen,
    SettingsScreen,
)
from storage import Storage, StorageError, get_db_path
from utils import format_date, format_hours, format_percentage, shift_month
from widgets import EntriesSummary, MonthHeader, ReportSummary

logger = logging.getLogger(__name__)

RECENT_ENTRIES_LIMIT = 500


class HoursDataTable(DataTable):
    """DataTable that hands left/right to the app for month navigation in the report view."""

    def on_key(self, event) -> None:
        if getattr(self.app, "view_mode", None) != "report":
            return
        if event.key == "left":
            self.app.action_prev_month()  # type: ignore[attr-defined]
        elif event.key == "right":
            self.app.action_next_month()  # type: ignore[attr-defined]
        else:
            return
        self.scroll_x = 0
        event.prevent_default()
        event.stop()


class ProjectHoursApp(App):
    """Main project hours application."""

    CSS = """
    Screen {
        background: $surface;
    }

    #entries-header, #month-header {
        height: auto;
        background: $primary;
        color: $text;
        padding: 0 1;
        text-style: bold;
    }

    #entries-table, #report-table {
        height: 1fr;
        margin: 1 2;
    }

    #entries-summary, #report-summary {
        height: auto;
        padding: 1 2;
        color: $text;
    }

    .hidden {
        display: none;
    }

    DataTable {
        height: 100%;
    }

    DataTable > .datatable--cursor {
        background: $secondary;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("a", "add_entry", "Add"),
        Binding("p", "manage_projects", "Projects"),
        Binding("s", "settings", "Settings"),
        Binding("r", "report_view", "Report"),
        Binding("escape", "entries_view", "Back"),
        Binding("g", "pick_month", "Month"),
        Binding("l", "reload", "Reload"),
        Binding("x", "export", "Export PDF"),
    ]

    def __init__(
        self,
        storage: Storage,
        renderer: Renderer | None = None,
        share: ShareFn | None = None,
    ):
        super().__init__()
        self.storage = storage

        # View mode: "entries" or "report"
        self.view_mode = "entries"

        today = date.today()
        self.current_year = today.year
        self.current_month = today.month
        self.entries: list[Entry] = []
        self.month_view: MonthView | None = None

        # Remembered between entries so repeated logging is quick
        self.last_project: Project | None = None
        self.last_date: date = today

        self.export_workflow = ExportWorkflow(
            storage,
            renderer or PdfRenderer.from_env(),
            share or FileShare(),
            self._confirm_purge,
        )

    def compose(self) -> ComposeResult:
        # Entries view widgets
        yield Static("PROJECT HOURS", id="entries-header")
        yield Container(HoursDataTable(id="entries-table"), id="entries-table-container")
        yield EntriesSummary(id="entries-summary")
        # Report view widgets (hidden by default)
        yield MonthHeader(self.current_year, self.current_month, id="month-header", classes="hidden")
        yield Container(HoursDataTable(id="report-table"), id="report-table-container", classes="hidden")
        yield ReportSummary(id="report-summary", classes="hidden")
        yield Footer()

    def on_mount(self):
        entries_table = self.query_one("#entries-table", DataTable)
        entries_table.cursor_type = "row"
        entries_table.add_column("Date", width=10)
        entries_table.add_column("Project", width=36)
        entries_table.add_column("Number", width=10)
        entries_table.add_column("Hours", width=8)

        report_table = self.query_one("#report-table", DataTable)
        report_table.cursor_type = "row"
        report_table.add_column("%", width=9)
        report_table.add_column("Number", width=10)
        report_table.add_column("Project", width=36)
        report_table.add_column("Hours", width=8)

        self._load_entries()
        self._load_month()
        self.refresh_bindings()
        self._refresh_display()
        entries_table.focus()

    # --- Data loading ---

    def _load_entries(self) -> bool:
        """Reload the recent entries list. Returns False if the store failed."""
        try:
            self.entries = self.storage.get_entries(limit=RECENT_ENTRIES_LIMIT)
        except StorageError:
            logger.exception("Loading recent entries failed")
            self.notify("Could not load entries", severity="error")
            return False
        return True

    def _load_month(self) -> bool:
        """Rebuild the report for the current month."""
        try:
            self.month_view = self.export_workflow.load_month(self.current_year, self.current_month)
        except StorageError:
            logger.exception("Loading %04d-%02d failed", self.current_year, self.current_month)
            self.notify("Could not load the monthly report", severity="error")
            return False
        return True

    # --- Display ---

    def _refresh_display(self):
        if self.view_mode == "report":
            self._refresh_report_display()
        else:
            self._refresh_entries_display()

    def _refresh_entries_display(self):
        table = self.query_one("#entries-table", DataTable)
        table.clear()
        for entry in self.entries:
            table.add_row(*self._entry_cells(entry), key=str(entry.id))
        summary = self.query_one("#entries-summary", EntriesSummary)
        summary.update_display(len(self.entries), self.last_project.label if self.last_project else None)

    def _refresh_report_display(self):
        header = self.query_one("#month-header", MonthHeader)
        header.update_display(self.current_year, self.current_month)

        table = self.query_one("#report-table", DataTable)
        table.clear()
        view = self.month_view
        if view is None or view.report is None:
            return
        if not view.is_empty:
            for index, row in enumerate(view.report.rows):
                table.add_row(*self._report_cells(row), key=str(index))

        summary = self.query_one("#report-summary", ReportSummary)
        summary.update_display(view.aggregate.period_total, len(view.entries), len(view.aggregate.rows))

    def _entry_cells(self, entry: Entry) -> list[str | Text]:
        return [
            format_date(entry.date),
            entry.project_name[:36],
            entry.project_id,
            Text(format_hours(entry.hours), justify="right"),
        ]

    def _report_cells(self, row: ReportRow) -> list[str | Text]:
        """Table cells for a report row, highlighting positive shares."""
        if row.is_total:
            return [
                Text("100%", style="bold", justify="center"),
                Text("Total", style="bold", justify="center"),
                Text(""),
                Text(format_hours(row.hours), style="bold", justify="right"),
            ]
        pct_style = "bold green" if row.highlighted else "dim"
        return [
            Text(format_percentage(row.percentage), style=pct_style, justify="right"),
            row.project_id,
            row.project_name[:36],
            Text(format_hours(row.hours), justify="right"),
        ]

    def _set_view_mode(self, mode: str):
        """Switch between view modes and toggle widget visibility."""
        self.view_mode = mode
        entries_widgets = ["#entries-header", "#entries-table-container", "#entries-summary"]
        report_widgets = ["#month-header", "#report-table-container", "#report-summary"]

        for widget_id in entries_widgets:
            self.query_one(widget_id).set_class(mode != "entries", "hidden")
        for widget_id in report_widgets:
            self.query_one(widget_id).set_class(mode != "report", "hidden")

        self.refresh_bindings()
        self._refresh_display()
        table_id = "#report-table" if mode == "report" else "#entries-table"
        self.query_one(table_id, DataTable).focus()

    def check_action(self, action: str, parameters: tuple[object, ...]) -> bool | None:
        """Check if an action is available based on current view mode."""
        if action == "report_view":
            return self.view_mode != "report"
        elif action == "entries_view":
            return True if self.view_mode == "report" else None
        elif action in ("pick_month", "reload"):
            return True if self.view_mode == "report" else None
        elif action == "export":
            if self.view_mode != "report":
                return None
            # Shown but disabled when there is nothing to export
            return self.can_export()
        return True

    def can_export(self) -> bool:
        if self.export_workflow.is_busy:
            return False
        return self.month_view is not None and self.month_view.exportable

    # --- Navigation ---

    def action_report_view(self):
        self._load_month()
        self._set_view_mode("report")

    def action_entries_view(self):
        self._set_view_mode("entries")

    def action_prev_month(self):
        self._navigate_to_month(*shift_month(self.current_year, self.current_month, -1))

    def action_next_month(self):
        self._navigate_to_month(*shift_month(self.current_year, self.current_month, 1))

    def action_pick_month(self):
        self.push_screen(
            MonthSelectScreen(self.current_year, self.current_month),
            self._on_month_selected,
        )

    def _on_month_selected(self, result: tuple[int, int] | None) -> None:
        if result:
            self._navigate_to_month(*result)

    def _navigate_to_month(self, year: int, month: int):
        self.current_year = year
        self.current_month = month
        self._load_month()
        self.refresh_bindings()
        self._refresh_display()

    def action_reload(self):
        self._load_month()
        self.refresh_bindings()
        self._refresh_display()

    # --- Entries ---

    def action_add_entry(self):
        """Pick a project, then log hours against it."""
        try:
            projects = self.storage.get_projects()
        except StorageError:
            self.notify("Could not load projects", severity="error")
            return
        if not projects:
            self.notify("Add a project first (p)", severity="warning")
            return
        self.push_screen(ProjectSelectScreen(projects), self._on_project_selected)

    def _on_project_selected(self, project: Project | None) -> None:
        if project is None:
            self.notify("Select a project before saving", severity="warning")
            return
        self.last_project = project
        self.push_screen(AddEntryScreen(project, self.last_date), self._on_entry_added)

    def _on_entry_added(self, entry: Entry | None) -> None:
        if entry is None:
            return
        try:
            self.storage.insert_entry(entry)
        except StorageError:
            logger.exception("Saving entry failed")
            self.notify("Could not save the entry", severity="error")
            return
        self.last_date = entry.date
        self.notify("Saved")
        self._load_entries()
        self._load_month()
        self.refresh_bindings()
        self._refresh_display()

    # --- Projects and settings ---

    def action_manage_projects(self):
        self.push_screen(ProjectManagementScreen(self.storage), self._on_projects_closed)

    def _on_projects_closed(self, _result: None) -> None:
        # Cascading deletes can remove entries
        self._load_entries()
        self._load_month()
        self.refresh_bindings()
        self._refresh_display()

    def action_settings(self):
        try:
            settings = self.storage.get_settings()
        except StorageError:
            self.notify("Could not load settings", severity="error")
            return
        self.push_screen(SettingsScreen(settings), self._on_settings_saved)

    def _on_settings_saved(self, result: EmployeeSettings | None) -> None:
        if result is None:
            return
        try:
            self.storage.save_settings(result)
        except StorageError:
            self.notify("Could not save settings", severity="error")
            return
        self.notify("Settings saved")
        self._load_month()

    # --- Export ---

    def action_export(self):
        if self.export_workflow.is_busy:
            self.notify("An export is already running", severity="warning")
            return
        self._run_export(self.current_year, self.current_month)

    async def _confirm_purge(self, label: str) -> bool | None:
        return await self.push_screen_wait(
            ConfirmScreen(f"Delete all entries of {label}? This cannot be undone.")
        )

    @work(group="export")
    async def _run_export(self, year: int, month: int) -> None:
        self.refresh_bindings()
        try:
            result = await self.export_workflow.export_month(year, month)
        except NothingToExportError:
            self.notify("No hours this month - nothing to export", severity="warning")
            return
        except WorkflowBusyError:
            self.notify("An export is already running", severity="warning")
            return
        except Exception:
            # Render, share and store failures
            logger.exception("Export of %04d-%02d failed", year, month)
            self.notify("Export failed", severity="error")
            self._load_month()
            return
        finally:
            self.refresh_bindings()
        self._on_export_done(result)

    def _on_export_done(self, result: ExportResult) -> None:
        self.notify(f"Saved {result.path}")
        if result.purged:
            self.notify(f"Entries of {result.month_label} deleted")
            self._load_entries()
        if result.view.year == self.current_year and result.view.month == self.current_month:
            self.month_view = result.view
        self.refresh_bindings()
        self._refresh_display()


def configure_logging() -> None:
    """Route log records to the Textual devtools console."""
    level = os.environ.get("PROJECT_HOURS_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, handlers=[TextualHandler()])


def main():
    import sys
    if len(sys.argv) > 1 and sys.argv[1] == "--db-info":
        from datetime import datetime
        db_path = get_db_path()
        print(f"Database: {db_path}")
        if db_path.exists():
            mtime = datetime.fromtimestamp(db_path.stat().st_mtime)
            size = db_path.stat().st_size
            print(f"Modified: {mtime.strftime('%Y-%m-%d %H:%M:%S')}")
            print(f"Size: {size:,} bytes")
        else:
            print("Status: Does not exist (will be created on first run)")
        return

    configure_logging()
    with Storage() as storage:
        app = ProjectHoursApp(storage)
        app.run()


if __name__ == "__main__":
    main()
