"""Tests for the app module."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from export import ExportResult, WorkflowState
from models import Entry, ReportRow


def make_app(storage, year=2024, month=3, renderer=None):
    from app import ProjectHoursApp

    app = ProjectHoursApp(storage, renderer=renderer)
    app.current_year = year
    app.current_month = month
    return app


def seed(store, entries):
    for entry in entries:
        store.insert_entry(entry)


class TestCells:
    """Tests for table cell formatting."""

    def test_entry_cells(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            entry = Entry(date=date(2024, 3, 5), project_id="P1", project_name="Alpha", hours=Decimal("3.5"))

            cells = app._entry_cells(entry)

            assert cells[0] == "2024-03-05"
            assert cells[1] == "Alpha"
            assert cells[2] == "P1"
            assert str(cells[3]) == "3.50"

    def test_long_project_name_truncated(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            entry = Entry(date=date(2024, 3, 5), project_id="P1", project_name="x" * 80, hours=Decimal("1"))

            assert len(app._entry_cells(entry)[1]) == 36

    def test_highlighted_report_row(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            row = ReportRow(Decimal("62.5"), "P1", "Alpha", Decimal("5"))

            cells = app._report_cells(row)

            assert str(cells[0]) == "62.50%"
            assert "green" in str(cells[0].style)
            assert cells[1] == "P1"
            assert cells[2] == "Alpha"
            assert str(cells[3]) == "5.00"

    def test_zero_report_row_not_highlighted(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            row = ReportRow(Decimal("0"), "P2", "Beta", Decimal("0"))

            cells = app._report_cells(row)

            assert "green" not in str(cells[0].style)

    def test_total_row(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            row = ReportRow(Decimal("100"), "TOTAL", "", Decimal("10"), is_total=True)

            cells = app._report_cells(row)

            assert [str(c) for c in cells] == ["100%", "Total", "", "10.00"]


class TestLoadMonth:
    """Tests for loading the current month."""

    def test_load_month(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)

            assert app._load_month() is True

            assert app.month_view.label == "2024-03"
            assert app.month_view.aggregate.period_total == Decimal("10")
            assert len(app.month_view.report.rows) == 3

    def test_load_entries(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)

            assert app._load_entries() is True
            assert [e.date.day for e in app.entries] == [20, 12, 5]

    def test_store_failure_notifies(self, tmp_path):
        from app import ProjectHoursApp
        from storage import Storage

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(Storage(tmp_path / "never_opened.db"))

            with patch.object(app, 'notify') as notify:
                assert app._load_month() is False
                assert app._load_entries() is False

            assert notify.call_count == 2
            assert app.month_view is None


class TestCheckAction:
    """Tests for binding availability."""

    def test_export_hidden_in_entries_view(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()

            assert app.check_action("export", ()) is None
            assert app.check_action("report_view", ()) is True
            assert app.check_action("entries_view", ()) is None

    def test_export_enabled_for_month_with_entries(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()
            app.view_mode = "report"

            assert app.check_action("export", ()) is True
            assert app.check_action("report_view", ()) is False
            assert app.check_action("pick_month", ()) is True

    def test_export_disabled_for_empty_month(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()
            app.view_mode = "report"

            assert app.can_export() is False
            assert app.check_action("export", ()) is False

    def test_export_disabled_for_zero_hours(self, store):
        from app import ProjectHoursApp

        store.insert_entry(Entry(date=date(2024, 3, 5), project_id="P1", project_name="Alpha", hours=Decimal("0")))
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()
            app.view_mode = "report"

            assert app.month_view.is_empty is False
            assert app.check_action("export", ()) is False

    def test_export_disabled_while_running(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()
            app.view_mode = "report"
            app.export_workflow._state = WorkflowState.AWAITING_DELETE_CONFIRMATION

            assert app.can_export() is False


class TestExportDone:
    """Tests for handling a finished export."""

    def test_purged_result_reloads_entries(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_entries()
            store.delete_month(2024, 3)
            view = app.export_workflow.load_month(2024, 3)
            result = ExportResult("2024-03", Path("Report_2024-03.pdf"), purged=True, view=view)

            with patch.object(app, 'notify'), patch.object(app, 'refresh_bindings'), \
                    patch.object(app, '_refresh_display'):
                app._on_export_done(result)

            assert app.entries == []
            assert app.month_view is view
            assert app.can_export() is False

    def test_other_month_result_keeps_current_view(self, store, march_entries):
        from app import ProjectHoursApp

        seed(store, march_entries)
        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._load_month()
            current = app.month_view
            other = app.export_workflow.load_month(2024, 2)
            result = ExportResult("2024-02", Path("Report_2024-02.pdf"), purged=False, view=other)

            with patch.object(app, 'notify'), patch.object(app, 'refresh_bindings'), \
                    patch.object(app, '_refresh_display'):
                app._on_export_done(result)

            assert app.month_view is current


class TestEntryAdded:
    """Tests for saving a new entry."""

    def test_entry_saved_and_views_reloaded(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            entry = Entry(date=date(2024, 3, 7), project_id="P1", project_name="Alpha", hours=Decimal("2"))

            with patch.object(app, 'notify'), patch.object(app, 'refresh_bindings'), \
                    patch.object(app, '_refresh_display'):
                app._on_entry_added(entry)

            assert [e.project_id for e in app.entries] == ["P1"]
            assert app.last_date == date(2024, 3, 7)
            assert app.month_view.aggregate.period_total == Decimal("2")

    def test_cancelled_entry_ignored(self, store):
        from app import ProjectHoursApp

        with patch.object(ProjectHoursApp, 'run'):
            app = make_app(store)
            app._on_entry_added(None)

            assert store.get_entries() == []


class TestRunningApp:
    """Tests driving the app headlessly."""

    def test_report_view_lists_month(self, store, march_entries):
        seed(store, march_entries)

        async def scenario():
            app = make_app(store)
            async with app.run_test() as pilot:
                await pilot.press("r")
                await pilot.pause()
                rows = app.query_one("#report-table").row_count
                mode = app.view_mode
                await pilot.press("escape")
                await pilot.pause()
                return mode, rows, app.view_mode

        assert asyncio.run(scenario()) == ("report", 3, "entries")

    def test_entries_view_lists_recent_entries(self, store, march_entries):
        seed(store, march_entries)

        async def scenario():
            app = make_app(store)
            async with app.run_test() as pilot:
                await pilot.pause()
                return app.query_one("#entries-table").row_count

        assert asyncio.run(scenario()) == 3


class StaticRenderer:
    def render(self, report):
        return b"%PDF-fake"


class BrokenRenderer:
    def render(self, report):
        from fpdf.errors import FPDFException

        raise FPDFException("font table is corrupt")


async def wait_for_screen(app, pilot, screen_type):
    for _ in range(100):
        if isinstance(app.screen, screen_type):
            return app.screen
        await pilot.pause(0.02)
    raise AssertionError(f"{screen_type.__name__} was not shown")


class TestExportFromApp:
    """Export driven through the report view, the worker and the confirm dialog."""

    def run_export(self, store, answer_key, renderer=None):
        from screens import ConfirmScreen

        async def scenario():
            app = make_app(store, renderer=renderer or StaticRenderer())
            async with app.run_test() as pilot:
                await pilot.press("r")
                await pilot.press("x")
                await wait_for_screen(app, pilot, ConfirmScreen)
                await pilot.press(answer_key)
                await app.workers.wait_for_complete()
                await pilot.pause()
                return app.query_one("#report-table").row_count, app.export_workflow.state

        return asyncio.run(scenario())

    def test_confirm_purges_month(self, store, march_entries, tmp_path):
        seed(store, march_entries)
        store.insert_entry(Entry(date=date(2024, 4, 1), project_id="P1", project_name="Alpha", hours=Decimal("2")))

        rows, state = self.run_export(store, "y")

        assert rows == 0
        assert state is WorkflowState.IDLE
        assert store.get_entries_for_month(2024, 3) == []
        assert len(store.get_entries_for_month(2024, 4)) == 1
        assert (tmp_path / "exports" / "Report_2024-03.pdf").read_bytes() == b"%PDF-fake"

    def test_escape_keeps_entries(self, store, march_entries, tmp_path):
        seed(store, march_entries)

        rows, state = self.run_export(store, "escape")

        assert rows == 3
        assert state is WorkflowState.IDLE
        assert len(store.get_entries_for_month(2024, 3)) == 3
        assert (tmp_path / "exports" / "Report_2024-03.pdf").exists()

    def test_no_keeps_entries(self, store, march_entries):
        seed(store, march_entries)

        self.run_export(store, "n")

        assert len(store.get_entries_for_month(2024, 3)) == 3

    def test_render_failure_keeps_app_running(self, store, march_entries, tmp_path):
        seed(store, march_entries)

        async def scenario():
            app = make_app(store, renderer=BrokenRenderer())
            async with app.run_test() as pilot:
                with patch.object(app, 'notify') as notify:
                    await pilot.press("r")
                    await pilot.press("x")
                    await app.workers.wait_for_complete()
                    await pilot.pause()
                    messages = [c.args[0] for c in notify.call_args_list]
                return app.is_running, messages, app.export_workflow.state, app.can_export()

        running, messages, state, can_export = asyncio.run(scenario())

        assert running is True
        assert "Export failed" in messages
        assert state is WorkflowState.IDLE
        assert can_export is True
        assert len(store.get_entries_for_month(2024, 3)) == 3
        assert not (tmp_path / "exports" / "Report_2024-03.pdf").exists()
