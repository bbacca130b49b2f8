"""Custom widgets for the project hours application."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from textual.widgets import Static
from rich.text import Text

from utils import format_hours, month_label

HEADER_WIDTH = 74


class MonthHeader(Static):
    """Shows the report month on the left and month navigation on the right."""

    def __init__(self, year: int, month: int, **kwargs):
        super().__init__(**kwargs)
        self.year = year
        self.month = month
        self.left_arrow_pos = 0
        self.right_arrow_pos = 0

    def update_display(self, year: int, month: int) -> None:
        self.year = year
        self.month = month
        title = f"REPORT: {date(year, month, 1).strftime('%B %Y')}"
        nav = f"◄ {month_label(year, month)} ►"

        nav_start = HEADER_WIDTH - len(nav)
        self.left_arrow_pos = nav_start
        self.right_arrow_pos = nav_start + len(nav) - 1

        text = Text()
        text.append(title, style="bold")
        spacing = nav_start - len(title)
        text.append(" " * spacing if spacing > 0 else "  ")
        text.append(nav, style="bold")
        self.update(text)

    def on_click(self, event) -> None:
        """Handle clicks on the arrows for month navigation."""
        click_col = event.x
        if self.left_arrow_pos <= click_col < self.left_arrow_pos + 2:
            self.app.action_prev_month()  # type: ignore[attr-defined]
        elif self.right_arrow_pos <= click_col < self.right_arrow_pos + 2:
            self.app.action_next_month()  # type: ignore[attr-defined]


class ReportSummary(Static):
    """Shows the month's totals below the report table."""

    def update_display(self, total_hours: Decimal, entry_count: int, project_count: int) -> None:
        text = Text()
        text.append(f"Total hours  {format_hours(total_hours):>8}\n", style="bold")
        text.append(f"Entries      {entry_count:>8}\n", style="dim" if entry_count == 0 else "")
        text.append(f"Projects     {project_count:>8}", style="dim" if project_count == 0 else "")
        if entry_count == 0:
            text.append("\nNo entries this month - nothing to export", style="dim italic")
        self.update(text)


class EntriesSummary(Static):
    """One-line summary under the recent entries list."""

    def update_display(self, shown: int, selected_project: str | None) -> None:
        text = Text()
        text.append(f"{shown} recent entries", style="dim" if shown == 0 else "")
        if selected_project:
            text.append("   Last project: ")
            text.append(selected_project, style="bold")
        self.update(text)
