"""Modal screens for the project hours application."""

from __future__ import annotations

from datetime import date

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.coordinate import Coordinate
from textual.widgets import Button, DataTable, Input, Label
from textual.screen import ModalScreen

from models import EmployeeSettings, Entry, Project
from storage import Storage, StorageError
from utils import format_date, month_label, parse_date, parse_hours, parse_month_label


class ConfirmScreen(ModalScreen[bool]):
    """Simple confirmation dialog."""

    CSS = """
    ConfirmScreen {
        align: center middle;
    }

    #confirm-dialog {
        width: 50;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $warning;
    }

    #confirm-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #confirm-buttons Button {
        width: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("y", "confirm", "Yes"),
        Binding("n", "cancel", "No"),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical(id="confirm-dialog"):
            yield Label(self.message)
            with Horizontal(id="confirm-buttons"):
                yield Button("Yes (Y)", variant="warning", id="yes")
                yield Button("No (N)", variant="default", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "yes")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)


class DeleteProjectScreen(ModalScreen[bool | None]):
    """Ask whether a project's entries go with it.

    Returns True to delete entries too, False for the project only and None
    when cancelled.
    """

    CSS = """
    DeleteProjectScreen {
        align: center middle;
    }

    #delete-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $error;
    }

    #delete-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
    }

    #delete-buttons Button {
        width: 1fr;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
        Binding("p", "project_only", "Project only"),
        Binding("e", "with_entries", "Project + entries"),
    ]

    def __init__(self, project: Project):
        super().__init__()
        self.project = project

    def compose(self) -> ComposeResult:
        with Vertical(id="delete-dialog"):
            yield Label(f'Also delete all entries of project "{self.project.project_name}"?')
            with Horizontal(id="delete-buttons"):
                yield Button("Project only (P)", id="project-only")
                yield Button("Project + entries (E)", variant="error", id="with-entries")
                yield Button("Cancel", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "project-only":
            self.dismiss(False)
        elif event.button.id == "with-entries":
            self.dismiss(True)
        else:
            self.dismiss(None)

    def action_project_only(self) -> None:
        self.dismiss(False)

    def action_with_entries(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(None)


class EditProjectScreen(ModalScreen[Project | None]):
    """Modal screen for creating a project."""

    CSS = """
    EditProjectScreen {
        align: center middle;
    }

    #project-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #project-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-group {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        margin-bottom: 0;
        color: $text-muted;
    }

    .field-group Input {
        width: 100%;
    }

    #project-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #project-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="project-dialog"):
            yield Label("New Project", id="project-title")

            with Vertical(classes="field-group"):
                yield Label("Project number", classes="field-label")
                yield Input(placeholder="1024", id="project-number")

            with Vertical(classes="field-group"):
                yield Label("Project name", classes="field-label")
                yield Input(placeholder="Name of the project", id="project-name")

            with Horizontal(id="project-buttons"):
                yield Button("Add", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#project-number", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Move to next field or save."""
        if event.input.id == "project-number":
            self.query_one("#project-name", Input).focus()
        elif event.input.id == "project-name":
            self._save_project()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save_project()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save_project(self) -> None:
        project = validate_project(
            self.query_one("#project-number", Input).value,
            self.query_one("#project-name", Input).value,
        )
        if project is None:
            self.app.notify("Project number and name are required", severity="error")
            return
        self.dismiss(project)


def validate_project(number: str, name: str) -> Project | None:
    """Build a project from form values, None if either is blank."""
    number, name = number.strip(), name.strip()
    if not number or not name:
        return None
    return Project(project_id=number, project_name=name)


class ProjectManagementScreen(ModalScreen[None]):
    """Modal screen for adding and deleting projects."""

    CSS = """
    ProjectManagementScreen {
        align: center middle;
    }

    #projects-dialog {
        width: 80;
        height: 24;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #projects-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #projects-search {
        width: 100%;
        margin-bottom: 1;
    }

    #projects-table {
        height: 1fr;
    }

    #projects-footer {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #projects-footer Button {
        width: auto;
        min-width: 10;
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("n", "new_project", "New"),
        Binding("d", "delete_project", "Delete"),
    ]

    def __init__(self, storage: Storage):
        super().__init__()
        self.storage = storage
        self.projects: list[Project] = []

    def compose(self) -> ComposeResult:
        with Vertical(id="projects-dialog"):
            yield Label("Projects", id="projects-title")
            yield Input(placeholder="Search...", id="projects-search")
            yield DataTable(id="projects-table")

            with Horizontal(id="projects-footer"):
                yield Button("New [n]", id="btn-new")
                yield Button("Delete [d]", id="btn-delete")
                yield Button("Close [Esc]", id="btn-close")

    def on_mount(self) -> None:
        """Set up the table and load data."""
        table = self.query_one("#projects-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Number", width=12)
        table.add_column("Name", width=50)
        self._load_projects()
        self.query_one("#projects-search", Input).focus()

    def _load_projects(self) -> None:
        try:
            self.projects = self.storage.get_projects()
        except StorageError:
            self.app.notify("Could not load projects", severity="error")
            return
        self._refresh_table(self.query_one("#projects-search", Input).value)

    def _refresh_table(self, search: str = "") -> None:
        table = self.query_one("#projects-table", DataTable)
        table.clear()
        for project in filter_projects(self.projects, search):
            table.add_row(project.project_id, project.project_name[:50], key=str(project.id))

    def on_input_changed(self, event: Input.Changed) -> None:
        """Filter projects as user types."""
        if event.input.id == "projects-search":
            self._refresh_table(event.value)

    def on_key(self, event) -> None:
        """Move to the table on down arrow or enter from search input."""
        if event.key in ("down", "enter"):
            search_input = self.query_one("#projects-search", Input)
            if search_input.has_focus:
                self.query_one("#projects-table", DataTable).focus()
                event.prevent_default()
                event.stop()

    def _get_selected_project(self) -> Project | None:
        table = self.query_one("#projects-table", DataTable)
        if table.row_count == 0:
            return None
        row_key = table.coordinate_to_cell_key(Coordinate(table.cursor_row, 0)).row_key
        if not row_key:
            return None
        for project in self.projects:
            if str(project.id) == str(row_key.value):
                return project
        return None

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "btn-new":
            self.action_new_project()
        elif button_id == "btn-delete":
            self.action_delete_project()
        elif button_id == "btn-close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_new_project(self) -> None:
        self.app.push_screen(EditProjectScreen(), self._on_project_created)

    def _on_project_created(self, result: Project | None) -> None:
        if not result:
            return
        try:
            self.storage.insert_project(result)
        except StorageError:
            self.app.notify("Could not save project", severity="error")
            return
        self.app.notify(f"Project {result.project_id} added")
        self._load_projects()

    def action_delete_project(self) -> None:
        project = self._get_selected_project()
        if not project:
            self.app.notify("No project selected", severity="warning")
            return
        self.app.push_screen(
            DeleteProjectScreen(project),
            lambda cascade: self._on_delete_chosen(cascade, project),
        )

    def _on_delete_chosen(self, cascade: bool | None, project: Project) -> None:
        if cascade is None or project.id is None:
            return
        try:
            if cascade:
                self.storage.delete_entries_by_project(project.project_id)
            self.storage.delete_project(project.id)
        except StorageError:
            self.app.notify("Could not delete project", severity="error")
            return
        suffix = " and its entries" if cascade else ""
        self.app.notify(f"Deleted project {project.project_id}{suffix}")
        self._load_projects()


def project_matches(project: Project, search: str) -> bool:
    """True if the project number or name contains the search text."""
    needle = search.strip().casefold()
    if not needle:
        return True
    return needle in project.project_id.casefold() or needle in project.project_name.casefold()


def filter_projects(projects: list[Project], search: str) -> list[Project]:
    return [p for p in projects if project_matches(p, search)]


class ProjectSelectScreen(ModalScreen[Project | None]):
    """Modal screen for choosing the project to log hours against."""

    CSS = """
    ProjectSelectScreen {
        align: center middle;
    }

    #select-dialog {
        width: 70;
        height: 20;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #select-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #select-search {
        width: 100%;
        margin-bottom: 1;
    }

    #select-table {
        height: 1fr;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, projects: list[Project]):
        super().__init__()
        self.projects = projects

    def compose(self) -> ComposeResult:
        with Vertical(id="select-dialog"):
            yield Label("Select Project", id="select-title")
            yield Input(placeholder="Search...", id="select-search")
            yield DataTable(id="select-table")

    def on_mount(self) -> None:
        table = self.query_one("#select-table", DataTable)
        table.cursor_type = "row"
        table.add_column("Number", width=12)
        table.add_column("Name", width=48)
        self._refresh_table()
        self.query_one("#select-search", Input).focus()

    def _refresh_table(self, search: str = "") -> None:
        table = self.query_one("#select-table", DataTable)
        table.clear()
        for index, project in enumerate(self.projects):
            if project_matches(project, search):
                table.add_row(project.project_id, project.project_name[:48], key=str(index))

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "select-search":
            self._refresh_table(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "select-search":
            self.query_one("#select-table", DataTable).focus()

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        if event.row_key:
            self.dismiss(self.projects[int(str(event.row_key.value))])

    def action_cancel(self) -> None:
        self.dismiss(None)


class AddEntryScreen(ModalScreen[Entry | None]):
    """Modal screen for logging hours against a project."""

    CSS = """
    AddEntryScreen {
        align: center middle;
    }

    #entry-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #entry-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    #entry-project {
        width: 100%;
        margin-bottom: 1;
    }

    .field-row {
        width: 100%;
        height: auto;
    }

    .field-group {
        width: 1fr;
        height: auto;
        margin: 0 1 0 0;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #entry-buttons {
        width: 100%;
        height: auto;
        margin-top: 1;
        align: center middle;
    }

    #entry-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, project: Project | None, day: date):
        super().__init__()
        self.project = project
        self.day = day

    def compose(self) -> ComposeResult:
        project_text = self.project.label if self.project else "No project selected"
        with Vertical(id="entry-dialog"):
            yield Label("Log Hours", id="entry-title")
            yield Label(project_text, id="entry-project")
            with Horizontal(classes="field-row"):
                with Vertical(classes="field-group"):
                    yield Label("Date (yyyy-MM-dd)", classes="field-label")
                    yield Input(value=format_date(self.day), id="entry-date")
                with Vertical(classes="field-group"):
                    yield Label("Hours", classes="field-label")
                    yield Input(placeholder="0.0", id="entry-hours")
            with Horizontal(id="entry-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#entry-hours", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "entry-date":
            self.query_one("#entry-hours", Input).focus()
        elif event.input.id == "entry-hours":
            self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        try:
            entry = build_entry(
                self.project,
                self.query_one("#entry-date", Input).value,
                self.query_one("#entry-hours", Input).value,
            )
        except ValueError as exc:
            self.app.notify(str(exc), severity="error")
            return
        self.dismiss(entry)


def build_entry(project: Project | None, date_text: str, hours_text: str) -> Entry:
    """Validate entry form values. Raises ValueError with a user-facing message."""
    if project is None:
        raise ValueError("Select a project before saving")
    try:
        day = parse_date(date_text)
    except ValueError as exc:
        raise ValueError("Enter the date as yyyy-MM-dd") from exc
    return Entry.for_project(project, day, parse_hours(hours_text))


class SettingsScreen(ModalScreen[EmployeeSettings | None]):
    """Modal screen for the employee details printed on reports."""

    CSS = """
    SettingsScreen {
        align: center middle;
    }

    #settings-dialog {
        width: 60;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    #settings-title {
        width: 100%;
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }

    .field-group {
        width: 100%;
        height: auto;
        margin-bottom: 1;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }

    #settings-buttons {
        width: 100%;
        height: auto;
        align: center middle;
    }

    #settings-buttons Button {
        width: auto;
        min-width: 12;
        margin: 0 2;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, settings: EmployeeSettings):
        super().__init__()
        self.settings = settings

    def compose(self) -> ComposeResult:
        with Vertical(id="settings-dialog"):
            yield Label("Employee Settings", id="settings-title")
            with Vertical(classes="field-group"):
                yield Label("Employee name", classes="field-label")
                yield Input(value=self.settings.employee_name, id="employee-name")
            with Vertical(classes="field-group"):
                yield Label("Employee number", classes="field-label")
                yield Input(value=self.settings.employee_number, id="employee-number")
            with Horizontal(id="settings-buttons"):
                yield Button("Save", variant="primary", id="save")
                yield Button("Cancel", variant="default", id="cancel")

    def on_mount(self) -> None:
        self.query_one("#employee-name", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "employee-name":
            self.query_one("#employee-number", Input).focus()
        elif event.input.id == "employee-number":
            self._save()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "cancel":
            self.dismiss(None)
        elif event.button.id == "save":
            self._save()

    def action_cancel(self) -> None:
        self.dismiss(None)

    def _save(self) -> None:
        self.dismiss(
            EmployeeSettings(
                employee_name=self.query_one("#employee-name", Input).value.strip(),
                employee_number=self.query_one("#employee-number", Input).value.strip(),
            )
        )


class MonthSelectScreen(ModalScreen[tuple[int, int] | None]):
    """Modal screen for jumping to a month."""

    CSS = """
    MonthSelectScreen {
        align: center middle;
    }

    #month-dialog {
        width: 40;
        height: auto;
        padding: 1 2;
        background: $surface;
        border: thick $primary;
    }

    .field-label {
        height: 1;
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    def __init__(self, year: int, month: int):
        super().__init__()
        self.year = year
        self.month = month

    def compose(self) -> ComposeResult:
        with Vertical(id="month-dialog"):
            yield Label("Month (yyyy-MM)", classes="field-label")
            yield Input(value=month_label(self.year, self.month), id="month-input")

    def on_mount(self) -> None:
        self.query_one("#month-input", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        try:
            self.dismiss(parse_month_label(event.value))
        except ValueError as exc:
            self.app.notify(str(exc), severity="error")

    def action_cancel(self) -> None:
        self.dismiss(None)
