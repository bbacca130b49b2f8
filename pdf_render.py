"""Render a monthly report as a printable PDF."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from fpdf import FPDF
from fpdf.enums import XPos, YPos
from fpdf.errors import FPDFException

from models import Report, ReportRow
from utils import PRINT_DATE_FORMAT, format_percentage

logger = logging.getLogger(__name__)

FONT_FAMILY = "ReportFont"
FALLBACK_FAMILY = "helvetica"
DIRECTION = "rtl"

HIGHLIGHT_FILL = (102, 187, 106)
PLAIN_FILL = (255, 255, 255)

# Column widths in mm: percentage, project number, project name (rest of page)
PCT_WIDTH = 25
PID_WIDTH = 39
ROW_HEIGHT = 8
SIGNATURE_WIDTH = 53

# Substitutes for the fallback typeface, which only covers latin-1
_LATIN1_SUBSTITUTES = str.maketrans({"—": "-", "–": "-", "״": '"', "’": "'"})


def get_font_path() -> Path | None:
    """Font with the glyphs of the report language, if one is installed."""
    if env_path := os.environ.get("PROJECT_HOURS_FONT"):
        return Path(env_path)
    default = Path(__file__).parent / "fonts" / "report.ttf"
    return default if default.exists() else None


def get_bold_font_path() -> Path | None:
    if env_path := os.environ.get("PROJECT_HOURS_BOLD_FONT"):
        return Path(env_path)
    default = Path(__file__).parent / "fonts" / "report-bold.ttf"
    return default if default.exists() else None


@dataclass(frozen=True)
class ReportLabels:
    title: str = "Monthly Report — {month}"
    print_date: str = "Print date: {date}"
    employee_name: str = "Employee name: {name}"
    employee_number: str = "Employee number: {number}"
    percentage: str = "Percentage"
    project_number: str = "Project No."
    project_name: str = "Project Name"
    total: str = "Total"
    signature: str = "Signature"
    missing: str = "-"


@dataclass(frozen=True)
class _Typeface:
    family: str
    has_bold: bool
    unicode: bool


_FALLBACK = _Typeface(family=FALLBACK_FAMILY, has_bold=True, unicode=False)


def to_latin1(text: str) -> str:
    """Make text printable with the built-in typeface."""
    text = text.translate(_LATIN1_SUBSTITUTES)
    return text.encode("latin-1", errors="replace").decode("latin-1")


class PdfRenderer:
    """Lays out a Report on an A4 page, right to left."""

    def __init__(
        self,
        font_path: Path | None = None,
        bold_font_path: Path | None = None,
        labels: ReportLabels | None = None,
    ):
        self.font_path = font_path
        self.bold_font_path = bold_font_path
        self.labels = labels or ReportLabels()
        self.direction = DIRECTION

    @classmethod
    def from_env(cls) -> PdfRenderer:
        return cls(font_path=get_font_path(), bold_font_path=get_bold_font_path())

    def render(self, report: Report) -> bytes:
        pdf = FPDF(orientation="P", unit="mm", format="A4")
        pdf.set_margins(15, 15, 15)
        pdf.set_auto_page_break(auto=True, margin=15)
        pdf.add_page()
        face = self._load_typeface(pdf)

        self._draw_header(pdf, face, report)
        self._draw_title(pdf, face, report)
        self._draw_table(pdf, face, report)
        self._draw_signature(pdf, face)
        return bytes(pdf.output())

    def _load_typeface(self, pdf: FPDF) -> _Typeface:
        """Register the report font, or fall back to the built-in one."""
        if self.font_path is None:
            logger.debug("No report font configured, using %s", FALLBACK_FAMILY)
            return _FALLBACK
        try:
            pdf.add_font(FONT_FAMILY, "", str(self.font_path))
            has_bold = False
            if self.bold_font_path is not None:
                pdf.add_font(FONT_FAMILY, "B", str(self.bold_font_path))
                has_bold = True
        except Exception as exc:
            logger.warning("Cannot load font %s (%s), using %s", self.font_path, exc, FALLBACK_FAMILY)
            return _FALLBACK

        pdf.set_font(FONT_FAMILY, size=10)
        try:
            pdf.set_text_shaping(use_shaping_engine=True, direction=self.direction)
        except (FPDFException, ImportError) as exc:
            logger.warning("Right-to-left text shaping unavailable: %s", exc)
        return _Typeface(family=FONT_FAMILY, has_bold=has_bold, unicode=True)

    def _set_font(self, pdf: FPDF, face: _Typeface, size: float, bold: bool = False) -> None:
        style = "B" if bold and face.has_bold else ""
        pdf.set_font(face.family, style=style, size=size)

    def _text(self, face: _Typeface, text: str) -> str:
        return text if face.unicode else to_latin1(text)

    def _draw_header(self, pdf: FPDF, face: _Typeface, report: Report) -> None:
        meta = report.metadata
        labels = self.labels
        half = pdf.epw / 2
        self._set_font(pdf, face, 10)

        top = pdf.get_y()
        print_date = labels.print_date.format(date=meta.print_date.strftime(PRINT_DATE_FORMAT))
        pdf.cell(half, 5, self._text(face, print_date), align="L")

        name = labels.employee_name.format(name=meta.employee_name or labels.missing)
        number = labels.employee_number.format(number=meta.employee_number or labels.missing)
        pdf.set_xy(pdf.l_margin + half, top)
        pdf.cell(half, 5, self._text(face, name), align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_x(pdf.l_margin + half)
        pdf.cell(half, 5, self._text(face, number), align="R", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(4)

    def _draw_title(self, pdf: FPDF, face: _Typeface, report: Report) -> None:
        self._set_font(pdf, face, 18, bold=True)
        title = self.labels.title.format(month=report.metadata.month_label)
        pdf.cell(0, 10, self._text(face, title), align="C", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.ln(4)

    def _columns(self, pdf: FPDF) -> list[float]:
        return [PCT_WIDTH, PID_WIDTH, pdf.epw - PCT_WIDTH - PID_WIDTH]

    def _draw_row(
        self,
        pdf: FPDF,
        face: _Typeface,
        cells: list[tuple[str, str, bool]],
        bold: bool = False,
    ) -> None:
        """Draw one table row from (text, align, highlighted) cells in reading order.

        Reading order runs right to left, so the first cell is drawn last.
        """
        self._set_font(pdf, face, 10, bold=bold)
        widths = self._columns(pdf)
        for (text, align, highlighted), width in reversed(list(zip(cells, widths))):
            pdf.set_fill_color(*(HIGHLIGHT_FILL if highlighted else PLAIN_FILL))
            pdf.cell(width, ROW_HEIGHT, self._text(face, text), border=1, align=align, fill=True)
        pdf.ln(ROW_HEIGHT)

    def _draw_table(self, pdf: FPDF, face: _Typeface, report: Report) -> None:
        labels = self.labels
        self._draw_row(
            pdf,
            face,
            [
                (labels.percentage, "C", False),
                (labels.project_number, "C", False),
                (labels.project_name, "C", False),
            ],
            bold=True,
        )
        for row in report.rows:
            self._draw_row(pdf, face, self._row_cells(row), bold=row.is_total)

    def _row_cells(self, row: ReportRow) -> list[tuple[str, str, bool]]:
        if row.is_total:
            return [
                (f"{int(row.percentage)}%", "C", False),
                (self.labels.total, "C", False),
                ("", "C", False),
            ]
        return [
            (format_percentage(row.percentage), "C", row.highlighted),
            (row.project_id, "C", False),
            (row.project_name, "R", False),
        ]

    def _draw_signature(self, pdf: FPDF, face: _Typeface) -> None:
        pdf.ln(15)
        x, y = pdf.l_margin, pdf.get_y()
        pdf.set_draw_color(0, 0, 0)
        pdf.line(x, y, x + SIGNATURE_WIDTH, y)
        pdf.ln(2)
        self._set_font(pdf, face, 12)
        pdf.cell(SIGNATURE_WIDTH, 6, self._text(face, self.labels.signature), align="L")
