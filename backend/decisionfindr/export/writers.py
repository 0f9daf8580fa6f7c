"""CSV and XLSX writers for prospect exports."""

import csv
import io
from datetime import date
from enum import Enum
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

COLUMNS = ["Name", "Job Title", "Company", "Match", "Email", "Phone", "LinkedIn"]
SHEET_TITLE = "Prospects"
_HEADER_FONT = Font(bold=True)


class ExportFormat(str, Enum):
    """Supported download formats."""
    CSV = "csv"
    XLSX = "xlsx"

    @property
    def media_type(self) -> str:
        if self is ExportFormat.XLSX:
            return "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        return "text/csv; charset=utf-8"


class ProspectRow(BaseModel):
    """A prospect as handed to the writers.

    Accepts either ``title`` or ``jobTitle`` and either ``matchPct`` or
    ``confidence``.
    """
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    name: str = ""
    title: str = ""
    job_title: str = Field(default="", validation_alias=AliasChoices("jobTitle", "job_title"))
    company: str = ""
    match_pct: int | float | None = Field(
        default=None,
        validation_alias=AliasChoices("matchPct", "match_pct"),
    )
    confidence: int | float | None = None
    email: str = ""
    phone: str = ""
    linkedin_url: str = Field(
        default="",
        validation_alias=AliasChoices("linkedInUrl", "linkedinUrl", "linkedin_url"),
    )

    @field_validator(
        "id", "name", "title", "job_title", "company", "email", "phone", "linkedin_url",
        mode="before",
    )
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @property
    def display_title(self) -> str:
        return self.title or self.job_title

    @property
    def match(self) -> str:
        """Match percentage as ``"<n>%"``, empty when unknown or zero."""
        pct = self.match_pct or self.confidence
        if not pct:
            return ""
        if isinstance(pct, float) and pct.is_integer():
            pct = int(pct)
        return f"{pct}%"

    def to_cells(self) -> list[str]:
        return [
            self.name,
            self.display_title,
            self.company,
            self.match,
            self.email,
            self.phone,
            self.linkedin_url,
        ]


def rows_to_csv(rows: list[ProspectRow]) -> bytes:
    """Render rows as UTF-8 CSV with a header line."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(COLUMNS)
    for row in rows:
        writer.writerow(row.to_cells())
    return buf.getvalue().encode("utf-8")


def rows_to_xlsx(rows: list[ProspectRow]) -> bytes:
    """Render rows as a single-sheet workbook."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    ws.append(COLUMNS)
    for cell in ws[1]:
        cell.font = _HEADER_FONT

    for row in rows:
        ws.append(row.to_cells())

    for col_idx in range(1, len(COLUMNS) + 1):
        ws.column_dimensions[ws.cell(row=1, column=col_idx).column_letter].width = 24

    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


def export_filename(export_format: ExportFormat, today: date | None = None) -> str:
    return f"prospects_{(today or date.today()).isoformat()}.{export_format.value}"


def render(rows: list[ProspectRow], export_format: ExportFormat) -> bytes:
    if export_format is ExportFormat.XLSX:
        return rows_to_xlsx(rows)
    return rows_to_csv(rows)
