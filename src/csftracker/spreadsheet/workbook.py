"""
Spreadsheet import and export of controls.

Controls are exchanged as a table with a fixed column set, one control per
row. Two formats are supported, chosen by file suffix:

    .xlsx   Excel workbook (openpyxl), sheet "NIST Controls"
    .csv    Comma-separated values, UTF-8

Import is all-or-nothing: every row is validated first and any invalid row
aborts the import with a SpreadsheetError listing all bad rows. Blank rows
are skipped. Exporting and importing again reproduces every field except
the database timestamps.

XML parsers turn a carriage return into a line feed, so workbook text is
stored with the OOXML _xHHHH_ escapes: a carriage return is written as
_x000D_, and an underscore that would otherwise read back as an escape
is written as _x005F_. Reading decodes every _xHHHH_ escape, including
those written by Excel.
"""

from __future__ import annotations

import csv
import logging
import re
import zipfile
from collections.abc import Iterable
from datetime import date, datetime
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils.escape import unescape
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException

from csftracker.storage.models import Control, ControlValidationError

logger = logging.getLogger(__name__)

SHEET_NAME = "NIST Controls"

# Column header -> Control attribute, in export order
COLUMNS: dict[str, str] = {
    "Owner": "owner",
    "NIST Function": "nist_function",
    "NIST Category & ID": "nist_category_id",
    "NIST Sub-Category & ID": "nist_subcategory_id",
    "Assessment Priority": "assessment_priority",
    "Control Description": "control_description",
    "Cybersecurity Domain": "cybersecurity_domain",
    "Meets Criteria": "meets_criteria",
    "Identified Risks": "identified_risks",
    "Risk Details": "risk_details",
    "Remediation Status": "remediation_status",
    "Last Updated": "last_updated",
}

REQUIRED_COLUMNS = ("NIST Function", "NIST Sub-Category & ID", "Meets Criteria")

SUPPORTED_SUFFIXES = (".xlsx", ".csv")

# Underscore that would read back as the start of an _xHHHH_ escape
_ESCAPE_PREFIX_RE = re.compile(r"_(?=x[0-9A-Fa-f]{4})")


class SpreadsheetError(Exception):
    """Raised when a spreadsheet cannot be read, written or mapped to controls."""

    pass


def _suffix(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise SpreadsheetError(
            f"Unsupported file type {path.suffix or '(none)'!r}. "
            f"Must be one of: {', '.join(SUPPORTED_SUFFIXES)}"
        )
    return suffix


def _cell_text(value: Any) -> str:
    """Convert a cell value to the text stored on a control."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def _escape_text(value: str) -> str:
    """Encode workbook text so it reads back unchanged."""
    value = _ESCAPE_PREFIX_RE.sub("_x005F_", value)
    return value.replace("\r", "_x000D_")


# -------------------------------------------------------------------------
# Export
# -------------------------------------------------------------------------


def controls_to_rows(controls: Iterable[Control]) -> list[list[str]]:
    """
    Convert controls to table rows, header row first.

    Args:
        controls: Controls to convert.

    Returns:
        Rows of cell text in COLUMNS order.
    """
    rows = [list(COLUMNS)]
    for control in controls:
        data = control.to_dict()
        by_attr = {
            "owner": data["owner"],
            "nist_function": data["nistFunction"],
            "nist_category_id": data["nistCategoryId"],
            "nist_subcategory_id": data["nistSubCategoryId"],
            "assessment_priority": data["assessmentPriority"],
            "control_description": data["controlDescription"],
            "cybersecurity_domain": data["cybersecurityDomain"],
            "meets_criteria": data["meetsCriteria"],
            "identified_risks": data["identifiedRisks"],
            "risk_details": data["riskDetails"],
            "remediation_status": data["remediationStatus"],
            "last_updated": data["lastUpdated"] or "",
        }
        rows.append([by_attr[attr] for attr in COLUMNS.values()])
    return rows


def _write_xlsx(rows: list[list[str]], path: Path) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = SHEET_NAME

    for row_index, row in enumerate(rows, start=1):
        for col_index, value in enumerate(row, start=1):
            if isinstance(value, str):
                value = _escape_text(value)
            cell = sheet.cell(row=row_index, column=col_index, value=value)
            # Keep text like "=SUM(A1)" from being stored as a formula
            if isinstance(value, str) and value.startswith("="):
                cell.data_type = "s"
            if row_index == 1:
                cell.font = Font(bold=True)

    sheet.freeze_panes = "A2"
    workbook.save(path)


def _write_csv(rows: list[list[str]], path: Path) -> None:
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(rows)


def export_controls(controls: Iterable[Control], path: Path | str) -> int:
    """
    Write controls to a spreadsheet.

    Args:
        controls: Controls to export.
        path: Destination file; .xlsx or .csv.

    Returns:
        Number of controls written.

    Raises:
        SpreadsheetError: If the file type is unsupported or the file
            cannot be written.
    """
    path = Path(path)
    suffix = _suffix(path)
    rows = controls_to_rows(controls)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == ".xlsx":
            _write_xlsx(rows, path)
        else:
            _write_csv(rows, path)
    except (OSError, IllegalCharacterError) as e:
        raise SpreadsheetError(f"Cannot write {path}: {e}") from e

    count = len(rows) - 1
    logger.info(f"Exported {count} controls to {path}")
    return count


# -------------------------------------------------------------------------
# Import
# -------------------------------------------------------------------------


def _read_xlsx(path: Path) -> list[list[Any]]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, ValueError, OSError) as e:
        raise SpreadsheetError(f"Cannot read workbook {path}: {e}") from e

    try:
        if SHEET_NAME in workbook.sheetnames:
            sheet = workbook[SHEET_NAME]
        else:
            sheet = workbook[workbook.sheetnames[0]]
        return [
            [unescape(v) if isinstance(v, str) else v for v in row]
            for row in sheet.iter_rows(values_only=True)
        ]
    finally:
        workbook.close()


def _read_csv(path: Path) -> list[list[Any]]:
    try:
        with open(path, newline="", encoding="utf-8-sig") as f:
            return [list(row) for row in csv.reader(f)]
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise SpreadsheetError(f"Cannot read CSV file {path}: {e}") from e


def read_rows(path: Path | str) -> list[dict[str, str]]:
    """
    Read a spreadsheet into one dict per row, keyed by column header.

    Args:
        path: Source file; .xlsx or .csv.

    Returns:
        Row dicts with cell text. Blank rows are dropped; each dict also
        carries its 1-based sheet row number under "__row__".

    Raises:
        SpreadsheetError: If the file cannot be read or required columns
            are missing.
    """
    path = Path(path)
    suffix = _suffix(path)
    if not path.exists():
        raise SpreadsheetError(f"File not found: {path}")

    table = _read_xlsx(path) if suffix == ".xlsx" else _read_csv(path)
    if not table:
        raise SpreadsheetError(f"{path} is empty")

    headers = [_cell_text(h).strip() for h in table[0]]
    missing = [c for c in REQUIRED_COLUMNS if c not in headers]
    if missing:
        raise SpreadsheetError(f"Missing required columns: {', '.join(missing)}")

    unknown = [h for h in headers if h and h not in COLUMNS]
    if unknown:
        logger.debug(f"Ignoring unknown columns: {', '.join(unknown)}")

    rows: list[dict[str, str]] = []
    for number, values in enumerate(table[1:], start=2):
        cells = [_cell_text(v) for v in values]
        if not any(cell.strip() for cell in cells):
            continue
        row = {
            header: cells[i] if i < len(cells) else ""
            for i, header in enumerate(headers)
            if header in COLUMNS
        }
        row["__row__"] = str(number)
        rows.append(row)
    return rows


def rows_to_controls(rows: Iterable[dict[str, str]]) -> list[Control]:
    """
    Map spreadsheet rows to controls.

    Missing optional columns take the Control defaults (priority Medium,
    status Not Started, empty text).

    Args:
        rows: Row dicts keyed by column header.

    Returns:
        Controls in row order.

    Raises:
        SpreadsheetError: Listing every row that could not be mapped.
    """
    controls: list[Control] = []
    errors: list[str] = []

    for index, row in enumerate(rows, start=2):
        number = row.get("__row__", str(index))
        empty = [c for c in REQUIRED_COLUMNS if not row.get(c, "").strip()]
        if empty:
            errors.append(f"row {number}: missing {', '.join(empty)}")
            continue

        data = {attr: row[header] for header, attr in COLUMNS.items() if header in row}
        try:
            controls.append(Control.from_dict(data))
        except ControlValidationError as e:
            errors.append(f"row {number}: {e}")

    if errors:
        raise SpreadsheetError(
            f"{len(errors)} invalid rows, nothing imported:\n  " + "\n  ".join(errors)
        )
    return controls


def import_controls(path: Path | str) -> list[Control]:
    """
    Read controls from a spreadsheet.

    Args:
        path: Source file; .xlsx or .csv.

    Returns:
        Controls without ids, ready for ControlStore.insert_many().

    Raises:
        SpreadsheetError: If the file cannot be read or any row is invalid.
    """
    controls = rows_to_controls(read_rows(path))
    logger.info(f"Read {len(controls)} controls from {path}")
    return controls
