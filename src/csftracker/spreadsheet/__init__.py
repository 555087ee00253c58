"""
Spreadsheet import and export.

Example:
    from csftracker.spreadsheet import export_controls, import_controls

    export_controls(store.get_all(), "controls.xlsx")
    store.insert_many(import_controls("controls.csv"))
"""

from csftracker.spreadsheet.workbook import (
    COLUMNS,
    REQUIRED_COLUMNS,
    SHEET_NAME,
    SpreadsheetError,
    controls_to_rows,
    export_controls,
    import_controls,
    read_rows,
    rows_to_controls,
)

__all__ = [
    "COLUMNS",
    "REQUIRED_COLUMNS",
    "SHEET_NAME",
    "SpreadsheetError",
    "controls_to_rows",
    "export_controls",
    "import_controls",
    "read_rows",
    "rows_to_controls",
]
