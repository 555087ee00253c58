"""
Report exports for csftracker.

JSON Export:
    JsonExporter writes the dashboard statistics with every control, or the
    compliance report by function, domain and category, as JSON (optionally
    gzip compressed). Each export carries metadata for traceability.

Example:
    from csftracker.reports import JsonExporter

    exporter = JsonExporter(version="0.1.0", organization="Acme Corp")
    result = exporter.export_dashboard(controls, Path("./exports"))
    if not result.success:
        print(result.error)
"""

from csftracker.reports.json_exporter import (
    COMPLIANCE_EXPORT_SCHEMA,
    DASHBOARD_EXPORT_SCHEMA,
    ExportMetadata,
    ExportResult,
    JsonExporter,
)

__all__ = [
    "JsonExporter",
    "ExportMetadata",
    "ExportResult",
    "DASHBOARD_EXPORT_SCHEMA",
    "COMPLIANCE_EXPORT_SCHEMA",
]
