"""
JSON export of the control dashboard.

This module exports dashboard statistics, compliance reports and the
controls themselves in machine-readable JSON. Every export carries a
metadata block for traceability.

Export Types:
    - dashboard: Metadata, dashboard statistics and every control
    - compliance: Compliance by function, domain and category

Files are written to a temporary file in the target directory and then
renamed into place, so a failed export never leaves a partial file.
"""

from __future__ import annotations

import gzip
import json
import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from csftracker.analysis.aggregator import (
    compliance_by_category,
    compliance_by_domain,
    compliance_by_function,
    compute_dashboard_stats,
)
from csftracker.storage.models import Control

logger = logging.getLogger(__name__)


DASHBOARD_EXPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "csftracker Dashboard Export",
    "type": "object",
    "required": ["metadata", "statistics", "controls"],
    "properties": {
        "metadata": {
            "type": "object",
            "required": ["export_type", "timestamp", "version"],
        },
        "statistics": {"type": "object"},
        "controls": {"type": "array"},
    },
}

COMPLIANCE_EXPORT_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "csftracker Compliance Report Export",
    "type": "object",
    "required": ["metadata", "by_function", "by_domain", "by_category"],
    "properties": {
        "metadata": {"type": "object"},
        "by_function": {"type": "array"},
        "by_domain": {"type": "array"},
        "by_category": {"type": "array"},
    },
}


@dataclass
class ExportMetadata:
    """
    Metadata included in all exports.

    Attributes:
        export_type: Type of export (dashboard, compliance).
        timestamp: When the export was created.
        version: csftracker version that created the export.
        organization: Organization name (from config).
        owner: Owner the export is limited to, if any.
    """

    export_type: str
    timestamp: datetime
    version: str
    organization: str | None = None
    owner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "export_type": self.export_type,
            "timestamp": self.timestamp.isoformat(),
            "version": self.version,
            "organization": self.organization,
            "owner": self.owner,
            "format_version": "1.0",
        }


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        success: Whether the export completed successfully.
        path: Path to the exported file.
        size_bytes: Size of the exported file in bytes.
        record_count: Number of records exported.
        export_type: Type of export performed.
        compressed: Whether the file is compressed.
        error: Error message if export failed.
    """

    success: bool
    path: Path | None
    size_bytes: int
    record_count: int
    export_type: str
    compressed: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "path": str(self.path) if self.path else None,
            "size_bytes": self.size_bytes,
            "record_count": self.record_count,
            "export_type": self.export_type,
            "compressed": self.compressed,
            "error": self.error,
        }


class JsonExporter:
    """
    Exporter for JSON format control data.

    Example:
        exporter = JsonExporter(version="0.1.0", organization="Acme Corp")

        # Dashboard statistics plus every control
        result = exporter.export_dashboard(controls, Path("./exports"))

        # Compliance report, gzip compressed
        result = exporter.export_compliance(controls, Path("./exports"), compress=True)

    Attributes:
        version: csftracker version string.
        organization: Organization name for metadata.
    """

    def __init__(
        self,
        version: str = "0.1.0",
        organization: str | None = None,
    ) -> None:
        self.version = version
        self.organization = organization or None

    def build_dashboard(
        self, controls: Iterable[Control], owner: str | None = None
    ) -> dict[str, Any]:
        """
        Build the dashboard export document without writing it.

        Args:
            controls: Controls to export.
            owner: Limit the export to this owner's controls.

        Returns:
            Dictionary with metadata, statistics and controls.
        """
        items = [c for c in controls if owner is None or c.owner == owner]
        metadata = ExportMetadata(
            export_type="dashboard",
            timestamp=datetime.now(UTC),
            version=self.version,
            organization=self.organization,
            owner=owner,
        )
        return {
            "metadata": metadata.to_dict(),
            "statistics": compute_dashboard_stats(items).to_dict(),
            "controls": [c.to_dict() for c in items],
        }

    def export_dashboard(
        self,
        controls: Iterable[Control],
        output_dir: Path,
        compress: bool = False,
        owner: str | None = None,
        filename: str | None = None,
    ) -> ExportResult:
        """
        Export dashboard statistics and controls to JSON.

        Args:
            controls: Controls to export.
            output_dir: Directory to write export file.
            compress: Whether to gzip compress the output.
            owner: Limit the export to this owner's controls.
            filename: File name to use instead of a timestamped one.

        Returns:
            ExportResult with export details.
        """
        try:
            export_data = self.build_dashboard(controls, owner=owner)
            return self._export(
                "dashboard",
                export_data,
                len(export_data["controls"]),
                output_dir,
                compress,
                filename,
            )
        except Exception as e:
            logger.error("Failed to export dashboard: %s", e)
            return self._failed("dashboard", compress, e)

    def export_compliance(
        self,
        controls: Iterable[Control],
        output_dir: Path,
        compress: bool = False,
        owner: str | None = None,
        filename: str | None = None,
    ) -> ExportResult:
        """
        Export the compliance report to JSON.

        Args:
            controls: Controls to report on.
            output_dir: Directory to write export file.
            compress: Whether to gzip compress the output.
            owner: Limit the report to this owner's controls.
            filename: File name to use instead of a timestamped one.

        Returns:
            ExportResult with export details.
        """
        try:
            items = [c for c in controls if owner is None or c.owner == owner]
            metadata = ExportMetadata(
                export_type="compliance",
                timestamp=datetime.now(UTC),
                version=self.version,
                organization=self.organization,
                owner=owner,
            )
            by_function = compliance_by_function(items)
            by_domain = compliance_by_domain(items)
            by_category = compliance_by_category(items)
            export_data = {
                "metadata": metadata.to_dict(),
                "by_function": [g.to_dict() for g in by_function],
                "by_domain": [g.to_dict() for g in by_domain],
                "by_category": [g.to_dict() for g in by_category],
            }
            record_count = len(by_function) + len(by_domain) + len(by_category)
            return self._export(
                "compliance", export_data, record_count, output_dir, compress, filename
            )
        except Exception as e:
            logger.error("Failed to export compliance report: %s", e)
            return self._failed("compliance", compress, e)

    def _export(
        self,
        export_type: str,
        export_data: dict[str, Any],
        record_count: int,
        output_dir: Path,
        compress: bool,
        filename: str | None,
    ) -> ExportResult:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        filepath = output_dir / (filename or self._generate_filename(export_type, compress))
        size_bytes = self._write_json(export_data, filepath, compress)

        logger.info("Exported %s data to %s (%d bytes)", export_type, filepath, size_bytes)

        return ExportResult(
            success=True,
            path=filepath,
            size_bytes=size_bytes,
            record_count=record_count,
            export_type=export_type,
            compressed=compress,
        )

    @staticmethod
    def _failed(export_type: str, compress: bool, error: Exception) -> ExportResult:
        return ExportResult(
            success=False,
            path=None,
            size_bytes=0,
            record_count=0,
            export_type=export_type,
            compressed=compress,
            error=str(error),
        )

    def _generate_filename(self, export_type: str, compress: bool) -> str:
        """Generate filename with timestamp."""
        timestamp = datetime.now(UTC).strftime("%Y%m%d_%H%M%S")
        extension = ".json.gz" if compress else ".json"
        return f"{timestamp}_{export_type}_export{extension}"

    def _write_json(
        self,
        data: dict[str, Any],
        filepath: Path,
        compress: bool,
    ) -> int:
        """
        Write JSON data to file atomically.

        Args:
            data: Data to write.
            filepath: Path to output file.
            compress: Whether to gzip compress.

        Returns:
            Size of written file in bytes.
        """
        json_content = json.dumps(data, indent=2, default=str)

        fd, temp_path = tempfile.mkstemp(dir=filepath.parent, suffix=".tmp")
        try:
            if compress:
                with os.fdopen(fd, "wb") as raw, gzip.open(raw, "wt", encoding="utf-8") as f:
                    f.write(json_content)
            else:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(json_content)
            os.replace(temp_path, filepath)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

        return filepath.stat().st_size

    def get_schema(self, export_type: str) -> dict[str, Any]:
        """
        Get JSON schema for an export type.

        Args:
            export_type: Type of export (dashboard, compliance).

        Returns:
            JSON schema dictionary, empty if the type is unknown.
        """
        schemas = {
            "dashboard": DASHBOARD_EXPORT_SCHEMA,
            "compliance": COMPLIANCE_EXPORT_SCHEMA,
        }
        return schemas.get(export_type, {})
