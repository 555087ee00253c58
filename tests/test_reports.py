"""
Tests for the JSON exporter.

Uses Python's unittest module.
"""

from __future__ import annotations

import gzip
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from csftracker.reports import (
    COMPLIANCE_EXPORT_SCHEMA,
    DASHBOARD_EXPORT_SCHEMA,
    ExportResult,
    JsonExporter,
)
from csftracker.storage.models import Control, MeetsCriteria, Priority, RemediationStatus


def sample_controls() -> list[Control]:
    """Three controls across two owners."""
    return [
        Control(
            id=1,
            owner="Acme Corporation",
            nist_function="Protect",
            nist_category_id="PR.DS - Data Security",
            nist_subcategory_id="PR.DS-01",
            assessment_priority=Priority.HIGH,
            cybersecurity_domain="Data Protection",
            meets_criteria=MeetsCriteria.NO,
            remediation_status=RemediationStatus.NOT_STARTED,
        ),
        Control(
            id=2,
            owner="Acme Corporation",
            nist_function="Detect",
            nist_category_id="DE.CM - Continuous Monitoring",
            nist_subcategory_id="DE.CM-01",
            cybersecurity_domain="Security Operations",
            meets_criteria=MeetsCriteria.YES,
            remediation_status=RemediationStatus.COMPLETED,
        ),
        Control(
            id=3,
            owner="Contoso Corporation",
            nist_function="Protect",
            nist_category_id="PR.DS - Data Security",
            nist_subcategory_id="PR.DS-02",
            cybersecurity_domain="Data Protection",
            meets_criteria=MeetsCriteria.YES,
            remediation_status=RemediationStatus.COMPLETED,
        ),
    ]


class TestJsonExporter(unittest.TestCase):
    """Tests for JsonExporter."""

    def setUp(self) -> None:
        """Create temporary directory and exporter."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.exporter = JsonExporter(version="0.1.0", organization="Acme Holdings")

    def tearDown(self) -> None:
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_export_dashboard(self) -> None:
        """Test dashboard export structure."""
        result = self.exporter.export_dashboard(sample_controls(), self.temp_dir)

        self.assertTrue(result.success)
        self.assertEqual(result.record_count, 3)
        self.assertFalse(result.compressed)
        self.assertTrue(result.path.name.endswith("_dashboard_export.json"))
        self.assertEqual(result.size_bytes, result.path.stat().st_size)

        with open(result.path) as f:
            data = json.load(f)

        for key in DASHBOARD_EXPORT_SCHEMA["required"]:
            self.assertIn(key, data)
        self.assertEqual(data["metadata"]["export_type"], "dashboard")
        self.assertEqual(data["metadata"]["organization"], "Acme Holdings")
        self.assertEqual(data["metadata"]["format_version"], "1.0")
        self.assertEqual(data["statistics"]["total_controls"], 3)
        self.assertAlmostEqual(data["statistics"]["compliance_rate"], 66.67)
        self.assertEqual(data["controls"][0]["nistSubCategoryId"], "PR.DS-01")

    def test_export_dashboard_for_owner(self) -> None:
        """Test owner filter limits controls and statistics."""
        data = self.exporter.build_dashboard(sample_controls(), owner="Contoso Corporation")

        self.assertEqual(data["metadata"]["owner"], "Contoso Corporation")
        self.assertEqual(len(data["controls"]), 1)
        self.assertEqual(data["statistics"]["compliance_rate"], 100.0)

    def test_export_compressed(self) -> None:
        """Test gzip export can be read back."""
        result = self.exporter.export_dashboard(sample_controls(), self.temp_dir, compress=True)

        self.assertTrue(result.success)
        self.assertTrue(result.compressed)
        self.assertEqual(result.path.suffixes[-2:], [".json", ".gz"])

        with gzip.open(result.path, "rt", encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(len(data["controls"]), 3)

    def test_custom_filename(self) -> None:
        """Test an explicit filename is used as given."""
        result = self.exporter.export_dashboard(
            sample_controls(), self.temp_dir / "nested", filename="dashboard.json"
        )

        self.assertEqual(result.path, self.temp_dir / "nested" / "dashboard.json")
        self.assertTrue(result.path.exists())
        self.assertEqual([p.name for p in result.path.parent.iterdir()], ["dashboard.json"])

    def test_export_compliance(self) -> None:
        """Test compliance report export."""
        result = self.exporter.export_compliance(sample_controls(), self.temp_dir)

        self.assertTrue(result.success)
        with open(result.path) as f:
            data = json.load(f)

        for key in COMPLIANCE_EXPORT_SCHEMA["required"]:
            self.assertIn(key, data)
        self.assertEqual([g["name"] for g in data["by_function"]], ["PR", "DE"])
        self.assertEqual(data["by_function"][0]["compliance_rate"], 50)
        self.assertEqual(data["by_domain"][0]["name"], "Data Protection")
        self.assertEqual(result.record_count, 2 + 2 + 2)
        self.assertIsNone(data["metadata"]["owner"])

    def test_export_compliance_for_owner(self) -> None:
        """Test owner filter limits the report and is recorded in metadata."""
        result = self.exporter.export_compliance(
            sample_controls(), self.temp_dir, owner="Acme Corporation"
        )

        self.assertTrue(result.success)
        with open(result.path) as f:
            data = json.load(f)

        self.assertEqual(data["metadata"]["owner"], "Acme Corporation")
        self.assertEqual(
            [(g["name"], g["total"]) for g in data["by_function"]],
            [("PR", 1), ("DE", 1)],
        )
        self.assertEqual(data["by_function"][0]["compliance_rate"], 0)

    def test_export_empty(self) -> None:
        """Test exporting no controls succeeds with zero stats."""
        result = self.exporter.export_dashboard([], self.temp_dir)

        self.assertTrue(result.success)
        self.assertEqual(result.record_count, 0)

    def test_failure_returns_result(self) -> None:
        """Test a write failure is reported instead of raised."""
        blocker = self.temp_dir / "not_a_dir"
        blocker.write_text("file")

        with self.assertLogs("csftracker.reports.json_exporter", level="ERROR"):
            result = self.exporter.export_dashboard(sample_controls(), blocker)

        self.assertIsInstance(result, ExportResult)
        self.assertFalse(result.success)
        self.assertIsNone(result.path)
        self.assertIsNotNone(result.error)
        self.assertFalse(result.to_dict()["success"])

    def test_get_schema(self) -> None:
        """Test schema lookup."""
        self.assertEqual(self.exporter.get_schema("dashboard"), DASHBOARD_EXPORT_SCHEMA)
        self.assertEqual(self.exporter.get_schema("unknown"), {})


if __name__ == "__main__":
    unittest.main()
