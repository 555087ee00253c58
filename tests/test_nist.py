"""
Tests for the NIST CSF 2.0 function table.

Uses Python's unittest module.
"""

from __future__ import annotations

import unittest

from csftracker.nist import (
    FUNCTION_CODES,
    FUNCTION_DISPLAY_NAMES,
    function_code,
    get_all_categories,
    get_all_functions,
    get_category,
    get_function,
)
from csftracker.nist import functions as functions_module


class TestFunctionTable(unittest.TestCase):
    """Tests for the function and category definitions."""

    def test_six_functions_in_framework_order(self) -> None:
        """Test functions are GV, ID, PR, DE, RS, RC."""
        self.assertEqual(FUNCTION_CODES, ("GV", "ID", "PR", "DE", "RS", "RC"))
        self.assertEqual(len(get_all_functions()), 6)
        self.assertEqual(FUNCTION_DISPLAY_NAMES["RC"], "Recover")

    def test_twenty_two_categories(self) -> None:
        """Test CSF 2.0 has 22 categories."""
        categories = get_all_categories()
        self.assertEqual(len(categories), 22)
        self.assertEqual(len({c.id for c in categories}), 22)
        for category in categories:
            self.assertTrue(category.id.startswith(category.function_id + "."))

    def test_category_lookup(self) -> None:
        """Test category lookup and label."""
        category = get_category("PR.DS")
        self.assertIsNotNone(category)
        self.assertEqual(category.label, "PR.DS - Data Security")
        self.assertIsNone(get_category("PR.XX"))

    def test_function_lookup(self) -> None:
        """Test function lookup by code or label."""
        self.assertEqual(get_function("de").name, "Detect")
        self.assertEqual(get_function("Respond (RS)").id, "RS")
        self.assertIsNone(get_function("Monitor"))

    def test_function_to_dict(self) -> None:
        """Test function serialization."""
        data = get_function("RC").to_dict()
        self.assertEqual(data["id"], "RC")
        self.assertEqual([c["id"] for c in data["categories"]], ["RC.RP", "RC.CO"])


class TestFunctionCode(unittest.TestCase):
    """Tests for function label normalization."""

    def setUp(self) -> None:
        """Reset the once-per-label warning memory."""
        functions_module._warn_unmapped.cache_clear()

    def test_long_label(self) -> None:
        """Test long labels map to the short code."""
        self.assertEqual(function_code("Govern"), "GV")
        self.assertEqual(function_code("protect"), "PR")

    def test_combined_label(self) -> None:
        """Test combined labels map to the short code."""
        self.assertEqual(function_code("Govern (GV)"), "GV")
        self.assertEqual(function_code("identify  (id)"), "ID")

    def test_short_code(self) -> None:
        """Test short codes map to themselves."""
        self.assertEqual(function_code(" gv "), "GV")
        self.assertEqual(function_code("RC"), "RC")

    def test_empty_label(self) -> None:
        """Test empty labels give an empty code."""
        self.assertEqual(function_code(""), "")
        self.assertEqual(function_code(None), "")

    def test_unspaced_combined_label(self) -> None:
        """Test a combined label without a space before the code."""
        self.assertEqual(function_code("Govern(GV)"), "GV")
        self.assertEqual(function_code("Something else ( pr )"), "PR")

    def test_parenthesized_custom_code(self) -> None:
        """Test a code outside the framework is taken from the parentheses."""
        with self.assertLogs("csftracker.nist.functions", level="WARNING") as logs:
            self.assertEqual(function_code("Custom (CU)"), "CU")

        self.assertIn("Custom (CU)", logs.output[0])

    def test_unmapped_label_kept_and_logged_once(self) -> None:
        """Test unmapped labels pass through with a single warning."""
        with self.assertLogs("csftracker.nist.functions", level="WARNING") as logs:
            self.assertEqual(function_code("Monitoring"), "Monitoring")
            self.assertEqual(function_code("Monitoring"), "Monitoring")

        self.assertEqual(len(logs.records), 1)
        self.assertIn("Monitoring", logs.output[0])

    def test_warning_memory_is_bounded(self) -> None:
        """Test the once-per-label memory keeps a fixed number of labels."""
        with self.assertLogs("csftracker.nist.functions", level="WARNING"):
            for i in range(300):
                function_code(f"Label {i}")

        info = functions_module._warn_unmapped.cache_info()
        self.assertEqual(info.maxsize, 256)
        self.assertEqual(info.currsize, 256)


if __name__ == "__main__":
    unittest.main()
