"""
Tests for compound control filtering.

Uses Python's unittest module.
"""

from __future__ import annotations

import unittest

from csftracker.analysis import FilterCriteria, filter_controls, unique_values
from csftracker.storage.models import Control, MeetsCriteria, Priority, RemediationStatus


def sample_controls() -> list[Control]:
    """Four controls with distinct field values."""
    return [
        Control(
            id=1,
            owner="Acme Corporation",
            nist_function="Protect",
            nist_subcategory_id="PR.AA-01",
            assessment_priority=Priority.HIGH,
            control_description="Multi-factor authentication for admins",
            cybersecurity_domain="Identity Management",
            meets_criteria=MeetsCriteria.NO,
            identified_risks="Credential theft",
            remediation_status=RemediationStatus.IN_PROGRESS,
        ),
        Control(
            id=2,
            owner="Acme Corporation",
            nist_function="Detect",
            nist_subcategory_id="DE.CM-01",
            assessment_priority=Priority.MEDIUM,
            control_description="Network monitoring",
            cybersecurity_domain="Security Operations",
            meets_criteria=MeetsCriteria.YES,
            remediation_status=RemediationStatus.COMPLETED,
        ),
        Control(
            id=3,
            owner="Contoso Corporation",
            nist_function="Protect",
            nist_subcategory_id="PR.DS-01",
            assessment_priority=Priority.HIGH,
            control_description="Encrypt data at rest",
            cybersecurity_domain="Data Protection",
            meets_criteria=MeetsCriteria.NO,
            identified_risks="Unencrypted AUTHENTICATION tokens",
            remediation_status=RemediationStatus.NOT_STARTED,
        ),
        Control(
            id=4,
            owner="Contoso Corporation",
            nist_function="Govern",
            nist_subcategory_id="GV.OC-01",
            assessment_priority=Priority.LOW,
            control_description="",
            cybersecurity_domain="",
            meets_criteria=MeetsCriteria.YES,
            remediation_status=RemediationStatus.COMPLETED,
        ),
    ]


def ids(controls: list[Control]) -> list[int | None]:
    return [c.id for c in controls]


class TestFilterCriteria(unittest.TestCase):
    """Tests for FilterCriteria."""

    def test_empty_criteria(self) -> None:
        """Test None and empty values are unset."""
        self.assertTrue(FilterCriteria().is_empty())
        self.assertTrue(FilterCriteria(search="", owner="", priority=None).is_empty())
        self.assertFalse(FilterCriteria(priority="High").is_empty())
        self.assertFalse(FilterCriteria(search="all").is_empty())

    def test_to_dict_keeps_set_criteria(self) -> None:
        """Test to_dict drops unset criteria."""
        criteria = FilterCriteria(search="mfa", owner="", priority="High")
        self.assertEqual(criteria.to_dict(), {"search": "mfa", "priority": "High"})


class TestFilterControls(unittest.TestCase):
    """Tests for filter_controls."""

    def setUp(self) -> None:
        """Build sample controls."""
        self.controls = sample_controls()

    def test_empty_criteria_returns_everything_in_order(self) -> None:
        """Test empty criteria return the input unchanged."""
        result = filter_controls(self.controls, FilterCriteria())

        self.assertEqual(ids(result), [1, 2, 3, 4])
        self.assertIsNot(result, self.controls)

    def test_search_is_case_insensitive_substring(self) -> None:
        """Test search covers description, sub-category id and risks."""
        self.assertEqual(ids(filter_controls(self.controls, FilterCriteria(search="authentication"))), [1, 3])
        self.assertEqual(ids(filter_controls(self.controls, FilterCriteria(search="de.cm"))), [2])
        self.assertEqual(ids(filter_controls(self.controls, FilterCriteria(search="nothing here"))), [])

    def test_search_ignores_other_fields(self) -> None:
        """Test search does not look at owner or domain."""
        self.assertEqual(filter_controls(self.controls, FilterCriteria(search="Contoso")), [])

    def test_exact_fields(self) -> None:
        """Test exact-match criteria."""
        cases = [
            (FilterCriteria(nist_function="Protect"), [1, 3]),
            (FilterCriteria(priority="High"), [1, 3]),
            (FilterCriteria(status="Completed"), [2, 4]),
            (FilterCriteria(owner="Contoso Corporation"), [3, 4]),
            (FilterCriteria(domain="Data Protection"), [3]),
            (FilterCriteria(priority="high"), []),
        ]
        for criteria, expected in cases:
            with self.subTest(criteria=criteria):
                self.assertEqual(ids(filter_controls(self.controls, criteria)), expected)

    def test_compliance_aliases(self) -> None:
        """Test compliance accepts Yes/No and compliant/non-compliant."""
        for value, expected in (
            ("Yes", [2, 4]),
            ("compliant", [2, 4]),
            ("No", [1, 3]),
            ("Non-Compliant", [1, 3]),
        ):
            with self.subTest(value=value):
                criteria = FilterCriteria(compliance=value)
                self.assertEqual(ids(filter_controls(self.controls, criteria)), expected)

    def test_criteria_combine_with_and(self) -> None:
        """Test every set criterion must hold."""
        criteria = FilterCriteria(priority="High", owner="Acme Corporation", compliance="No")
        self.assertEqual(ids(filter_controls(self.controls, criteria)), [1])

    def test_search_for_all_is_a_substring(self) -> None:
        """Test the text "all" is searched like any other text."""
        controls = [
            Control(id=1, control_description="Install firewall"),
            Control(id=2, control_description="Monitor logs"),
        ]

        self.assertEqual(ids(filter_controls(controls, FilterCriteria(search="all"))), [1])
        self.assertEqual(ids(filter_controls(controls, FilterCriteria(search="ALL"))), [1])

    def test_owner_and_domain_named_all(self) -> None:
        """Test an owner or domain called "all" is selectable."""
        controls = [
            Control(id=1, owner="all", cybersecurity_domain="Data Protection"),
            Control(id=2, owner="Acme", cybersecurity_domain="all"),
        ]

        self.assertEqual(ids(filter_controls(controls, FilterCriteria(owner="all"))), [1])
        self.assertEqual(ids(filter_controls(controls, FilterCriteria(domain="all"))), [2])

    def test_idempotent(self) -> None:
        """Test filtering a result again changes nothing."""
        criteria = FilterCriteria(nist_function="Protect", search="a")
        once = filter_controls(self.controls, criteria)
        self.assertEqual(filter_controls(once, criteria), once)

    def test_missing_fields_do_not_match(self) -> None:
        """Test empty field values only match unset criteria."""
        self.assertEqual(ids(filter_controls(self.controls, FilterCriteria(domain="Identity"))), [])
        self.assertEqual(ids(filter_controls(self.controls, FilterCriteria(search="gv.oc"))), [4])

    def test_accepts_iterables(self) -> None:
        """Test a generator input works."""
        result = filter_controls((c for c in self.controls), FilterCriteria(owner="Acme Corporation"))
        self.assertEqual(ids(result), [1, 2])


class TestUniqueValues(unittest.TestCase):
    """Tests for filter choice values."""

    def test_sorted_non_empty(self) -> None:
        """Test values are distinct, sorted and non-empty."""
        controls = sample_controls()

        self.assertEqual(
            unique_values(controls, "cybersecurity_domain"),
            ["Data Protection", "Identity Management", "Security Operations"],
        )
        self.assertEqual(unique_values(controls, "owner"), ["Acme Corporation", "Contoso Corporation"])

    def test_enum_values(self) -> None:
        """Test enum fields yield their string values."""
        self.assertEqual(unique_values(sample_controls(), "assessment_priority"), ["High", "Low", "Medium"])

    def test_unknown_attribute(self) -> None:
        """Test unknown attributes raise AttributeError."""
        with self.assertRaises(AttributeError):
            unique_values(sample_controls(), "title")


if __name__ == "__main__":
    unittest.main()
