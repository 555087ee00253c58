"""
Compound filtering of controls.

A FilterCriteria combines optional constraints with logical AND. Unset
criteria (None or "") match everything; any other value, "all" included, is
matched literally. The free-text search is a case-insensitive substring match
over the control description, the sub-category id and the identified risks;
every other criterion is an exact match on one field.

Filtering is stable and idempotent: the result keeps input order, and
filtering a result again with the same criteria returns it unchanged.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from csftracker.storage.models import Control, MeetsCriteria

_COMPLIANCE_ALIASES = {
    "compliant": MeetsCriteria.YES.value,
    "non-compliant": MeetsCriteria.NO.value,
}

SEARCH_FIELDS = ("control_description", "nist_subcategory_id", "identified_risks")


def _is_set(value: str | None) -> bool:
    return value is not None and value != ""


def _field_text(control: Control, attribute: str) -> str:
    value = getattr(control, attribute, None)
    if value is None:
        return ""
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


@dataclass
class FilterCriteria:
    """
    Optional constraints applied together.

    Attributes:
        search: Case-insensitive text searched in description, sub-category
            id and identified risks.
        nist_function: Exact function label as stored on the control.
        priority: Assessment priority value, e.g. "High".
        status: Remediation status value, e.g. "In Progress".
        compliance: "Yes"/"No" or "compliant"/"non-compliant".
        owner: Exact owner.
        domain: Exact cybersecurity domain.
    """

    search: str | None = None
    nist_function: str | None = None
    priority: str | None = None
    status: str | None = None
    compliance: str | None = None
    owner: str | None = None
    domain: str | None = None

    def is_empty(self) -> bool:
        """True if no criterion is set."""
        return not any(_is_set(getattr(self, f.name)) for f in fields(self))

    def matches(self, control: Control) -> bool:
        """True if the control satisfies every set criterion."""
        if _is_set(self.search):
            needle = str(self.search).lower()
            if not any(needle in _field_text(control, a).lower() for a in SEARCH_FIELDS):
                return False

        compliance = self.compliance
        if _is_set(compliance):
            compliance = _COMPLIANCE_ALIASES.get(str(compliance).lower(), compliance)

        exact = (
            (self.nist_function, "nist_function"),
            (self.priority, "assessment_priority"),
            (self.status, "remediation_status"),
            (compliance, "meets_criteria"),
            (self.owner, "owner"),
            (self.domain, "cybersecurity_domain"),
        )
        for wanted, attribute in exact:
            if _is_set(wanted) and _field_text(control, attribute) != wanted:
                return False
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary of the set criteria."""
        return {f.name: getattr(self, f.name) for f in fields(self) if _is_set(getattr(self, f.name))}


def filter_controls(controls: Iterable[Control], criteria: FilterCriteria) -> list[Control]:
    """
    Controls matching all of the criteria, in input order.

    Args:
        controls: Controls to filter.
        criteria: Constraints to apply.

    Returns:
        Matching controls. With empty criteria, every control.
    """
    if criteria.is_empty():
        return list(controls)
    return [c for c in controls if criteria.matches(c)]


def unique_values(controls: Iterable[Control], attribute: str) -> list[str]:
    """
    Sorted distinct non-empty values of one control attribute.

    Used to build the choices offered for a filter.

    Args:
        controls: Controls to scan.
        attribute: Control attribute name, e.g. "cybersecurity_domain".

    Raises:
        AttributeError: If Control has no such attribute.
    """
    if attribute not in Control.__dataclass_fields__:
        raise AttributeError(f"Control has no attribute {attribute!r}")
    return sorted({_field_text(c, attribute) for c in controls} - {""})
