"""
Data models for control storage.

This module defines the Control dataclass, the single entity tracked by
csftracker, together with the enumerations for its constrained fields.

Schema Design Decisions:
    - IDs are integers assigned by the database on insert
    - Timestamps are stored as ISO format strings in UTC
    - Enumerated fields are stored as their display value ("In Progress")
    - Wire format (dict/JSON) uses camelCase keys; attributes are snake_case
    - Legacy field aliases are migrated in from_dict() and never stored
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ControlValidationError(ValueError):
    """Raised when a control record cannot be mapped to the canonical schema."""

    pass


class _ParseableEnum(str, Enum):
    """String enum that parses its display value case-insensitively."""

    @classmethod
    def parse(cls, value: Any) -> Any:
        """
        Parse a value into an enum member.

        Args:
            value: Enum member or string such as "high" or " In Progress ".

        Returns:
            Matching enum member.

        Raises:
            ControlValidationError: If the value is not a valid member.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = " ".join(value.split()).lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        valid = ", ".join(m.value for m in cls)
        raise ControlValidationError(
            f"Invalid {cls.__name__} value {value!r}. Must be one of: {valid}"
        )


class Priority(_ParseableEnum):
    """Assessment priority of a control."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def weight(self) -> int:
        """Risk weight used for domain ranking (High 3, Medium 2, Low 1)."""
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class MeetsCriteria(_ParseableEnum):
    """Compliance flag of a control."""

    YES = "Yes"
    NO = "No"

    @classmethod
    def parse(cls, value: Any) -> MeetsCriteria:
        if isinstance(value, bool):
            return cls.YES if value else cls.NO
        result: MeetsCriteria = super().parse(value)
        return result


class RemediationStatus(_ParseableEnum):
    """Workflow state of fixing a non-compliant control."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"

    @property
    def weight(self) -> int:
        """Progress weight (Completed 3, In Progress 2, Not Started 1)."""
        return {"Completed": 3, "In Progress": 2, "Not Started": 1}[self.value]


# Canonical wire key -> attribute name
WIRE_FIELDS: dict[str, str] = {
    "id": "id",
    "owner": "owner",
    "nistFunction": "nist_function",
    "nistCategoryId": "nist_category_id",
    "nistSubCategoryId": "nist_subcategory_id",
    "assessmentPriority": "assessment_priority",
    "controlDescription": "control_description",
    "cybersecurityDomain": "cybersecurity_domain",
    "meetsCriteria": "meets_criteria",
    "identifiedRisks": "identified_risks",
    "riskDetails": "risk_details",
    "remediationStatus": "remediation_status",
    "lastUpdated": "last_updated",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

# Legacy keys seen in older exports and API payloads -> attribute name
LEGACY_ALIASES: dict[str, str] = {
    "priority": "assessment_priority",
    "status": "remediation_status",
    "category": "nist_category_id",
    "subcategory": "nist_subcategory_id",
    "control_id": "nist_subcategory_id",
    "description": "control_description",
    "implementation_notes": "risk_details",
    "compliance_level": "meets_criteria",
}

TEXT_FIELDS = (
    "owner",
    "nist_function",
    "nist_category_id",
    "nist_subcategory_id",
    "control_description",
    "cybersecurity_domain",
    "identified_risks",
    "risk_details",
)

TIMESTAMP_FIELDS = ("last_updated", "created_at", "updated_at")


def _parse_timestamp(value: Any, field_name: str) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise ControlValidationError(
                f"Invalid timestamp for {field_name}: {value!r}"
            ) from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise ControlValidationError(f"Invalid timestamp for {field_name}: {value!r}")


@dataclass
class Control:
    """
    A single trackable NIST CSF compliance control.

    Attributes:
        id: Database identifier, None until the control is stored.
        owner: Organization that owns the control.
        nist_function: Function label or short code (e.g., "Protect", "PR").
        nist_category_id: Category, e.g. "PR.DS - Data Security".
        nist_subcategory_id: Subcategory, e.g. "PR.DS-01 - Data-at-rest".
        assessment_priority: High, Medium or Low.
        control_description: What the control requires.
        cybersecurity_domain: Free-text domain classification.
        meets_criteria: Yes if the control is compliant.
        identified_risks: Risks found during assessment.
        risk_details: Detail on the identified risks.
        remediation_status: Not Started, In Progress or Completed.
        last_updated: Last time the control was changed (UTC).
        created_at: When the control was stored (UTC).
        updated_at: When the record was last written (UTC).

    Database Table: controls
        - id INTEGER PRIMARY KEY AUTOINCREMENT
        - owner TEXT NOT NULL
        - nist_function TEXT NOT NULL
        - nist_category_id TEXT NOT NULL
        - nist_subcategory_id TEXT NOT NULL
        - assessment_priority TEXT NOT NULL
        - control_description TEXT NOT NULL
        - cybersecurity_domain TEXT NOT NULL
        - meets_criteria TEXT NOT NULL
        - identified_risks TEXT
        - risk_details TEXT
        - remediation_status TEXT NOT NULL
        - last_updated TEXT NOT NULL
        - created_at TEXT NOT NULL
        - updated_at TEXT NOT NULL

    Indexes:
        - idx_controls_function ON controls(nist_function)
        - idx_controls_status ON controls(remediation_status)
        - idx_controls_priority ON controls(assessment_priority)
        - idx_controls_owner ON controls(owner)
    """

    nist_function: str = ""
    nist_subcategory_id: str = ""
    owner: str = ""
    nist_category_id: str = ""
    assessment_priority: Priority = Priority.MEDIUM
    control_description: str = ""
    cybersecurity_domain: str = ""
    meets_criteria: MeetsCriteria = MeetsCriteria.NO
    identified_risks: str = ""
    risk_details: str = ""
    remediation_status: RemediationStatus = RemediationStatus.NOT_STARTED
    id: int | None = None
    last_updated: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_compliant(self) -> bool:
        """True if the control meets criteria."""
        return self.meets_criteria == MeetsCriteria.YES

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary using the canonical wire keys."""
        return {
            "id": self.id,
            "owner": self.owner,
            "nistFunction": self.nist_function,
            "nistCategoryId": self.nist_category_id,
            "nistSubCategoryId": self.nist_subcategory_id,
            "assessmentPriority": self.assessment_priority.value,
            "controlDescription": self.control_description,
            "cybersecurityDomain": self.cybersecurity_domain,
            "meetsCriteria": self.meets_criteria.value,
            "identifiedRisks": self.identified_risks,
            "riskDetails": self.risk_details,
            "remediationStatus": self.remediation_status.value,
            "lastUpdated": self.last_updated.isoformat() if self.last_updated else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Control:
        """
        Create from dictionary, migrating legacy aliases.

        Accepts canonical camelCase keys, snake_case attribute names and the
        legacy aliases in LEGACY_ALIASES. A canonical key always wins over
        an alias for the same field. Unknown keys are ignored.

        Args:
            data: Control fields.

        Returns:
            New Control instance.

        Raises:
            ControlValidationError: If an enumerated field, id or timestamp
                has an invalid value.
        """
        values: dict[str, Any] = {}

        for key, value in data.items():
            attr = LEGACY_ALIASES.get(key)
            if attr is None or attr in values:
                continue
            if key == "compliance_level":
                value = MeetsCriteria.YES if _to_number(value) == 100 else MeetsCriteria.NO
            values[attr] = value

        for key, value in data.items():
            attr = WIRE_FIELDS.get(key)
            if attr is None and key in WIRE_FIELDS.values():
                attr = key
            if attr is not None:
                values[attr] = value

        kwargs: dict[str, Any] = {}
        for attr in TEXT_FIELDS:
            if attr in values:
                kwargs[attr] = "" if values[attr] is None else str(values[attr])

        if values.get("assessment_priority") not in (None, ""):
            kwargs["assessment_priority"] = Priority.parse(values["assessment_priority"])
        if values.get("meets_criteria") not in (None, ""):
            kwargs["meets_criteria"] = MeetsCriteria.parse(values["meets_criteria"])
        if values.get("remediation_status") not in (None, ""):
            kwargs["remediation_status"] = RemediationStatus.parse(values["remediation_status"])

        for attr in TIMESTAMP_FIELDS:
            kwargs[attr] = _parse_timestamp(values.get(attr), attr)

        raw_id = values.get("id")
        if raw_id not in (None, ""):
            try:
                kwargs["id"] = int(raw_id)
            except (TypeError, ValueError) as e:
                raise ControlValidationError(f"Invalid control id: {raw_id!r}") from e

        return cls(**kwargs)


def _to_number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
