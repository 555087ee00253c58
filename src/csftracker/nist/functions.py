"""
NIST Cybersecurity Framework 2.0 function and category definitions.

This module holds the six CSF 2.0 functions and their 22 categories as an
explicit lookup table. Control records carry the function either as a long
label ("Govern"), a combined label ("Govern (GV)") or a short code ("GV");
function_code() normalizes all three forms to the short code.

Reference: NIST Cybersecurity Framework 2.0 (February 2024)
https://www.nist.gov/cyberframework

The CSF 2.0 structure:
    - 6 Functions: Govern (GV), Identify (ID), Protect (PR), Detect (DE),
                   Respond (RS), Recover (RC)
    - 22 Categories: Grouped under functions
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NistCategory:
    """
    A NIST CSF 2.0 category.

    Attributes:
        id: Category identifier (e.g., "GV.OC")
        name: Category name
        function_id: Parent function code
    """

    id: str
    name: str
    function_id: str

    @property
    def label(self) -> str:
        """Display label in the "ID - Name" form used by control records."""
        return f"{self.id} - {self.name}"


@dataclass(frozen=True)
class NistFunction:
    """
    A NIST CSF 2.0 function (top-level grouping).

    Attributes:
        id: Two-letter identifier (GV, ID, PR, DE, RS, RC)
        name: Function name
        categories: Categories within this function
    """

    id: str
    name: str
    categories: tuple[NistCategory, ...] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        """Combined label, e.g. "Govern (GV)"."""
        return f"{self.name} ({self.id})"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "categories": [{"id": c.id, "name": c.name} for c in self.categories],
        }


def _categories(function_id: str, *pairs: tuple[str, str]) -> tuple[NistCategory, ...]:
    return tuple(NistCategory(id=cid, name=name, function_id=function_id) for cid, name in pairs)


# Framework order matters: aggregations list functions in this order.
NIST_FUNCTIONS: tuple[NistFunction, ...] = (
    NistFunction(
        id="GV",
        name="Govern",
        categories=_categories(
            "GV",
            ("GV.OC", "Organizational Context"),
            ("GV.RM", "Risk Management Strategy"),
            ("GV.RR", "Roles, Responsibilities, and Authorities"),
            ("GV.PO", "Policy"),
            ("GV.OV", "Oversight"),
            ("GV.SC", "Cybersecurity Supply Chain Risk Management"),
        ),
    ),
    NistFunction(
        id="ID",
        name="Identify",
        categories=_categories(
            "ID",
            ("ID.AM", "Asset Management"),
            ("ID.RA", "Risk Assessment"),
            ("ID.IM", "Improvement"),
        ),
    ),
    NistFunction(
        id="PR",
        name="Protect",
        categories=_categories(
            "PR",
            ("PR.AA", "Identity Management, Authentication, and Access Control"),
            ("PR.AT", "Awareness and Training"),
            ("PR.DS", "Data Security"),
            ("PR.PS", "Platform Security"),
            ("PR.IR", "Technology Infrastructure Resilience"),
        ),
    ),
    NistFunction(
        id="DE",
        name="Detect",
        categories=_categories(
            "DE",
            ("DE.CM", "Continuous Monitoring"),
            ("DE.AE", "Adverse Event Analysis"),
        ),
    ),
    NistFunction(
        id="RS",
        name="Respond",
        categories=_categories(
            "RS",
            ("RS.MA", "Incident Management"),
            ("RS.AN", "Incident Analysis"),
            ("RS.CO", "Incident Response Reporting and Communication"),
            ("RS.MI", "Incident Mitigation"),
        ),
    ),
    NistFunction(
        id="RC",
        name="Recover",
        categories=_categories(
            "RC",
            ("RC.RP", "Incident Recovery Plan Execution"),
            ("RC.CO", "Incident Recovery Communication"),
        ),
    ),
)

FUNCTION_CODES: tuple[str, ...] = tuple(f.id for f in NIST_FUNCTIONS)

FUNCTION_DISPLAY_NAMES: dict[str, str] = {f.id: f.name for f in NIST_FUNCTIONS}

# Lowercased long label, combined label and short code -> short code
_LABEL_TO_CODE: dict[str, str] = {}
for _function in NIST_FUNCTIONS:
    _LABEL_TO_CODE[_function.id.lower()] = _function.id
    _LABEL_TO_CODE[_function.name.lower()] = _function.id
    _LABEL_TO_CODE[_function.label.lower()] = _function.id

# Trailing parenthesized code, e.g. "Custom (CU)" or "Govern(GV)"
_PAREN_CODE_RE = re.compile(r"\(\s*([A-Za-z]+)\s*\)$")


@functools.lru_cache(maxsize=256)
def _warn_unmapped(label: str, key: str) -> None:
    """Log an unmapped label once, for the most recent 256 labels."""
    logger.warning("Unmapped NIST function label %r, grouping it as %r", label, key)


def function_code(label: str | None) -> str:
    """
    Normalize a function label to its short code.

    Lookup order:
        1. Long label, combined label or short code of one of the six CSF
           functions: "Govern", "Govern (GV)", "gv" and " GV " all map to
           "GV".
        2. A trailing parenthesized code: "Govern(GV)" maps to "GV" and
           "Custom (CU)" to "CU".
        3. Anything else is returned unchanged so it still forms its own
           group.

    Labels outside the six functions are logged at WARNING once.

    Args:
        label: Function label or code as stored on a control.

    Returns:
        Two-letter function code, the parenthesized code, or the original
        label if neither applies.
    """
    if not label:
        return ""

    normalized = " ".join(label.split())
    code = _LABEL_TO_CODE.get(normalized.lower())
    if code is not None:
        return code

    match = _PAREN_CODE_RE.search(normalized)
    if match:
        code = _LABEL_TO_CODE.get(match.group(1).lower())
        if code is not None:
            return code
        _warn_unmapped(label, match.group(1))
        return match.group(1)

    _warn_unmapped(label, label)
    return label


def get_function(function_id: str) -> NistFunction | None:
    """
    Get a function by its code or any recognised label.

    Args:
        function_id: Function code or label.

    Returns:
        NistFunction if found, None otherwise.
    """
    code = _LABEL_TO_CODE.get(" ".join(function_id.split()).lower())
    for function in NIST_FUNCTIONS:
        if function.id == code:
            return function
    return None


def get_all_functions() -> list[NistFunction]:
    """Get all six functions in framework order."""
    return list(NIST_FUNCTIONS)


def get_all_categories() -> list[NistCategory]:
    """Get all 22 categories in framework order."""
    return [c for f in NIST_FUNCTIONS for c in f.categories]


def get_category(category_id: str) -> NistCategory | None:
    """
    Get a category by ID (e.g., "PR.DS").

    Args:
        category_id: Category identifier.

    Returns:
        NistCategory if found, None otherwise.
    """
    for category in get_all_categories():
        if category.id == category_id:
            return category
    return None
