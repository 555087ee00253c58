"""
Control aggregation for dashboards and reports.

This module derives summary statistics and chart-ready series from the full
in-memory set of controls: compliance rate, breakdowns by priority and
remediation status, distributions by NIST function and cybersecurity domain,
a domain risk ranking and a priority matrix.

Every function here is pure. The same set of controls always produces the
same output, and output does not depend on input order except where a
result is explicitly sorted with stable ties. An empty input yields
zero-valued structures, never an error.

Domain Risk Score:
    score = High x 3 + Medium x 2 + Low x 1, counting non-compliant
    controls only. Domains with a zero score are dropped.

Priority Matrix:
    One point per control with x = priority weight (High 3, Medium 2,
    Low 1), y = remediation weight (Completed 3, In Progress 2,
    Not Started 1) and z = 100 if compliant, otherwise 0.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from csftracker.nist import FUNCTION_CODES, function_code
from csftracker.storage.models import Control, MeetsCriteria, Priority, RemediationStatus

logger = logging.getLogger(__name__)

DEFAULT_RANKING_LIMIT = 5
CATEGORY_REPORT_LIMIT = 10


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


@dataclass
class DomainRisk:
    """
    Non-compliant controls of one cybersecurity domain, weighted by priority.

    Attributes:
        domain: Cybersecurity domain name.
        high: Non-compliant High priority controls.
        medium: Non-compliant Medium priority controls.
        low: Non-compliant Low priority controls.
    """

    domain: str
    high: int = 0
    medium: int = 0
    low: int = 0

    @property
    def score(self) -> int:
        """Weighted risk score."""
        return self.high * 3 + self.medium * 2 + self.low

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "domain": self.domain,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "score": self.score,
        }


@dataclass
class ComplianceGroup:
    """
    Compliance counts of one group of controls.

    Attributes:
        name: Group name (function code, domain or category).
        total: Controls in the group.
        compliant: Controls meeting criteria.
        non_compliant: Controls not meeting criteria.
        compliance_rate: Integer percentage, rounded half-up.
    """

    name: str
    total: int
    compliant: int
    non_compliant: int
    compliance_rate: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "total": self.total,
            "compliant": self.compliant,
            "non_compliant": self.non_compliant,
            "compliance_rate": self.compliance_rate,
        }


@dataclass
class MatrixPoint:
    """A single control placed on the priority matrix."""

    control_id: int | None
    x: int
    y: int
    z: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"id": self.control_id, "x": self.x, "y": self.y, "z": self.z}


@dataclass
class DashboardStats:
    """
    Everything the dashboard shows, computed from one set of controls.

    Attributes:
        total_controls: Number of controls.
        compliant_controls: Controls meeting criteria.
        non_compliant_controls: Controls not meeting criteria.
        compliance_rate: Unrounded percentage in [0, 100].
        priority_breakdown: Non-compliant controls by priority.
        remediation_breakdown: All controls by remediation status.
        function_distribution: Controls by NIST function code.
        domain_distribution: Controls by cybersecurity domain.
        domain_risk_ranking: Riskiest domains, highest score first.
        inconsistent_controls: Compliant controls whose remediation is not
            Completed.
    """

    total_controls: int = 0
    compliant_controls: int = 0
    non_compliant_controls: int = 0
    compliance_rate: float = 0.0
    priority_breakdown: dict[str, int] = field(default_factory=dict)
    remediation_breakdown: dict[str, int] = field(default_factory=dict)
    function_distribution: dict[str, int] = field(default_factory=dict)
    domain_distribution: dict[str, int] = field(default_factory=dict)
    domain_risk_ranking: list[DomainRisk] = field(default_factory=list)
    inconsistent_controls: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to chart-ready dictionary."""
        return {
            "total_controls": self.total_controls,
            "compliant_controls": self.compliant_controls,
            "non_compliant_controls": self.non_compliant_controls,
            "compliance_rate": round(self.compliance_rate, 2),
            "priority_breakdown": dict(self.priority_breakdown),
            "remediation_breakdown": dict(self.remediation_breakdown),
            "function_distribution": [
                {"name": name, "value": count}
                for name, count in self.function_distribution.items()
            ],
            "domain_distribution": [
                {"name": name, "value": count}
                for name, count in self.domain_distribution.items()
            ],
            "domain_risk_ranking": [r.to_dict() for r in self.domain_risk_ranking],
            "inconsistent_controls": self.inconsistent_controls,
        }


def compliance_rate(controls: Iterable[Control]) -> float:
    """
    Percentage of controls meeting criteria.

    Returns:
        compliant / total x 100, unrounded. 0.0 for no controls.
    """
    items = list(controls)
    if not items:
        return 0.0
    compliant = sum(1 for c in items if c.meets_criteria == MeetsCriteria.YES)
    return compliant / len(items) * 100


def priority_breakdown(controls: Iterable[Control]) -> dict[str, int]:
    """Non-compliant controls counted by assessment priority."""
    breakdown = {p.value: 0 for p in Priority}
    for control in controls:
        if control.meets_criteria != MeetsCriteria.YES:
            breakdown[control.assessment_priority.value] += 1
    return breakdown


def remediation_breakdown(controls: Iterable[Control]) -> dict[str, int]:
    """All controls counted by remediation status, zeroes included."""
    breakdown = {s.value: 0 for s in RemediationStatus}
    for control in controls:
        breakdown[control.remediation_status.value] += 1
    return breakdown


def _function_order(codes: Iterable[str]) -> list[str]:
    known = [code for code in FUNCTION_CODES if code in codes]
    unmapped = sorted(code for code in codes if code not in FUNCTION_CODES)
    return known + unmapped


def function_distribution(controls: Iterable[Control]) -> dict[str, int]:
    """
    Controls counted by NIST function short code.

    Keys follow framework order (GV, ID, PR, DE, RS, RC), then unmapped
    labels alphabetically. Controls without a function are skipped.
    """
    counts: dict[str, int] = {}
    for control in controls:
        code = function_code(control.nist_function)
        if code:
            counts[code] = counts.get(code, 0) + 1
    return {code: counts[code] for code in _function_order(counts)}


def domain_distribution(controls: Iterable[Control]) -> dict[str, int]:
    """Controls counted by cybersecurity domain, keys sorted."""
    counts: dict[str, int] = {}
    for control in controls:
        if control.cybersecurity_domain:
            domain = control.cybersecurity_domain
            counts[domain] = counts.get(domain, 0) + 1
    return dict(sorted(counts.items()))


def domain_risk_ranking(
    controls: Iterable[Control], limit: int = DEFAULT_RANKING_LIMIT
) -> list[DomainRisk]:
    """
    Rank cybersecurity domains by weighted non-compliance.

    Args:
        controls: Controls to rank.
        limit: Maximum number of domains returned.

    Returns:
        Domains with a positive score, highest first. Domains with equal
        scores keep the order in which they first appear in the input.
    """
    risks: dict[str, DomainRisk] = {}
    for control in controls:
        domain = control.cybersecurity_domain
        if not domain:
            continue
        if domain not in risks:
            risks[domain] = DomainRisk(domain=domain)
        if control.meets_criteria == MeetsCriteria.YES:
            continue
        risk = risks[domain]
        if control.assessment_priority == Priority.HIGH:
            risk.high += 1
        elif control.assessment_priority == Priority.MEDIUM:
            risk.medium += 1
        else:
            risk.low += 1

    ranked = sorted(
        (r for r in risks.values() if r.score > 0),
        key=lambda r: r.score,
        reverse=True,
    )
    return ranked[: max(limit, 0)]


def _compliance_groups(
    controls: Iterable[Control], key: Callable[[Control], str]
) -> dict[str, ComplianceGroup]:
    totals: dict[str, list[int]] = {}
    for control in controls:
        name = key(control)
        if not name:
            continue
        counts = totals.setdefault(name, [0, 0])
        counts[0] += 1
        if control.meets_criteria == MeetsCriteria.YES:
            counts[1] += 1

    return {
        name: ComplianceGroup(
            name=name,
            total=total,
            compliant=compliant,
            non_compliant=total - compliant,
            compliance_rate=round_half_up(compliant / total * 100),
        )
        for name, (total, compliant) in totals.items()
    }


def compliance_by_function(controls: Iterable[Control]) -> list[ComplianceGroup]:
    """Compliance per NIST function, in framework order."""
    groups = _compliance_groups(controls, lambda c: function_code(c.nist_function))
    return [groups[code] for code in _function_order(groups)]


def compliance_by_domain(controls: Iterable[Control]) -> list[ComplianceGroup]:
    """Compliance per cybersecurity domain, largest domains first."""
    groups = _compliance_groups(controls, lambda c: c.cybersecurity_domain)
    return sorted(groups.values(), key=lambda g: g.total, reverse=True)


def compliance_by_category(
    controls: Iterable[Control], limit: int = CATEGORY_REPORT_LIMIT
) -> list[ComplianceGroup]:
    """Compliance per NIST category, the `limit` largest categories."""
    groups = _compliance_groups(controls, lambda c: c.nist_category_id)
    return sorted(groups.values(), key=lambda g: g.total, reverse=True)[:limit]


def priority_matrix(controls: Iterable[Control]) -> list[MatrixPoint]:
    """One matrix point per control, in input order."""
    return [
        MatrixPoint(
            control_id=c.id,
            x=c.assessment_priority.weight,
            y=c.remediation_status.weight,
            z=100 if c.meets_criteria == MeetsCriteria.YES else 0,
        )
        for c in controls
    ]


def list_owners(controls: Iterable[Control]) -> list[str]:
    """Sorted unique non-empty owners."""
    return sorted({c.owner for c in controls if c.owner})


def inconsistent_controls(controls: Iterable[Control]) -> list[Control]:
    """Controls marked compliant whose remediation is not Completed."""
    return [
        c
        for c in controls
        if c.meets_criteria == MeetsCriteria.YES
        and c.remediation_status != RemediationStatus.COMPLETED
    ]


def compute_dashboard_stats(
    controls: Iterable[Control], ranking_limit: int = DEFAULT_RANKING_LIMIT
) -> DashboardStats:
    """
    Compute every dashboard aggregate in one pass over the controls.

    Args:
        controls: Full set of controls.
        ranking_limit: Maximum number of domains in the risk ranking.

    Returns:
        DashboardStats for the controls.
    """
    items = list(controls)
    compliant = sum(1 for c in items if c.meets_criteria == MeetsCriteria.YES)
    inconsistent = inconsistent_controls(items)

    if inconsistent:
        logger.debug(
            f"{len(inconsistent)} controls meet criteria but remediation is not Completed"
        )

    return DashboardStats(
        total_controls=len(items),
        compliant_controls=compliant,
        non_compliant_controls=len(items) - compliant,
        compliance_rate=compliance_rate(items),
        priority_breakdown=priority_breakdown(items),
        remediation_breakdown=remediation_breakdown(items),
        function_distribution=function_distribution(items),
        domain_distribution=domain_distribution(items),
        domain_risk_ranking=domain_risk_ranking(items, limit=ranking_limit),
        inconsistent_controls=len(inconsistent),
    )


def compute_owner_stats(
    controls: Iterable[Control], ranking_limit: int = DEFAULT_RANKING_LIMIT
) -> dict[str, DashboardStats]:
    """Dashboard statistics for each owner, keyed by owner in sorted order."""
    items = list(controls)
    return {
        owner: compute_dashboard_stats(
            [c for c in items if c.owner == owner], ranking_limit=ranking_limit
        )
        for owner in list_owners(items)
    }
