"""
Tests for control aggregation.

Uses Python's unittest module.
Tests compliance rates, breakdowns, distributions and the domain risk ranking.
"""

from __future__ import annotations

import unittest

from csftracker.analysis import (
    DashboardStats,
    compliance_by_category,
    compliance_by_domain,
    compliance_by_function,
    compliance_rate,
    compute_dashboard_stats,
    compute_owner_stats,
    domain_distribution,
    domain_risk_ranking,
    function_distribution,
    inconsistent_controls,
    list_owners,
    priority_breakdown,
    priority_matrix,
    remediation_breakdown,
    round_half_up,
)
from csftracker.storage.models import Control, MeetsCriteria, Priority, RemediationStatus


def control(
    compliant: bool = False,
    priority: Priority = Priority.MEDIUM,
    status: RemediationStatus = RemediationStatus.NOT_STARTED,
    domain: str = "Identity Management",
    function: str = "Protect",
    **overrides,
) -> Control:
    """Build a control for aggregation tests."""
    return Control(
        meets_criteria=MeetsCriteria.YES if compliant else MeetsCriteria.NO,
        assessment_priority=priority,
        remediation_status=status,
        cybersecurity_domain=domain,
        nist_function=function,
        **overrides,
    )


class TestRoundHalfUp(unittest.TestCase):
    """Tests for half-up rounding."""

    def test_halves_round_up(self) -> None:
        """Test .5 always rounds up."""
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(0.5), 1)

    def test_other_values(self) -> None:
        """Test ordinary rounding."""
        self.assertEqual(round_half_up(2.49), 2)
        self.assertEqual(round_half_up(66.67), 67)
        self.assertEqual(round_half_up(0), 0)


class TestSimpleAggregates(unittest.TestCase):
    """Tests for rates and breakdowns."""

    def test_compliance_rate(self) -> None:
        """Test 6 of 10 compliant gives 60 percent."""
        controls = [control(compliant=i < 6) for i in range(10)]
        self.assertEqual(compliance_rate(controls), 60.0)

    def test_compliance_rate_unrounded(self) -> None:
        """Test the rate is not rounded."""
        controls = [control(compliant=True), control(), control()]
        self.assertAlmostEqual(compliance_rate(controls), 100 / 3)

    def test_empty_input(self) -> None:
        """Test empty input yields zero-valued structures."""
        self.assertEqual(compliance_rate([]), 0.0)
        self.assertEqual(priority_breakdown([]), {"High": 0, "Medium": 0, "Low": 0})
        self.assertEqual(
            remediation_breakdown([]),
            {"Not Started": 0, "In Progress": 0, "Completed": 0},
        )
        self.assertEqual(function_distribution([]), {})
        self.assertEqual(domain_distribution([]), {})
        self.assertEqual(domain_risk_ranking([]), [])

    def test_priority_breakdown_counts_non_compliant_only(self) -> None:
        """Test compliant controls are left out of the priority breakdown."""
        controls = [
            control(priority=Priority.HIGH),
            control(priority=Priority.HIGH),
            control(priority=Priority.HIGH, compliant=True),
            control(priority=Priority.LOW),
        ]

        breakdown = priority_breakdown(controls)

        self.assertEqual(breakdown, {"High": 2, "Medium": 0, "Low": 1})
        non_compliant = sum(1 for c in controls if not c.is_compliant)
        self.assertEqual(sum(breakdown.values()), non_compliant)

    def test_remediation_breakdown_counts_all(self) -> None:
        """Test remediation breakdown counts every control."""
        controls = [
            control(status=RemediationStatus.COMPLETED, compliant=True),
            control(status=RemediationStatus.IN_PROGRESS),
            control(status=RemediationStatus.IN_PROGRESS),
        ]

        self.assertEqual(
            remediation_breakdown(controls),
            {"Not Started": 0, "In Progress": 2, "Completed": 1},
        )

    def test_function_distribution_order(self) -> None:
        """Test functions follow framework order with labels normalized."""
        controls = [
            control(function="Recover"),
            control(function="Govern (GV)"),
            control(function="PR"),
            control(function="Protect"),
            control(function=""),
        ]

        distribution = function_distribution(controls)

        self.assertEqual(list(distribution), ["GV", "PR", "RC"])
        self.assertEqual(distribution["PR"], 2)

    def test_domain_distribution_sorted(self) -> None:
        """Test domains are sorted and empty domains skipped."""
        controls = [control(domain="Zero Trust"), control(domain="Asset Management"), control(domain="")]

        self.assertEqual(domain_distribution(controls), {"Asset Management": 1, "Zero Trust": 1})


class TestDomainRiskRanking(unittest.TestCase):
    """Tests for the domain risk ranking."""

    def test_score_weights(self) -> None:
        """Test score is High x 3 + Medium x 2 + Low."""
        controls = [
            control(domain="A", priority=Priority.HIGH),
            control(domain="A", priority=Priority.MEDIUM),
            control(domain="A", priority=Priority.LOW),
            control(domain="A", priority=Priority.HIGH, compliant=True),
        ]

        ranking = domain_risk_ranking(controls)

        self.assertEqual(len(ranking), 1)
        self.assertEqual((ranking[0].high, ranking[0].medium, ranking[0].low), (1, 1, 1))
        self.assertEqual(ranking[0].score, 6)

    def test_descending_and_limited(self) -> None:
        """Test at most five domains, highest score first."""
        controls = []
        for n, domain in enumerate("ABCDEFG", start=1):
            controls.extend(control(domain=domain, priority=Priority.LOW) for _ in range(n))

        ranking = domain_risk_ranking(controls)

        self.assertEqual([r.domain for r in ranking], ["G", "F", "E", "D", "C"])
        scores = [r.score for r in ranking]
        self.assertEqual(scores, sorted(scores, reverse=True))

    def test_custom_limit(self) -> None:
        """Test limit caps the ranking length."""
        controls = [control(domain=d) for d in "ABC"]
        self.assertEqual(len(domain_risk_ranking(controls, limit=2)), 2)
        self.assertEqual(domain_risk_ranking(controls, limit=0), [])

    def test_ties_keep_input_order(self) -> None:
        """Test equal scores keep first-seen order."""
        controls = [control(domain="Beta"), control(domain="Alpha"), control(domain="Gamma")]

        self.assertEqual(
            [r.domain for r in domain_risk_ranking(controls)], ["Beta", "Alpha", "Gamma"]
        )

    def test_zero_score_domains_dropped(self) -> None:
        """Test fully compliant domains are left out."""
        controls = [control(domain="Clean", compliant=True), control(domain="Dirty")]

        self.assertEqual([r.domain for r in domain_risk_ranking(controls)], ["Dirty"])


class TestComplianceGroups(unittest.TestCase):
    """Tests for per-group compliance."""

    def test_by_function(self) -> None:
        """Test groups by function code in framework order."""
        controls = [
            control(function="Detect", compliant=True),
            control(function="Detect"),
            control(function="Identify (ID)", compliant=True),
        ]

        groups = compliance_by_function(controls)

        self.assertEqual([g.name for g in groups], ["ID", "DE"])
        self.assertEqual(groups[1].total, 2)
        self.assertEqual(groups[1].compliance_rate, 50)

    def test_rate_rounds_half_up(self) -> None:
        """Test 1 of 8 compliant rounds 12.5 up to 13."""
        controls = [control(domain="X", compliant=i == 0) for i in range(8)]

        group = compliance_by_domain(controls)[0]

        self.assertEqual(group.compliance_rate, 13)
        self.assertEqual(group.non_compliant, 7)

    def test_by_domain_largest_first(self) -> None:
        """Test domain groups are sorted by size."""
        controls = [control(domain="Small"), control(domain="Big"), control(domain="Big")]

        self.assertEqual([g.name for g in compliance_by_domain(controls)], ["Big", "Small"])

    def test_by_category_limited(self) -> None:
        """Test at most ten categories are reported."""
        controls = [control(nist_category_id=f"CAT-{i:02d}") for i in range(12)]

        self.assertEqual(len(compliance_by_category(controls)), 10)
        self.assertEqual(len(compliance_by_category(controls, limit=3)), 3)


class TestMatrixAndOwners(unittest.TestCase):
    """Tests for the priority matrix and owner helpers."""

    def test_priority_matrix(self) -> None:
        """Test matrix coordinates from weights."""
        controls = [
            control(priority=Priority.HIGH, status=RemediationStatus.COMPLETED, compliant=True, id=1),
            control(priority=Priority.LOW, status=RemediationStatus.NOT_STARTED, id=2),
        ]

        points = priority_matrix(controls)

        self.assertEqual(points[0].to_dict(), {"id": 1, "x": 3, "y": 3, "z": 100})
        self.assertEqual(points[1].to_dict(), {"id": 2, "x": 1, "y": 1, "z": 0})

    def test_list_owners(self) -> None:
        """Test owners are unique and sorted."""
        controls = [control(owner="Contoso"), control(owner="Acme"), control(owner="Acme"), control()]
        self.assertEqual(list_owners(controls), ["Acme", "Contoso"])

    def test_inconsistent_controls(self) -> None:
        """Test compliant controls not Completed are reported."""
        odd = control(compliant=True, status=RemediationStatus.IN_PROGRESS)
        controls = [odd, control(compliant=True, status=RemediationStatus.COMPLETED), control()]

        self.assertEqual(inconsistent_controls(controls), [odd])


class TestDashboardStats(unittest.TestCase):
    """Tests for the combined dashboard statistics."""

    def test_empty(self) -> None:
        """Test empty input gives zero stats."""
        stats = compute_dashboard_stats([])

        self.assertIsInstance(stats, DashboardStats)
        self.assertEqual(stats.total_controls, 0)
        self.assertEqual(stats.compliance_rate, 0.0)
        self.assertEqual(stats.domain_risk_ranking, [])

    def test_counts_agree(self) -> None:
        """Test totals, compliant and breakdown sums agree."""
        controls = [
            control(compliant=True, status=RemediationStatus.COMPLETED, domain="A"),
            control(priority=Priority.HIGH, domain="A"),
            control(priority=Priority.LOW, domain="B"),
            control(compliant=True, status=RemediationStatus.IN_PROGRESS, domain="B"),
        ]

        stats = compute_dashboard_stats(controls)

        self.assertEqual(stats.total_controls, 4)
        self.assertEqual(stats.compliant_controls + stats.non_compliant_controls, 4)
        self.assertEqual(sum(stats.priority_breakdown.values()), stats.non_compliant_controls)
        self.assertEqual(sum(stats.remediation_breakdown.values()), 4)
        self.assertEqual(stats.inconsistent_controls, 1)
        self.assertEqual([r.domain for r in stats.domain_risk_ranking], ["A", "B"])

    def test_order_independent(self) -> None:
        """Test reversing input does not change the counts."""
        controls = [control(domain=d, compliant=i % 2 == 0) for i, d in enumerate("ABCAB")]

        forward = compute_dashboard_stats(controls).to_dict()
        backward = compute_dashboard_stats(list(reversed(controls))).to_dict()

        for key in ("total_controls", "compliance_rate", "priority_breakdown", "domain_distribution"):
            self.assertEqual(forward[key], backward[key])

    def test_to_dict_chart_shape(self) -> None:
        """Test distributions serialize as name/value lists."""
        controls = [control(function="Govern"), control(compliant=True, function="Detect")]

        data = compute_dashboard_stats(controls).to_dict()

        self.assertEqual(
            data["function_distribution"],
            [{"name": "GV", "value": 1}, {"name": "DE", "value": 1}],
        )
        self.assertEqual(data["compliance_rate"], 50.0)

    def test_owner_stats(self) -> None:
        """Test per-owner statistics."""
        controls = [
            control(owner="Acme", compliant=True),
            control(owner="Acme"),
            control(owner="Contoso"),
        ]

        per_owner = compute_owner_stats(controls)

        self.assertEqual(list(per_owner), ["Acme", "Contoso"])
        self.assertEqual(per_owner["Acme"].compliance_rate, 50.0)
        self.assertEqual(per_owner["Contoso"].total_controls, 1)


if __name__ == "__main__":
    unittest.main()
