"""
Analysis components for dashboards, reports and the controls explorer.

Aggregation:
    Pure functions that turn the full set of controls into summary
    statistics and chart-ready series (compute_dashboard_stats and the
    per-dimension helpers it combines).

Projections:
    Illustrative gap-closure and risk burn-down series derived from the
    current counts.

Filtering:
    FilterCriteria and filter_controls for compound AND filtering.

Example:
    from csftracker.analysis import FilterCriteria, compute_dashboard_stats, filter_controls

    stats = compute_dashboard_stats(controls)
    high_gaps = filter_controls(controls, FilterCriteria(priority="High", compliance="No"))
"""

from csftracker.analysis.aggregator import (
    ComplianceGroup,
    DashboardStats,
    DomainRisk,
    MatrixPoint,
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
from csftracker.analysis.filters import FilterCriteria, filter_controls, unique_values
from csftracker.analysis.projections import (
    BurnDownPoint,
    ProjectionPoint,
    gap_closure_projection,
    month_labels,
    risk_burn_down,
)

__all__ = [
    # Aggregation
    "DashboardStats",
    "DomainRisk",
    "ComplianceGroup",
    "MatrixPoint",
    "compliance_rate",
    "priority_breakdown",
    "remediation_breakdown",
    "function_distribution",
    "domain_distribution",
    "domain_risk_ranking",
    "compliance_by_function",
    "compliance_by_domain",
    "compliance_by_category",
    "priority_matrix",
    "list_owners",
    "inconsistent_controls",
    "compute_dashboard_stats",
    "compute_owner_stats",
    "round_half_up",
    # Projections
    "ProjectionPoint",
    "BurnDownPoint",
    "gap_closure_projection",
    "risk_burn_down",
    "month_labels",
    # Filtering
    "FilterCriteria",
    "filter_controls",
    "unique_values",
]
