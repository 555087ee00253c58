"""
csftracker - NIST CSF Compliance Control Tracker

Track NIST Cybersecurity Framework controls, see where you stand, and
know what to fix next.

csftracker keeps a register of NIST CSF controls (owner, function,
category, priority, compliance and remediation status) in a local SQLite
database and turns it into dashboard statistics and reports.

Key Features:
    - Single-table control register with bulk import and full-record updates
    - Compliance rate, priority and remediation breakdowns
    - Distribution by NIST function and cybersecurity domain
    - Domain risk ranking weighted by priority
    - Gap-closure and risk burn-down projections
    - Spreadsheet (xlsx/csv) import and export, JSON exports

Design Principles:
    - Determinism: All aggregation is pure and auditable
    - Portability: One SQLite file, plain spreadsheets
    - Explicitness: One canonical control schema, no hidden global state
"""

__version__ = "0.1.0"
__author__ = ""
__email__ = ""

from csftracker.config.settings import Settings, load_config

__all__ = [
    "__version__",
    "Settings",
    "load_config",
]
