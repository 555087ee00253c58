"""
Command-line interface for csftracker.

Provides commands for all csftracker operations including initialization,
browsing and editing controls, statistics, projections, spreadsheet
import/export and demo data.

Uses Python's argparse module (no external CLI libraries).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, NoReturn

from csftracker import __version__
from csftracker.config.settings import (
    DEFAULT_CONFIG_DIR,
    MAX_HORIZON_MONTHS,
    MIN_HORIZON_MONTHS,
    ConfigurationError,
    Settings,
    get_config_path,
    load_config,
    save_config,
)
from csftracker.spreadsheet import SpreadsheetError
from csftracker.storage import ControlNotFoundError, ControlStore, StorageError
from csftracker.storage.workspace import ControlWorkspace

# Set up logging
logger = logging.getLogger(__name__)

# Global verbosity settings (set during main() based on args)
_quiet_mode = False
_verbose_level = 0


def set_output_mode(quiet: bool = False, verbose: int = 0) -> None:
    """
    Set the output mode for the CLI.

    Args:
        quiet: If True, suppress non-essential output.
        verbose: Verbosity level (0=normal, 1+=verbose).
    """
    global _quiet_mode, _verbose_level
    _quiet_mode = quiet
    _verbose_level = verbose


def output(message: str = "", force: bool = False) -> None:
    """
    Print a message to stdout, respecting quiet mode.

    Args:
        message: The message to print.
        force: If True, print even in quiet mode (for essential output like JSON/CSV).
    """
    if force or not _quiet_mode:
        print(message)


def output_verbose(message: str, level: int = 1) -> None:
    """Print a verbose message only if verbosity is high enough."""
    if _verbose_level >= level and not _quiet_mode:
        print(message)


def output_error(message: str) -> None:
    """Print an error message (always shown, even in quiet mode)."""
    print(message, file=sys.stderr)


def format_as_csv(headers: list[str], rows: list[list[Any]]) -> str:
    """
    Format data as CSV string.

    Args:
        headers: Column headers.
        rows: List of row data (each row is a list of values).

    Returns:
        CSV formatted string.
    """
    import csv
    import io

    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 3] + "..."


def _bar(value: float, width: int = 30) -> str:
    filled = int(round(max(0.0, min(value, 100.0)) / 100 * width))
    return "#" * filled + "." * (width - filled)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for csftracker CLI."""
    parser = argparse.ArgumentParser(
        prog="csftracker",
        description="NIST CSF compliance control tracker",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"csftracker {__version__}",
    )

    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Override config file location (default: ~/.csftracker/config.yaml)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase output verbosity (can be repeated)",
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        dest="command",
        metavar="<command>",
    )

    # info command
    info_parser = subparsers.add_parser(
        "info",
        help="Show system information and diagnostics",
        description="Display version, configuration paths and database statistics.",
    )
    info_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    info_parser.set_defaults(func=cmd_info)

    # init command
    init_parser = subparsers.add_parser(
        "init",
        help="Initialize csftracker configuration",
        description="Create the config directory, a default config file and the database.",
    )
    init_parser.set_defaults(func=cmd_init)

    # list command
    list_parser = subparsers.add_parser(
        "list",
        help="List controls",
        description="List controls matching all of the given filters.",
    )
    list_parser.add_argument("--search", metavar="TEXT", help="Search description, sub-category and risks")
    list_parser.add_argument("--function", metavar="NAME", help="Filter by NIST function label")
    list_parser.add_argument("--priority", choices=["High", "Medium", "Low"], help="Filter by priority")
    list_parser.add_argument(
        "--status",
        choices=["Not Started", "In Progress", "Completed"],
        help="Filter by remediation status",
    )
    compliance_group = list_parser.add_mutually_exclusive_group()
    compliance_group.add_argument(
        "--compliant",
        dest="compliance",
        action="store_const",
        const="Yes",
        help="Only controls meeting criteria",
    )
    compliance_group.add_argument(
        "--non-compliant",
        dest="compliance",
        action="store_const",
        const="No",
        help="Only controls not meeting criteria",
    )
    list_parser.add_argument("--owner", metavar="NAME", help="Filter by owner")
    list_parser.add_argument("--domain", metavar="NAME", help="Filter by cybersecurity domain")
    list_parser.add_argument(
        "--format",
        choices=["table", "json", "csv"],
        default="table",
        help="Output format (default: table)",
    )
    list_parser.set_defaults(func=cmd_list)

    # show command
    show_parser = subparsers.add_parser(
        "show",
        help="Show one control",
        description="Show every field of one control.",
    )
    show_parser.add_argument("id", type=int, help="Control ID")
    show_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    show_parser.set_defaults(func=cmd_show)

    # update command
    update_parser = subparsers.add_parser(
        "update",
        help="Update one control",
        description="Change fields of one control. Fields not given are kept.",
    )
    update_parser.add_argument("id", type=int, help="Control ID")
    update_parser.add_argument("--owner", metavar="NAME")
    update_parser.add_argument("--function", metavar="NAME")
    update_parser.add_argument("--priority", metavar="LEVEL", help="High, Medium or Low")
    update_parser.add_argument("--status", metavar="STATUS", help="Not Started, In Progress or Completed")
    update_parser.add_argument("--meets-criteria", metavar="YES_NO", help="Yes or No")
    update_parser.add_argument("--domain", metavar="NAME")
    update_parser.add_argument("--description", metavar="TEXT")
    update_parser.add_argument("--risks", metavar="TEXT")
    update_parser.add_argument("--risk-details", metavar="TEXT")
    update_parser.set_defaults(func=cmd_update)

    # delete command
    delete_parser = subparsers.add_parser(
        "delete",
        help="Delete one control",
    )
    delete_parser.add_argument("id", type=int, help="Control ID")
    delete_parser.set_defaults(func=cmd_delete)

    # clear command
    clear_parser = subparsers.add_parser(
        "clear",
        help="Delete every control",
    )
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deleting all controls",
    )
    clear_parser.set_defaults(func=cmd_clear)

    # stats command
    stats_parser = subparsers.add_parser(
        "stats",
        help="Show dashboard statistics",
        description="Compliance rate, breakdowns, distributions and domain risk ranking.",
    )
    stats_parser.add_argument("--owner", metavar="NAME", help="Limit to one owner")
    stats_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    stats_parser.set_defaults(func=cmd_stats)

    # report command
    report_parser = subparsers.add_parser(
        "report",
        help="Show the compliance report",
        description="Compliance by NIST function, cybersecurity domain and category.",
    )
    report_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    report_parser.set_defaults(func=cmd_report)

    # projection command
    projection_parser = subparsers.add_parser(
        "projection",
        help="Show gap-closure or risk burn-down projection",
        description="Illustrative projection computed from current counts, not history.",
    )
    projection_parser.add_argument(
        "--kind",
        choices=["gap-closure", "burn-down"],
        default="gap-closure",
        help="Projection type (default: gap-closure)",
    )
    projection_parser.add_argument(
        "--months",
        type=int,
        metavar="N",
        help=f"Months to project ({MIN_HORIZON_MONTHS}-{MAX_HORIZON_MONTHS})",
    )
    projection_parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    projection_parser.set_defaults(func=cmd_projection)

    # import command
    import_parser = subparsers.add_parser(
        "import",
        help="Import controls from a spreadsheet",
        description="Import controls from an .xlsx or .csv file. Any invalid row aborts the import.",
    )
    import_parser.add_argument("file", type=Path, help="Spreadsheet to import")
    import_parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace all existing controls instead of adding",
    )
    import_parser.set_defaults(func=cmd_import)

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export controls to a spreadsheet",
        description="Export every control to an .xlsx or .csv file (format from the suffix).",
    )
    export_parser.add_argument("file", type=Path, help="Destination file")
    export_parser.set_defaults(func=cmd_export)

    # export-json command
    export_json_parser = subparsers.add_parser(
        "export-json",
        help="Export statistics and controls as JSON",
    )
    export_json_parser.add_argument(
        "--type",
        choices=["dashboard", "compliance"],
        default="dashboard",
        help="Export type (default: dashboard)",
    )
    export_json_parser.add_argument(
        "--output",
        type=Path,
        metavar="PATH",
        help="Output directory or .json file (default: reporting.output_dir)",
    )
    export_json_parser.add_argument("--owner", metavar="NAME", help="Limit to one owner")
    export_json_parser.add_argument(
        "--compress",
        action="store_true",
        help="Gzip compress the output",
    )
    export_json_parser.set_defaults(func=cmd_export_json)

    # demo command
    demo_parser = subparsers.add_parser(
        "demo",
        help="Load sample controls",
        description="Generate sample controls for evaluation.",
    )
    demo_parser.add_argument(
        "--profile",
        choices=["startup", "growing", "mature"],
        default="growing",
        help="Organization profile (default: growing)",
    )
    demo_parser.add_argument(
        "--count",
        type=int,
        default=50,
        metavar="N",
        help="Number of controls (default: 50)",
    )
    demo_parser.add_argument("--seed", type=int, metavar="N", help="Random seed")
    demo_parser.add_argument(
        "--replace",
        action="store_true",
        help="Replace all existing controls instead of adding",
    )
    demo_parser.set_defaults(func=cmd_demo)

    return parser


def setup_logging(verbose: int, quiet: bool) -> None:
    """Configure logging based on verbosity level."""
    if quiet:
        level = logging.WARNING
    elif verbose == 0:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config) if args.config else None
    return load_config(config_path)


def _open_workspace(settings: Settings) -> ControlWorkspace:
    """Open the store and load every control, raising StorageError on failure."""
    store = ControlStore(Path(settings.data_dir).expanduser())
    workspace = ControlWorkspace(store)
    if not workspace.refresh():
        raise StorageError(workspace.error)
    return workspace


def cmd_info(args: argparse.Namespace) -> int:
    """Show system information and diagnostics."""
    import platform as platform_module

    config_path = Path(args.config) if args.config else get_config_path()
    info: dict[str, Any] = {
        "version": __version__,
        "python_version": platform_module.python_version(),
        "platform": platform_module.platform(),
        "config_path": str(config_path),
        "config_exists": config_path.exists(),
        "data_dir": None,
        "storage": None,
    }

    try:
        settings = load_config(config_path)
        info["data_dir"] = str(Path(settings.data_dir).expanduser())

        try:
            store = ControlStore(Path(settings.data_dir).expanduser())
            stats = store.get_statistics()
            stats["connection_ok"] = store.test_connection()
            info["storage"] = stats
        except StorageError as e:
            info["storage"] = {"error": str(e)}

    except ConfigurationError as e:
        info["config_error"] = str(e)

    if args.json:
        output(json.dumps(info, indent=2, default=str), force=True)
        return 0

    output("csftracker System Information")
    output("=" * 60)
    output()
    output(f"Version: {info['version']}")
    output(f"Python: {info['python_version']}")
    output(f"Platform: {info['platform']}")
    output()
    output("Paths:")
    output(f"  Config file: {info['config_path']} ({'found' if info['config_exists'] else 'not found'})")
    if info["data_dir"]:
        output(f"  Data directory: {info['data_dir']}")
    if "config_error" in info:
        output(f"  Config error: {info['config_error']}")
    output()

    storage = info["storage"]
    if storage and "error" not in storage:
        output("Database:")
        output(f"  Path: {storage['database_path']}")
        output(f"  Size: {storage['database_size_bytes'] / 1024:.1f} KB")
        output(f"  Connection: {'OK' if storage['connection_ok'] else 'FAILED'}")
        output(f"  Controls: {storage['total_controls']:,}")
        output(f"  Compliant: {storage['compliant_controls']:,}")
        output(f"  Owners: {storage['owners']}")
        if storage["controls_by_function"]:
            output("  By function:")
            for code, count in sorted(storage["controls_by_function"].items()):
                output(f"    {code or '(none)'}: {count}")
        if storage["last_updated"]:
            output(f"  Last updated: {storage['last_updated']}")
    elif storage:
        output(f"Database error: {storage['error']}")

    return 0


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize csftracker configuration."""
    output("csftracker Initialization")
    output("=" * 50)
    output()

    config_path = Path(args.config) if args.config else get_config_path()

    if config_path.exists():
        output(f"Configuration already exists: {config_path}")
    else:
        save_config(Settings(), config_path)
        output(f"Created configuration file: {config_path}")

    settings = load_config(config_path)
    store = ControlStore(Path(settings.data_dir).expanduser())
    output(f"Database ready: {store.db_path}")
    output(f"  Controls stored: {store.count()}")
    output()
    output("Next steps:")
    output("  1. Run 'csftracker import FILE' to load your controls")
    output("     or 'csftracker demo' to load sample controls")
    output("  2. Run 'csftracker stats' to see the dashboard")
    output()
    output(f"Default config directory: {DEFAULT_CONFIG_DIR}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """List controls matching the filters."""
    from csftracker.analysis import FilterCriteria

    settings = _load_settings(args)
    workspace = _open_workspace(settings)

    criteria = FilterCriteria(
        search=args.search,
        nist_function=args.function,
        priority=args.priority,
        status=args.status,
        compliance=args.compliance,
        owner=args.owner,
        domain=args.domain,
    )
    controls = workspace.filtered(criteria)
    output_verbose(f"Filters: {criteria.to_dict() or 'none'}")

    if args.format == "json":
        output(json.dumps([c.to_dict() for c in controls], indent=2), force=True)
    elif args.format == "csv":
        headers = ["ID", "Owner", "Function", "Sub-Category", "Priority", "Domain", "Meets Criteria", "Status"]
        rows = [
            [
                c.id,
                c.owner,
                c.nist_function,
                c.nist_subcategory_id,
                c.assessment_priority.value,
                c.cybersecurity_domain,
                c.meets_criteria.value,
                c.remediation_status.value,
            ]
            for c in controls
        ]
        output(format_as_csv(headers, rows), force=True)
    else:
        output(f"{'ID':>5}  {'Owner':20}  {'Function':10}  {'Sub-Category':30}  {'Priority':8}  {'Meets':5}  Status")
        output("-" * 100)
        for c in controls:
            output(
                f"{c.id:>5}  {_truncate(c.owner, 20):20}  {_truncate(c.nist_function, 10):10}  "
                f"{_truncate(c.nist_subcategory_id, 30):30}  {c.assessment_priority.value:8}  "
                f"{c.meets_criteria.value:5}  {c.remediation_status.value}"
            )
        output()
        output(f"{len(controls)} of {len(workspace.controls)} controls")

    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Show every field of one control."""
    settings = _load_settings(args)
    store = ControlStore(Path(settings.data_dir).expanduser())

    try:
        control = store.get(args.id)
    except ControlNotFoundError as e:
        output_error(str(e))
        return 1

    data = control.to_dict()
    if args.format == "json":
        output(json.dumps(data, indent=2), force=True)
        return 0

    width = max(len(key) for key in data)
    for key, value in data.items():
        output(f"{key:{width}}  {'' if value is None else value}")
    return 0


def cmd_update(args: argparse.Namespace) -> int:
    """Update fields of one control."""
    from csftracker.storage import Control, ControlValidationError, RemediationStatus

    settings = _load_settings(args)
    workspace = _open_workspace(settings)

    try:
        control = workspace.store.get(args.id)
    except ControlNotFoundError as e:
        output_error(str(e))
        return 1

    changes = {
        "owner": args.owner,
        "nistFunction": args.function,
        "assessmentPriority": args.priority,
        "remediationStatus": args.status,
        "meetsCriteria": args.meets_criteria,
        "cybersecurityDomain": args.domain,
        "controlDescription": args.description,
        "identifiedRisks": args.risks,
        "riskDetails": args.risk_details,
    }
    changes = {key: value for key, value in changes.items() if value is not None}
    if not changes:
        output_error("Nothing to update. Give at least one field option.")
        return 1

    try:
        updated = Control.from_dict({**control.to_dict(), **changes})
    except ControlValidationError as e:
        output_error(f"Invalid value: {e}")
        return 1

    if not workspace.update_control(updated):
        output_error(workspace.error or "Update failed")
        return 1

    output(f"Updated control {args.id}: {', '.join(sorted(changes))}")
    if updated.is_compliant and updated.remediation_status != RemediationStatus.COMPLETED:
        output("Note: control meets criteria but remediation is not Completed")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete one control."""
    settings = _load_settings(args)
    workspace = _open_workspace(settings)

    if not workspace.delete_control(args.id):
        output_error(workspace.error or "Delete failed")
        return 1

    output(f"Deleted control {args.id}")
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    """Delete every control."""
    if not args.yes:
        output_error("Refusing to delete all controls without --yes")
        return 1

    settings = _load_settings(args)
    workspace = _open_workspace(settings)
    count = len(workspace.controls)

    if not workspace.clear():
        output_error(workspace.error or "Clear failed")
        return 1

    output(f"Deleted {count} controls")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Show dashboard statistics."""
    from csftracker.analysis import compute_dashboard_stats
    from csftracker.nist import FUNCTION_DISPLAY_NAMES

    settings = _load_settings(args)
    workspace = _open_workspace(settings)
    limit = settings.analysis.domain_ranking_limit

    controls = workspace.controls
    if args.owner:
        controls = [c for c in controls if c.owner == args.owner]
    stats = compute_dashboard_stats(controls, ranking_limit=limit)

    if args.format == "json":
        data = stats.to_dict()
        data["owner"] = args.owner
        output(json.dumps(data, indent=2), force=True)
        return 0

    output()
    title = "NIST CSF Control Dashboard"
    if args.owner:
        title += f" - {args.owner}"
    output(title)
    output("=" * 70)
    output()

    if stats.total_controls == 0:
        output("No controls found. Run 'csftracker import FILE' or 'csftracker demo' first.")
        return 0

    output(f"Total controls: {stats.total_controls}")
    output(f"Compliance rate: {stats.compliance_rate:.1f}%  [{_bar(stats.compliance_rate)}]")
    output(f"  Compliant: {stats.compliant_controls}  Non-compliant: {stats.non_compliant_controls}")
    output()

    output("Open Gaps by Priority:")
    for priority, count in stats.priority_breakdown.items():
        output(f"  {priority:12} {count}")
    output()

    output("Remediation Status:")
    for status, count in stats.remediation_breakdown.items():
        output(f"  {status:12} {count}")
    output()

    output("Controls by NIST Function:")
    for code, count in stats.function_distribution.items():
        name = FUNCTION_DISPLAY_NAMES.get(code, code)
        output(f"  {code:4} {name:12} {count}")
    output()

    if stats.domain_risk_ranking:
        output(f"Top {len(stats.domain_risk_ranking)} Risk Domains (High x3, Medium x2, Low x1):")
        for risk in stats.domain_risk_ranking:
            output(
                f"  {_truncate(risk.domain, 28):28} score {risk.score:3}  "
                f"(H {risk.high}, M {risk.medium}, L {risk.low})"
            )
        output()

    if stats.inconsistent_controls:
        output(
            f"Warning: {stats.inconsistent_controls} controls meet criteria "
            f"but remediation is not Completed"
        )

    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Show the compliance report."""
    from csftracker.analysis import (
        compliance_by_category,
        compliance_by_domain,
        compliance_by_function,
    )

    settings = _load_settings(args)
    workspace = _open_workspace(settings)
    controls = workspace.controls

    sections = {
        "by_function": compliance_by_function(controls),
        "by_domain": compliance_by_domain(controls),
        "by_category": compliance_by_category(controls),
    }

    if args.format == "json":
        data = {name: [g.to_dict() for g in groups] for name, groups in sections.items()}
        output(json.dumps(data, indent=2), force=True)
        return 0

    titles = {
        "by_function": "Compliance by NIST Function",
        "by_domain": "Compliance by Cybersecurity Domain",
        "by_category": "Compliance by NIST Category (top 10)",
    }
    output()
    output("NIST CSF Compliance Report")
    output("=" * 70)
    for name, groups in sections.items():
        output()
        output(titles[name])
        output("-" * 70)
        if not groups:
            output("  No data")
            continue
        for g in groups:
            output(
                f"  {_truncate(g.name, 34):34} {g.compliant:4}/{g.total:<4} "
                f"{g.compliance_rate:3}%  [{_bar(g.compliance_rate, 20)}]"
            )
    return 0


def cmd_projection(args: argparse.Namespace) -> int:
    """Show a gap-closure or risk burn-down projection."""
    from csftracker.analysis import gap_closure_projection, priority_breakdown, risk_burn_down

    settings = _load_settings(args)
    proj = settings.projections

    if args.kind == "gap-closure":
        months = args.months or proj.horizon_months
    else:
        months = args.months or MAX_HORIZON_MONTHS
    if not MIN_HORIZON_MONTHS <= months <= MAX_HORIZON_MONTHS:
        output_error(f"--months must be between {MIN_HORIZON_MONTHS} and {MAX_HORIZON_MONTHS}")
        return 1

    workspace = _open_workspace(settings)
    gaps = priority_breakdown(workspace.controls)

    points: list[Any]
    if args.kind == "gap-closure":
        points = gap_closure_projection(
            sum(gaps.values()),
            closure_rate=proj.closure_rate,
            months=months,
            target_rate=proj.target_rate,
        )
        headers = ["Month", "Remaining", "Closed", "Target"]
    else:
        points = risk_burn_down(
            gaps["High"],
            gaps["Medium"],
            gaps["Low"],
            months=months,
            reduction=proj.burn_down_rate,
            target_reduction=proj.burn_down_target_rate,
        )
        headers = ["Month", "High", "Medium", "Low", "Total", "Target"]

    if args.format == "json":
        output(json.dumps([p.to_dict() for p in points], indent=2), force=True)
        return 0

    output()
    output(f"{'Gap Closure' if args.kind == 'gap-closure' else 'Risk Burn-Down'} Projection")
    output("(illustrative, computed from current counts)")
    output("=" * 60)
    output("".join(f"{h:>10}" for h in headers))
    for point in points:
        output("".join(f"{v:>10}" for v in point.to_dict().values()))
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    """Import controls from a spreadsheet."""
    from csftracker.spreadsheet import import_controls

    settings = _load_settings(args)
    controls = import_controls(args.file)
    workspace = _open_workspace(settings)

    if args.replace:
        ok = workspace.replace_controls(controls)
    else:
        ok = workspace.add_controls(controls)

    if not ok:
        output_error(workspace.error or "Import failed")
        return 1

    action = "Replaced all controls with" if args.replace else "Imported"
    output(f"{action} {len(controls)} controls from {args.file}")
    output(f"Controls stored: {len(workspace.controls)}")
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    """Export controls to a spreadsheet."""
    from csftracker.spreadsheet import export_controls

    settings = _load_settings(args)
    workspace = _open_workspace(settings)

    count = export_controls(workspace.controls, args.file)
    output(f"Exported {count} controls to {args.file}")
    return 0


def cmd_export_json(args: argparse.Namespace) -> int:
    """Export statistics and controls as JSON."""
    from csftracker.reports import JsonExporter

    settings = _load_settings(args)
    workspace = _open_workspace(settings)

    output_path = args.output or Path(settings.reporting.output_dir).expanduser()
    filename = None
    if output_path.suffix in (".json", ".gz"):
        filename = output_path.name
        output_path = output_path.parent

    exporter = JsonExporter(
        version=__version__,
        organization=settings.reporting.organization_name,
    )
    if args.type == "compliance":
        result = exporter.export_compliance(
            workspace.controls,
            output_path,
            compress=args.compress,
            owner=args.owner,
            filename=filename,
        )
    else:
        result = exporter.export_dashboard(
            workspace.controls,
            output_path,
            compress=args.compress,
            owner=args.owner,
            filename=filename,
        )

    if not result.success:
        output_error(f"Export failed: {result.error}")
        return 1

    output(f"Exported {result.record_count} records to {result.path}")
    output_verbose(f"  Size: {result.size_bytes:,} bytes")
    return 0


def cmd_demo(args: argparse.Namespace) -> int:
    """Load sample controls for quick evaluation."""
    from csftracker.demo import DemoConfig, DemoGenerator, DemoProfile

    if args.count < 0:
        output_error("--count must not be negative")
        return 1

    settings = _load_settings(args)

    output("csftracker Demo Data Generator")
    output("=" * 50)
    output()
    output(f"Profile: {args.profile}")
    output(f"Controls: {args.count}")
    if args.seed is not None:
        output(f"Seed: {args.seed}")
    output()

    generator = DemoGenerator(
        DemoConfig(profile=DemoProfile(args.profile), count=args.count, seed=args.seed)
    )
    store = ControlStore(Path(settings.data_dir).expanduser())
    summary = generator.generate(store, replace=args.replace)

    output("Demo data generated successfully!")
    output()
    output("Summary:")
    output(f"  Controls: {summary['controls']}")
    output(f"  Compliant: {summary['compliant']}")
    output(f"  Non-compliant: {summary['non_compliant']}")
    for owner, count in summary["by_owner"].items():
        output(f"  {owner}: {count}")
    output()
    output("Next steps:")
    output("  1. Run 'csftracker stats' to see the dashboard")
    output("  2. Run 'csftracker report' to see compliance by function and domain")
    output("  3. Run 'csftracker list --non-compliant --priority High' to see urgent gaps")
    return 0


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for csftracker CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Set up logging and output mode
    setup_logging(args.verbose, args.quiet)
    set_output_mode(args.quiet, args.verbose)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    try:
        exit_code = args.func(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        output("\nOperation cancelled.")
        sys.exit(130)
    except ConfigurationError as e:
        output_error(f"Configuration error: {e}")
        sys.exit(2)
    except SpreadsheetError as e:
        output_error(f"Spreadsheet error: {e}")
        sys.exit(1)
    except StorageError as e:
        output_error(f"Storage error: {e}")
        sys.exit(1)
    except Exception as e:
        if args.verbose > 0:
            raise
        output_error(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
