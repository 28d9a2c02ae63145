"""Text and JSON rendering of report results."""

from __future__ import annotations

import dataclasses
import json
from enum import Enum
from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console, Group, RenderableType
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from depaudit.engines.lockfile.models import DependencyClass
from depaudit.reports.dependabot import Issue
from depaudit.reports.fixes import FixAction
from depaudit.reports.risk import HIGH, MEDIUM, RiskAssessment, summarize
from depaudit.reports.scan import ScanReport
from depaudit.reports.unused import removal_commands
from depaudit.reports.updates import MAJOR, MINOR, UpdateSuggestion

_CLASS_LABELS = {
    DependencyClass.PRODUCTION: "Dependencies",
    DependencyClass.DEVELOPMENT: "Dev Dependencies",
    DependencyClass.OPTIONAL: "Optional",
    DependencyClass.PEER: "Peer",
}


# ── JSON ──────────────────────────────────────────────────────────────────


def _jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, dict):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return value


def to_json(value: Any) -> str:
    return json.dumps(_jsonable(value), indent=2)


# ── console ───────────────────────────────────────────────────────────────

REPORT_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "high": "bold red",
        "medium": "yellow",
        "low": "green",
        "cmd": "cyan",
    }
)

# Writes to whatever sys.stdout is at print time.
console = Console(theme=REPORT_THEME, highlight=False)


# Columns holding shell commands are never wrapped.
_COMMAND_COLUMNS = {"Command", "Fix"}


def _table(*headers: str) -> Table:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold cyan", show_edge=False)
    for header in headers:
        table.add_column(header, no_wrap=header in _COMMAND_COLUMNS)
    return table


def _cell(value: Any, style: str = "") -> Text:
    return Text(str(value), style=style)


def _preview(names: list[str], limit: int = 5) -> str:
    if len(names) > limit:
        return ", ".join(names[:limit]) + "..."
    return ", ".join(names)


# ── per-report renderers ──────────────────────────────────────────────────


def render_scan(report: ScanReport) -> RenderableType:
    table = _table("Type", "Count", "Packages")
    for dep_class in DependencyClass:
        names = list(report.declared.get(dep_class, {}))
        table.add_row(_CLASS_LABELS[dep_class], str(len(names)), _cell(_preview(names)))
    locked = list(report.lockfile)
    table.add_row(f"Lockfile ({report.manager})", str(len(locked)), _cell(_preview(locked)))

    recon = report.reconciliation
    summary = (
        f"\nReconciliation: {len(recon.satisfied())} satisfied, "
        f"{len(recon.mismatched())} mismatched, {len(recon.unlocked())} unlocked"
    )
    return Group(table, Text(summary, style="info"))


def render_unused(manager: str, names: list[str]) -> RenderableType:
    if not names:
        return Text("No unused dependencies found!", style="success")
    table = _table("Package")
    for name in names:
        table.add_row(_cell(name))
    commands = [
        Text(f"  {cmd}", style="cmd") for cmd in removal_commands(manager, names)
    ]
    return Group(
        Text("Unused dependencies:", style="warning"),
        table,
        Text("\nSuggested removal commands:", style="info"),
        *commands,
    )


def _update_style(kind: str) -> str:
    if kind == MAJOR:
        return "high"
    if kind == MINOR:
        return "medium"
    return "low"


def render_updates(suggestions: list[UpdateSuggestion]) -> RenderableType:
    if not suggestions:
        return Text("All dependencies are up to date!", style="success")
    table = _table("Package", "Current", "Latest", "Type", "Command")
    for s in suggestions:
        style = _update_style(s.type)
        table.add_row(
            _cell(s.name, style),
            _cell(s.current),
            _cell(s.latest),
            _cell(f"({s.type})", style),
            _cell(s.command, "cmd"),
        )
    return table


def _risk_style(level: str) -> str:
    if level == HIGH:
        return "high"
    if level == MEDIUM:
        return "medium"
    return "low"


def render_risk(results: list[RiskAssessment]) -> RenderableType:
    if not results:
        return Text("No dependencies to audit.", style="success")
    table = _table("Package", "Risk Level", "Score", "Reasons")
    for r in sorted(results, key=lambda r: r.score, reverse=True):
        style = _risk_style(r.level)
        table.add_row(_cell(r.name), _cell(r.level, style), _cell(r.score, style), _cell(r.reason))
    counts = summarize(results)
    summary = f"\nSummary: {counts['HIGH']} HIGH, {counts['MEDIUM']} MEDIUM, {counts['LOW']} LOW"
    return Group(table, Text(summary, style="info"))


def render_dependabot(issues: list[Issue]) -> RenderableType:
    if not issues:
        return Text("No obvious Dependabot issues found!", style="success")
    table = _table("Issue", "Severity", "Message", "Fix")
    for issue in issues:
        style = "high" if issue.severity == "HIGH" else "medium"
        table.add_row(
            _cell(issue.type, style),
            _cell(issue.severity, style),
            _cell(issue.message),
            _cell(issue.fix, "cmd"),
        )
    high = sum(1 for issue in issues if issue.severity == "HIGH")
    return Group(table, Text(f"\n{high} HIGH severity issues.", style="info"))


def render_fixes(fixes: list[FixAction], dry_run: bool = False) -> RenderableType:
    if not fixes:
        return Text("No fixes needed!", style="success")
    table = _table("Fix Type", "Description", "Command")
    for f in fixes:
        table.add_row(_cell(f.type), _cell(f.description), _cell(f.command, "cmd"))
    if dry_run:
        footer = [
            Text("\nDry run mode - no changes applied", style="warning"),
            Text("Run without --dry-run to see the apply instructions", style="info"),
        ]
    else:
        footer = [
            Text("\ndep-audit never modifies packages itself.", style="warning"),
            Text("Run the commands above to apply the fixes.", style="info"),
        ]
    return Group(table, *footer)
