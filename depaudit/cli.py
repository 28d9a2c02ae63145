"""CLI entry point: dep-audit.

Subcommands:
    dep-audit scan                # inventory + lockfile reconciliation
    dep-audit unused              # unused dependencies (depcheck)
    dep-audit update [--safe]     # update suggestions
    dep-audit risk                # health / risk scoring
    dep-audit dependabot          # why Dependabot PRs may fail
    dep-audit fix [--dry-run]     # planned fix commands
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import click
from rich.console import RenderableType

from depaudit import __version__
from depaudit.core.config import Settings, load_settings
from depaudit.core.logging import setup_logging
from depaudit.engines.lockfile.loader import load_graph, log_warnings
from depaudit.engines.lockfile.models import DependencyGraph
from depaudit.exceptions import DepAuditError
from depaudit.reports import render
from depaudit.reports.dependabot import DependabotExplainer
from depaudit.reports.fixes import FixPlanner
from depaudit.reports.risk import RiskAuditor
from depaudit.reports.scan import scan
from depaudit.reports.unused import UnusedDetector
from depaudit.reports.updates import UpdateAdvisor
from depaudit.services.depcheck import DepcheckClient
from depaudit.services.package_manager import PackageManagerCLI
from depaudit.services.registry_client import NpmRegistryClient


@dataclass
class CliContext:
    project_dir: Path
    as_json: bool
    manager: str | None
    settings: Settings


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)
    sys.exit(1)


def _load(ctx: CliContext) -> DependencyGraph:
    graph = load_graph(ctx.project_dir, ctx.manager)
    log_warnings(graph)
    return graph


def _registry(ctx: CliContext) -> NpmRegistryClient:
    return NpmRegistryClient(
        registry_url=ctx.settings.registry_url,
        downloads_url=ctx.settings.downloads_url,
        timeout=ctx.settings.timeout,
    )


def _package_manager(ctx: CliContext, graph: DependencyGraph) -> PackageManagerCLI:
    return PackageManagerCLI(graph.manager, ctx.project_dir, timeout=ctx.settings.timeout)


def _explainer(ctx: CliContext, graph: DependencyGraph) -> DependabotExplainer:
    return DependabotExplainer(_package_manager(ctx, graph))


def _unused_detector(ctx: CliContext) -> UnusedDetector:
    return UnusedDetector(DepcheckClient(ctx.project_dir, timeout=max(ctx.settings.timeout, 120.0)))


def _emit(
    ctx: CliContext, result: Any, renderer: Callable[[], RenderableType], done: str
) -> None:
    if ctx.as_json:
        click.echo(render.to_json(result))
        return
    render.console.print(renderer())
    render.console.print(f"✓ {done}", style="success")


def _run(action: Callable[[], None]) -> None:
    """Run a subcommand body, turning fatal errors into exit code 1."""
    try:
        action()
    except DepAuditError as exc:
        _fail(str(exc))


@click.group()
@click.option("-j", "--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "-C",
    "--project-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Project directory containing package.json",
)
@click.option(
    "--manager",
    type=click.Choice(["npm", "yarn", "pnpm"]),
    default=None,
    help="Force a package manager instead of detecting it from the lockfile",
)
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.version_option(__version__, prog_name="dep-audit")
@click.pass_context
def main(
    ctx: click.Context,
    as_json: bool,
    project_dir: Path,
    manager: str | None,
    verbose: bool,
) -> None:
    """Advanced dependency auditor for npm/yarn/pnpm projects."""
    settings = load_settings()
    setup_logging(verbose, settings)
    ctx.obj = CliContext(
        project_dir=project_dir.resolve(),
        as_json=as_json,
        manager=manager,
        settings=settings,
    )


@main.command("scan")
@click.pass_obj
def scan_cmd(ctx: CliContext) -> None:
    """Scan package.json and lockfile."""

    def _action() -> None:
        report = scan(_load(ctx))
        _emit(ctx, report, lambda: render.render_scan(report), "Scan complete")

    _run(_action)


@main.command("unused")
@click.pass_obj
def unused_cmd(ctx: CliContext) -> None:
    """Detect unused dependencies."""

    def _action() -> None:
        graph = _load(ctx)
        names = asyncio.run(_unused_detector(ctx).find(graph))
        _emit(
            ctx, names, lambda: render.render_unused(graph.manager, names), "Unused check complete"
        )

    _run(_action)


@main.command("update")
@click.option("--safe", is_flag=True, help="Only suggest non-breaking updates")
@click.pass_obj
def update_cmd(ctx: CliContext, safe: bool) -> None:
    """Suggest safe dependency updates."""

    async def _suggest(graph: DependencyGraph) -> list:
        async with _registry(ctx) as registry:
            advisor = UpdateAdvisor(
                registry, _package_manager(ctx, graph), ctx.settings.concurrency
            )
            return await advisor.suggest(graph, safe=safe)

    def _action() -> None:
        graph = _load(ctx)
        suggestions = asyncio.run(_suggest(graph))
        _emit(
            ctx, suggestions, lambda: render.render_updates(suggestions), "Update check complete"
        )

    _run(_action)


@main.command("risk")
@click.pass_obj
def risk_cmd(ctx: CliContext) -> None:
    """Analyze dependency health & risk."""

    async def _audit(graph: DependencyGraph) -> list:
        async with _registry(ctx) as registry:
            auditor = RiskAuditor(registry, _package_manager(ctx, graph), ctx.settings.concurrency)
            return await auditor.audit(graph)

    def _action() -> None:
        graph = _load(ctx)
        results = asyncio.run(_audit(graph))
        _emit(ctx, results, lambda: render.render_risk(results), "Risk audit complete")

    _run(_action)


@main.command("dependabot")
@click.pass_obj
def dependabot_cmd(ctx: CliContext) -> None:
    """Explain why Dependabot PRs may fail."""

    def _action() -> None:
        graph = _load(ctx)
        issues = asyncio.run(_explainer(ctx, graph).explain(graph))
        _emit(
            ctx,
            {"issues": issues},
            lambda: render.render_dependabot(issues),
            "Analysis complete",
        )

    _run(_action)


@main.command("fix")
@click.option("--dry-run", is_flag=True, help="Preview fixes without applying them")
@click.pass_obj
def fix_cmd(ctx: CliContext, dry_run: bool) -> None:
    """Plan fixes for unused deps and lockfile drift (commands are printed, not run)."""

    def _action() -> None:
        graph = _load(ctx)
        planner = FixPlanner(_unused_detector(ctx), _explainer(ctx, graph))
        fixes = asyncio.run(planner.plan(graph))
        _emit(ctx, fixes, lambda: render.render_fixes(fixes, dry_run), "Fix analysis complete")

    _run(_action)


if __name__ == "__main__":
    main()
