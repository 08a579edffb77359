"""Main CLI for agent-foreman."""

import asyncio
import json
import sys
from datetime import date
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import load_config
from ..core.feature import (
    Feature,
    FeatureStatus,
    FeatureVerificationSummary,
    TDDMode,
)
from ..core.feature_list import (
    FeatureListError,
    FeatureNotFoundError,
    add_feature,
    create_empty_feature_list,
    find_feature_by_id,
    get_completion_percentage,
    get_feature_stats,
    load_feature_list,
    save_feature_list,
    select_next_feature,
    update_feature_status,
    update_feature_verification,
)
from ..core.impact import (
    analyze_impact,
    apply_impact_recommendations,
    get_blocking_features,
    get_dependency_depth,
    get_full_impact_chain,
    get_ready_features,
    sort_by_dependency_order,
    would_create_circular_dependency,
)
from ..core.progress_log import (
    append_progress_log,
    create_change_entry,
    create_init_entry,
    create_step_entry,
    create_verify_entry,
    get_recent_entries,
)
from ..errors.translator import ErrorTranslator
from ..gitignore import GitignoreTemplateClient, detect_templates, ensure_gitignore, verify_bundled_templates
from ..roles import RoleAggregator, parse_roles_option, run_multi_role_analysis, save_analysis
from ..tdd.guidance import generate_tdd_guidance
from ..utils.rich_logging import setup_logging
from ..verifier import (
    FullCheckOptions,
    LayeredCheckOptions,
    run_full_check,
    run_layered_check,
)
from ..verifier.capabilities import detect_capabilities
from ..verifier.git_diff import GitError, get_changed_files
from ..verifier.models import CheckKind
from ..verifier.store import get_last_verification, get_verification_stats


console = Console()

STATUS_STYLES = {
    "passing": "green",
    "failing": "yellow",
    "needs_review": "magenta",
    "blocked": "red",
    "failed": "red",
    "deprecated": "dim",
}

TDD_MODE_HELP = {
    "strict": "Tests are required; checks fail when they are missing",
    "recommended": "Tests are suggested; missing tests only produce warnings",
    "disabled": "No TDD guidance is shown",
}


def _exit_with_error(error: Exception) -> None:
    translator = ErrorTranslator()
    console.print(translator.format_for_cli(translator.translate(error)))
    sys.exit(1)


def _load_features_or_exit(workspace: Path):
    try:
        feature_list = load_feature_list(workspace)
    except FeatureListError as e:
        _exit_with_error(e)
    if feature_list is None:
        _exit_with_error(FeatureListError("No feature list found; run agent-foreman init first"))
    return feature_list


def _print_feature(feature: Feature) -> None:
    style = STATUS_STYLES.get(feature.status, "white")
    console.print(f"[bold]{escape(feature.id)}[/] [{style}]({feature.status})[/]")
    console.print(f"  {escape(feature.description)}")
    console.print(f"  Module: {escape(feature.module or '-')}  Priority: {feature.priority}")
    if feature.depends_on:
        console.print(f"  Depends on: {', '.join(feature.depends_on)}")
    if feature.acceptance:
        console.print("  [bold]Acceptance criteria:[/]")
        for i, criterion in enumerate(feature.acceptance, 1):
            console.print(f"    {i}. {escape(criterion)}")
    if feature.notes:
        console.print(f"  [dim]Notes: {escape(feature.notes)}[/]")


@click.group()
@click.option("--workspace", "-w", default=".", help="Project directory")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx, workspace, verbose):
    """agent-foreman - feature tracking and verification harness for AI coding agents."""
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = Path(workspace)
    ctx.obj["verbose"] = verbose
    setup_logging(Path(workspace), verbose=verbose)


@cli.command()
@click.argument("goal")
@click.option("--mode", type=click.Choice(["merge", "new", "scan"]), default="merge", help="How to treat an existing feature list")
@click.option("--roles", default=None, help="Run requirement analysis: 'all' or e.g. 'pm,qa'")
@click.pass_context
def init(ctx, goal, mode, roles):
    """Initialize the harness for a project goal."""
    workspace = ctx.obj["workspace"]
    console.print(f"[bold green]Initializing agent-foreman ({mode} mode)...[/]")

    if mode == "scan":
        capabilities = detect_capabilities(workspace, load_config(workspace).checks)
        table = Table(title="Detected capabilities")
        table.add_column("Check")
        table.add_column("Command")
        table.add_column("Source")
        for kind, capability in capabilities.items():
            table.add_row(kind.label, capability.command or "[dim]unavailable[/]", capability.source)
        console.print(table)
        templates = detect_templates(workspace)
        console.print(f"Gitignore templates: {', '.join(templates) or 'none detected'}")
        return

    try:
        existing = load_feature_list(workspace)
    except FeatureListError as e:
        if mode != "new":
            _exit_with_error(e)
        existing = None

    if mode == "new" or existing is None:
        feature_list = create_empty_feature_list(goal)
    else:
        feature_list = existing
        feature_list.metadata.project_goal = goal
    save_feature_list(workspace, feature_list)
    console.print(f"  Feature list: ai/feature_list.json ({len(feature_list.features)} features)")

    gitignore = ensure_gitignore(workspace, client=GitignoreTemplateClient(load_config(workspace).gitignore))
    if gitignore.success:
        console.print(f"  .gitignore: {gitignore.action}")
    else:
        console.print(f"[yellow]  .gitignore not updated: {gitignore.reason}[/]")

    append_progress_log(workspace, create_init_entry(goal, f"mode={mode}, features={len(feature_list.features)}"))

    if roles:
        result = asyncio.run(run_multi_role_analysis(goal, parse_roles_option(roles)))
        written = save_analysis(result, workspace / "ai" / "requirements")
        console.print(f"  Requirement analysis: {len(written)} files in ai/requirements/")
        if not result.success:
            console.print(f"[yellow]  Some roles failed: {escape(result.error)}[/]")

    console.print("[green]✓ Initialization complete![/]")
    console.print("\nNext steps:")
    console.print("1. Add features with 'agent-foreman add'")
    console.print("2. Run 'agent-foreman next' to pick the first one")


@cli.command()
@click.argument("feature_id")
@click.option("--description", "-d", required=True, help="What the feature does")
@click.option("--module", "-m", required=True, help="Module the feature belongs to")
@click.option("--priority", "-p", default=10, help="Lower runs sooner")
@click.option("--acceptance", "-a", multiple=True, help="Acceptance criterion (repeatable)")
@click.option("--depends-on", multiple=True, help="Feature this one depends on (repeatable)")
@click.pass_context
def add(ctx, feature_id, description, module, priority, acceptance, depends_on):
    """Add a feature to the list."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)

    for dep in depends_on:
        if find_feature_by_id(feature_list.features, dep) is None:
            console.print(f"[red]Unknown dependency: {dep}[/]")
            sys.exit(1)
        if would_create_circular_dependency(feature_list.features, feature_id, dep):
            console.print(f"[red]Adding {dep} as a dependency would create a cycle[/]")
            sys.exit(1)

    feature = Feature(
        id=feature_id,
        description=description,
        module=module,
        priority=priority,
        acceptance=list(acceptance),
        depends_on=list(depends_on),
    )
    try:
        add_feature(feature_list, feature)
    except ValueError as e:
        console.print(f"[red]{escape(str(e))}[/]")
        sys.exit(1)
    save_feature_list(workspace, feature_list)
    append_progress_log(workspace, create_change_entry(feature_id, "add", f"Added {feature_id}"))
    console.print(f"[green]✓ Added {feature_id}[/]")


def _status_payload(workspace: Path, feature_list) -> dict:
    features = feature_list.features
    stats = get_feature_stats(features)
    next_feature = select_next_feature(features)
    return {
        "goal": feature_list.metadata.project_goal,
        "updatedAt": feature_list.metadata.updated_at,
        "stats": {
            "passing": stats["passing"],
            "failing": stats["failing"],
            "needsReview": stats["needs_review"],
            "blocked": stats["blocked"],
            "failed": stats["failed"],
            "deprecated": stats["deprecated"],
            "total": len(features),
        },
        "completion": get_completion_percentage(features),
        "ready": [f.id for f in sort_by_dependency_order(get_ready_features(features))],
        "verification": get_verification_stats(workspace),
        "recentActivity": [
            {"type": e.type, "timestamp": e.timestamp, "summary": e.summary}
            for e in get_recent_entries(workspace, 5)
        ],
        "nextFeature": {
            "id": next_feature.id,
            "description": next_feature.description,
            "status": next_feature.status,
        } if next_feature else None,
    }


@cli.command()
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.option("--quiet", "-q", is_flag=True, help="One-line summary")
@click.pass_context
def status(ctx, as_json, quiet):
    """Show project progress."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)
    payload = _status_payload(workspace, feature_list)

    if as_json:
        click.echo(json.dumps(payload, indent=2))
        return

    stats = payload["stats"]
    completion = payload["completion"]
    if quiet:
        console.print(f"{completion}% complete | {stats['passing']}/{stats['total']} passing")
        return

    console.print(f"[bold]Goal:[/] {payload['goal']}")
    console.print(f"[dim]Last updated: {payload['updatedAt']}[/]\n")

    table = Table()
    table.add_column("Status")
    table.add_column("Count", justify="right")
    table.add_row("[green]Passing[/]", str(stats["passing"]))
    table.add_row("[yellow]Failing[/]", str(stats["failing"]))
    table.add_row("[magenta]Needs review[/]", str(stats["needsReview"]))
    table.add_row("[red]Blocked[/]", str(stats["blocked"]))
    table.add_row("[red]Failed[/]", str(stats["failed"]))
    table.add_row("[dim]Deprecated[/]", str(stats["deprecated"]))
    table.add_row("[bold]Total[/]", str(stats["total"]))
    console.print(table)

    filled = round(completion / 100 * 30)
    console.print(f"Completion: [green]{'█' * filled}[/]{'░' * (30 - filled)} {completion}%")

    verification = payload["verification"]
    if verification["total"]:
        console.print(
            f"Verified: {verification['total']} features "
            f"([green]{verification['passing']} pass[/], [red]{verification['failing']} fail[/], "
            f"[magenta]{verification['needs_review']} review[/])"
        )
    if payload["ready"]:
        console.print(f"Ready to start: {', '.join(payload['ready'][:5])}")

    if payload["nextFeature"]:
        nxt = payload["nextFeature"]
        console.print(f"\n[bold]Next up:[/] {escape(nxt['id'])} - {escape(nxt['description'])}")
    else:
        console.print("\n[green]All features are passing or blocked[/]")

    if payload["recentActivity"]:
        console.print("\n[bold]Recent activity:[/]")
        for entry in payload["recentActivity"]:
            console.print(f"  [dim]{entry['timestamp']}[/] {entry['type']}: {escape(entry['summary'])}")


@cli.command("next")
@click.argument("feature_id", required=False)
@click.option("--dry-run", is_flag=True, help="Only show which feature would be picked")
@click.pass_context
def next_feature(ctx, feature_id, dry_run):
    """Show the next feature to work on."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)

    if feature_id:
        feature = find_feature_by_id(feature_list.features, feature_id)
        if feature is None:
            _exit_with_error(FeatureNotFoundError(feature_id))
    else:
        feature = select_next_feature(feature_list.features)
        if feature is None:
            console.print("[green]✓ All features are passing or blocked[/]")
            return

    _print_feature(feature)
    blockers = get_blocking_features(feature_list.features, feature.id)
    if blockers:
        console.print(f"  [yellow]Waiting on: {', '.join(f.id for f in blockers)}[/]")
    if dry_run:
        return

    last = get_last_verification(workspace, feature.id)
    if last is not None:
        console.print(f"  [dim]Last verification: {last.verdict} (run {last.run:03d}, {last.timestamp})[/]")

    try:
        changed = get_changed_files(workspace)
    except GitError as e:
        console.print(f"[yellow]Could not read git status: {escape(str(e))}[/]")
        changed = []
    if changed:
        console.print(f"\n[bold]Uncommitted changes:[/] {len(changed)} files")

    tdd_mode = feature_list.metadata.tdd_mode
    if tdd_mode != TDDMode.DISABLED.value:
        framework = detect_capabilities(workspace, load_config(workspace).checks)[CheckKind.TEST].framework
        guidance = generate_tdd_guidance(feature, framework)
        header = "TDD required" if tdd_mode == TDDMode.STRICT.value else "TDD guidance"
        console.print(f"\n[bold cyan]{header}[/]")
        console.print(f"  Unit tests: {', '.join(guidance.unit_test_files)}")
        for case in guidance.unit_test_cases:
            console.print(f"    - {case}")
        if guidance.e2e_scenarios:
            console.print(f"  E2E tests: {', '.join(guidance.e2e_test_files)}")
            for scenario in guidance.e2e_scenarios:
                console.print(f"    - {scenario}")

    console.print(f"\nWhen done, run 'agent-foreman check {feature.id}' then 'agent-foreman done {feature.id}'")


def _print_layered_result(result, verbose: bool) -> None:
    if not result.changed_files:
        console.print("[dim]No changed files; nothing to verify[/]")
        return

    console.print(f"[bold]FAST CHECK[/] ({len(result.changed_files)} changed files)")
    if verbose:
        for path in result.changed_files:
            console.print(f"  [dim]{path}[/]")
    if result.high_risk_escalation:
        console.print("[yellow]⚠ High-risk files changed; run 'agent-foreman check --full'[/]")
    for warning in result.tdd_warnings:
        console.print(f"[yellow]⚠ {escape(warning)}[/]")

    for check in result.checks.values():
        mark = "[green]✓[/]" if check.success else "[red]✗[/]"
        console.print(f"  {mark} {escape(check.summary)}")
        if not check.success and check.output:
            console.print(f"[dim]{escape(check.output)}[/]")
    if result.skipped:
        console.print(f"  [dim]Skipped: {', '.join(result.skipped)}[/]")

    if result.affected_tasks:
        table = Table(title="Task impact")
        table.add_column("Feature")
        table.add_column("Confidence")
        table.add_column("Reason")
        for impact in result.affected_tasks:
            table.add_row(escape(impact.task_id), impact.confidence.value, escape(impact.reason))
        console.print(table)

    if result.task_verification:
        console.print("[bold]AI verification:[/]")
        for verification in result.task_verification:
            console.print(f"  {verification.task_id}: {verification.verdict}")
            if verbose:
                console.print(f"    [dim]{escape(verification.reasoning)}[/]")

    outcome = "[green]✓ Passed[/]" if result.passed else "[red]✗ Failed[/]"
    console.print(f"\n{outcome} in {result.duration_ms / 1000:.1f}s")


def _print_full_result(result) -> None:
    for record in result.automated_checks:
        mark = "[green]✓[/]" if record.success else "[red]✗[/]"
        console.print(f"  {mark} {record.type} ({record.duration / 1000:.1f}s)")
    for missing in result.missing_tests:
        console.print(f"  [red]Missing test: {escape(missing)}[/]")
    for criterion in result.criteria_results:
        mark = "[green]✓[/]" if criterion.satisfied else "[red]✗[/]"
        console.print(f"  {mark} {escape(criterion.criterion)}")
    if result.overall_reasoning:
        console.print(f"\n{escape(result.overall_reasoning)}")
    for suggestion in result.suggestions:
        console.print(f"  [cyan]→ {escape(suggestion)}[/]")


@cli.command()
@click.argument("feature_id", required=False)
@click.option("--full", is_flag=True, help="Run every check, including build and E2E")
@click.option("--ai", is_flag=True, help="Ask the AI judge about impacted features")
@click.option("--test-mode", type=click.Choice(["full", "quick", "skip"]), default="full", help="Test selection for full checks")
@click.option("--skip-e2e", is_flag=True, help="Skip E2E tests")
@click.option("--skip-impact", is_flag=True, help="Skip the task impact step")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def check(ctx, feature_id, full, ai, test_mode, skip_e2e, skip_impact, as_json):
    """Verify the current change (fast) or a feature (full)."""
    workspace = ctx.obj["workspace"]
    verbose = ctx.obj["verbose"]

    if feature_id is None and not full:
        try:
            feature_list = load_feature_list(workspace)
        except FeatureListError:
            feature_list = None
        options = LayeredCheckOptions(
            verbose=verbose,
            ai=ai,
            tdd_mode=feature_list.metadata.tdd_mode if feature_list else None,
            skip_task_impact=skip_impact,
        )
        try:
            result = asyncio.run(run_layered_check(workspace, options))
        except GitError as e:
            _exit_with_error(e)
        if as_json:
            click.echo(json.dumps(result.to_dict(), indent=2))
        else:
            _print_layered_result(result, verbose)
        if not result.passed:
            sys.exit(1)
        return

    feature_list = _load_features_or_exit(workspace)
    if feature_id:
        feature = find_feature_by_id(feature_list.features, feature_id)
        if feature is None:
            _exit_with_error(FeatureNotFoundError(feature_id))
    else:
        feature = select_next_feature(feature_list.features)
        if feature is None:
            console.print("[green]✓ No features left to verify[/]")
            return

    if not as_json:
        console.print(f"[bold]Verifying {feature.id}...[/]")
    options = FullCheckOptions(
        test_mode=test_mode,
        skip_e2e=skip_e2e,
        tdd_mode=feature_list.metadata.tdd_mode,
    )
    try:
        result = asyncio.run(run_full_check(workspace, feature, options))
    except GitError as e:
        _exit_with_error(e)

    if as_json:
        click.echo(json.dumps(result.model_dump(by_alias=True, mode="json"), indent=2))
    else:
        _print_full_result(result)

    summary = FeatureVerificationSummary(
        verified_at=result.timestamp,
        verdict=result.verdict,
        verified_by=result.verified_by,
        commit_hash=result.commit_hash,
        summary=result.overall_reasoning[:200],
    )
    feature_list.features = update_feature_verification(feature_list.features, feature.id, summary)
    save_feature_list(workspace, feature_list)
    append_progress_log(
        workspace,
        create_verify_entry(feature.id, result.verdict, f"Verified {feature.id}: {result.verdict}"),
    )

    if not as_json:
        style = {"pass": "green", "fail": "red"}.get(result.verdict, "yellow")
        console.print(f"\nVerdict: [{style}]{result.verdict}[/]")
        if result.verdict == "pass":
            console.print(f"Run 'agent-foreman done {feature.id}' to mark it complete")
    if result.verdict == "fail":
        sys.exit(1)


@cli.command()
@click.argument("feature_id")
@click.option("--notes", "-n", default=None, help="Notes to store on the feature")
@click.pass_context
def done(ctx, feature_id, notes):
    """Mark a feature as passing."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)
    feature = find_feature_by_id(feature_list.features, feature_id)
    if feature is None:
        _exit_with_error(FeatureNotFoundError(feature_id))

    feature_list.features = update_feature_status(feature_list.features, feature_id, FeatureStatus.PASSING, notes)
    save_feature_list(workspace, feature_list)
    append_progress_log(
        workspace,
        create_step_entry(feature_id, "passing", "./ai/init.sh check", f"Completed {feature_id}"),
    )
    console.print(f"[green]✓ {feature_id} marked as passing[/]")

    impact = analyze_impact(feature_list.features, feature_id, feature.module)
    if impact.recommendations:
        console.print("\n[bold]Features that may need review:[/]")
        for rec in impact.recommendations:
            console.print(f"  {rec.feature_id}: {escape(rec.reason)}")

    upcoming = select_next_feature(feature_list.features)
    if upcoming:
        console.print(f"\n[bold]Next up:[/] {upcoming.id} - {escape(upcoming.description)}")
    else:
        console.print("\n[green]All features are passing or blocked[/]")


@cli.command()
@click.argument("feature_id")
@click.option("--reason", "-r", default=None, help="Why the feature failed")
@click.option("--no-loop", is_flag=True, help="Do not suggest continuing with the next feature")
@click.pass_context
def fail(ctx, feature_id, reason, no_loop):
    """Mark a feature as failed."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)
    feature = find_feature_by_id(feature_list.features, feature_id)
    if feature is None:
        _exit_with_error(FeatureNotFoundError(feature_id))
    if feature.status == FeatureStatus.FAILED.value:
        console.print(f"[yellow]{feature_id} is already marked as failed[/]")
        return

    note = f"[{date.today().isoformat()}] Failed: {reason}" if reason else "Marked as failed"
    notes = f"{feature.notes}\n{note}" if feature.notes else note
    feature_list.features = update_feature_status(feature_list.features, feature_id, FeatureStatus.FAILED, notes)
    save_feature_list(workspace, feature_list)
    append_progress_log(workspace, create_verify_entry(feature_id, "fail", reason or "Marked as failed"))
    console.print(f"[red]✗ {feature_id} marked as failed[/]")

    if no_loop:
        return
    upcoming = select_next_feature(feature_list.features)
    if upcoming:
        console.print(f"\nContinue with the next feature: {upcoming.id}")
        console.print("Run 'agent-foreman next' for details")
    else:
        console.print("\n[green]No features left to work on[/]")


@cli.command()
@click.argument("mode", required=False, type=click.Choice([m.value for m in TDDMode]))
@click.pass_context
def tdd(ctx, mode):
    """Show or change the project's TDD mode."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)
    current = feature_list.metadata.tdd_mode

    if mode is None:
        console.print(f"TDD mode: [bold]{current}[/]")
        for name, text in TDD_MODE_HELP.items():
            marker = "→" if name == current else " "
            console.print(f" {marker} {name}: {text}")
        return

    if mode == current:
        console.print(f"TDD mode is already '{mode}'")
        return

    feature_list.metadata.tdd_mode = TDDMode(mode).value
    save_feature_list(workspace, feature_list)
    append_progress_log(
        workspace,
        create_change_entry("tdd-mode", "config", f"Changed TDD mode from '{current}' to '{mode}'"),
    )
    console.print(f"[green]✓ TDD mode set to '{mode}'[/]")


@cli.command()
@click.argument("feature_id")
@click.option("--apply", "apply_changes", is_flag=True, help="Apply the recommendations to the feature list")
@click.pass_context
def impact(ctx, feature_id, apply_changes):
    """Show features affected by changing FEATURE_ID."""
    workspace = ctx.obj["workspace"]
    feature_list = _load_features_or_exit(workspace)
    features = feature_list.features
    feature = find_feature_by_id(features, feature_id)
    if feature is None:
        _exit_with_error(FeatureNotFoundError(feature_id))

    result = analyze_impact(features, feature_id, feature.module)
    if not result.directly_affected and not result.potentially_affected:
        console.print(f"No features depend on {feature_id}")
        return

    table = Table(title=f"Impact of {feature_id}")
    table.add_column("Feature")
    table.add_column("Status")
    table.add_column("Relation")
    table.add_column("Depth", justify="right")
    for affected in result.directly_affected:
        table.add_row(affected.id, affected.status, "depends on it", str(get_dependency_depth(features, affected.id)))
    for affected in result.potentially_affected:
        table.add_row(affected.id, affected.status, "same module", str(get_dependency_depth(features, affected.id)))
    console.print(table)

    chain = get_full_impact_chain(features, feature_id)
    if chain:
        console.print(f"Transitive dependents: {', '.join(dict.fromkeys(chain))}")
    for rec in result.recommendations:
        console.print(f"  [cyan]→ {rec.feature_id}: {rec.action.value} ({escape(rec.reason)})[/]")

    if apply_changes and result.recommendations:
        feature_list.features = apply_impact_recommendations(features, result.recommendations)
        save_feature_list(workspace, feature_list)
        append_progress_log(
            workspace,
            create_change_entry(
                feature_id, "impact", f"Applied {len(result.recommendations)} impact recommendations"
            ),
        )
        console.print(f"[green]✓ Applied {len(result.recommendations)} recommendations[/]")


@cli.command()
@click.argument("requirement")
@click.option("--roles", default="all", help="'all' or a comma list of pm,frontend,backend,qa")
@click.option("--format", "output_format", type=click.Choice(["json", "markdown"]), default="markdown")
@click.option("--output", "-o", type=click.Path(), default=None, help="Directory to write analysis files into")
@click.pass_context
def analyze(ctx, requirement, roles, output_format, output):
    """Analyze a requirement from several team perspectives."""
    result = asyncio.run(run_multi_role_analysis(requirement, parse_roles_option(roles)))
    if not result.outcomes:
        console.print(f"[red]{escape(result.error)}[/]")
        sys.exit(1)

    if output:
        written = save_analysis(result, Path(output))
        console.print(f"[green]✓ Wrote {len(written)} files to {output}[/]")
    elif output_format == "json":
        payload = {
            role: model.model_dump(by_alias=True, mode="json")
            for role, model in result.outputs.items()
        }
        if result.unified_document is not None:
            payload["unified"] = result.unified_document.model_dump(by_alias=True, mode="json")
        click.echo(json.dumps(payload, indent=2))
    elif result.unified_document is not None:
        console.print(RoleAggregator.to_markdown(result.unified_document), markup=False)
    else:
        for role, model in result.outputs.items():
            console.print(f"## {role}", markup=False)
            console.print(model.model_dump_json(by_alias=True, indent=2), markup=False)

    if not result.success:
        console.print(f"[yellow]Some roles failed: {escape(result.error)}[/]")
        sys.exit(1)


@cli.command()
@click.option("--template", "-t", "templates", multiple=True, help="Template name, e.g. Python (repeatable)")
@click.option("--list", "list_templates", is_flag=True, help="List templates available on GitHub")
@click.option("--clear-cache", is_flag=True, help="Delete cached templates")
@click.option("--offline", is_flag=True, help="Use bundled templates only")
@click.pass_context
def gitignore(ctx, templates, list_templates, clear_cache, offline):
    """Create or update the project's .gitignore."""
    workspace = ctx.obj["workspace"]
    client = GitignoreTemplateClient(load_config(workspace).gitignore)

    if clear_cache:
        removed = client.clear_cache()
        console.print(f"[green]✓ Removed {removed} cached templates[/]")
        return

    if list_templates:
        names = [] if offline else client.list_templates()
        if names:
            console.print(", ".join(names))
        else:
            console.print("[yellow]GitHub templates unavailable (offline and no cache)[/]")
        console.print(f"[dim]Bundled: {', '.join(verify_bundled_templates()['available'])}[/]")
        return

    result = ensure_gitignore(
        workspace, templates=list(templates) or None, client=client, bundled_only=offline
    )
    if not result.success:
        console.print(f"[red]Could not update .gitignore: {result.reason}[/]")
        sys.exit(1)
    console.print(f"[green]✓ .gitignore {result.action}[/] [dim]{result.reason}[/]")


if __name__ == "__main__":
    cli()
