from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.console import Console

from javagadgets import __version__
from javagadgets.audit import AuditCallbacks, AuditResult, audit_files
from javagadgets.autofix import autofix_path
from javagadgets.config import ConfigError
from javagadgets.engine.types import ScanSummary
from javagadgets.logging_utils import configure_logging
from javagadgets.reporters.json_reporter import render_json
from javagadgets.reporters.terminal import render_terminal
from javagadgets.scanner import ScanTarget, discover_files, prepare_target

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="javagadgets: Java inspections with quick fixes.",
)
console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger(__name__)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def _main(
    ctx: typer.Context,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logs (printed to stderr)."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Reduce non-essential output."),
    ] = False,
    progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar for long scans.", show_default=True),
    ] = True,
) -> None:
    """javagadgets CLI."""

    if verbose and quiet:
        raise typer.BadParameter("Choose at most one: --verbose or --quiet.")
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = {"verbose": verbose, "quiet": quiet, "progress": progress}


def _cli_settings() -> dict[str, bool]:
    ctx = click.get_current_context(silent=True)
    if ctx is None or not isinstance(ctx.obj, dict):
        return {"verbose": False, "quiet": False, "progress": True}
    verbose = bool(ctx.obj.get("verbose", False))
    quiet = bool(ctx.obj.get("quiet", False))
    progress = bool(ctx.obj.get("progress", True))
    return {"verbose": verbose, "quiet": quiet, "progress": progress}


def _load_target(path: Path) -> ScanTarget:
    try:
        return prepare_target(path)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc


def _emit_output(
    fmt: str,
    *,
    summary: ScanSummary,
    project_root: Path,
    console: Console,
    show_details: bool = True,
) -> None:
    normalized = fmt.strip().lower()
    if normalized == "terminal":
        render_terminal(summary, project_root=project_root, console=console, show_details=show_details)
        return
    if normalized == "json":
        typer.echo(render_json(summary, project_root=project_root))
        return

    raise typer.BadParameter("Unsupported format. Use: terminal, json.")


def _audit_with_optional_progress(target: ScanTarget, *, show_progress: bool) -> AuditResult:
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeElapsedColumn

    files = discover_files(target)
    logger.debug("discovered %d Java file(s) under %s", len(files), target.scan_path)

    if not show_progress:
        return audit_files(target, files=files)

    progress_console = Console(stderr=True)
    progress = Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=progress_console,
        transient=True,
    )

    parse_task = progress.add_task("Parse", total=len(files))
    scan_task = progress.add_task("Inspect", total=1)

    def _on_context_built(_path: Path) -> None:
        progress.advance(parse_task, 1)

    def _on_ready(total: int) -> None:
        progress.update(scan_task, total=total, completed=0)

    def _on_scanned(_path: Path) -> None:
        progress.advance(scan_task, 1)

    callbacks = AuditCallbacks(
        on_context_built=_on_context_built,
        on_file_contexts_ready=_on_ready,
        on_file_scanned=_on_scanned,
    )

    with progress:
        return audit_files(target, files=files, callbacks=callbacks)


@app.command()
def scan(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=True,
            resolve_path=True,
            help="Java file or directory to inspect (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
    fail_on_findings: Annotated[
        bool,
        typer.Option("--fail-on-findings", help="Exit with code 1 when any finding is reported."),
    ] = False,
) -> None:
    """
    Inspect Java sources and report findings.
    """

    settings = _cli_settings()
    target = _load_target(path)
    result = _audit_with_optional_progress(
        target,
        show_progress=settings["progress"] and not settings["quiet"] and output_format.strip().lower() == "terminal",
    )

    _emit_output(
        output_format,
        summary=result.summary,
        project_root=result.target.project_root,
        console=console,
        show_details=not settings["quiet"],
    )

    if fail_on_findings and result.summary.violations:
        raise typer.Exit(code=1)


@app.command()
def fix(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=True,
            dir_okay=True,
            resolve_path=True,
            help="Java file or directory to inspect + auto-fix (default: current directory).",
        ),
    ] = Path("."),
    backup: Annotated[
        bool,
        typer.Option("--backup", help="Create a .javagadgets.bak backup before writing."),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Don't write changes; only print a unified diff."),
    ] = False,
    rule: Annotated[
        list[str] | None,
        typer.Option("--rule", "-r", help="Only apply fixes of this rule (id or short name). Repeatable."),
    ] = None,
) -> None:
    """
    Apply the rules' quick fixes, one at a time, until nothing fixable is left.
    """

    settings = _cli_settings()
    try:
        result = autofix_path(path, backup=backup, dry_run=dry_run, rule_ids=rule)
    except ConfigError as exc:
        err_console.print(f"Invalid configuration: {exc}")
        raise typer.Exit(code=2) from exc

    if not result.changed_files:
        if not settings["quiet"]:
            console.print("No changes needed.")
        if result.failed_count:
            err_console.print(f"{result.failed_count} fix(es) could not be applied.")
        return

    diff = result.diff
    if diff:
        typer.echo(diff)

    if not settings["quiet"]:
        verb = "Would apply" if dry_run else "Applied"
        err_console.print(f"{verb} {result.applied_count} fix(es) in {len(result.changed_files)} file(s).")
    if result.failed_count:
        err_console.print(f"{result.failed_count} fix(es) could not be applied.")


@app.command()
def rules(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
            help="Project directory (default: current directory).",
        ),
    ] = Path("."),
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
    enabled_only: Annotated[
        bool,
        typer.Option("--enabled-only", help="Only show rules enabled by the current config."),
    ] = False,
) -> None:
    """
    List all available rules and their metadata.
    """

    from rich.table import Table

    from javagadgets.config import compute_enabled_rule_ids
    from javagadgets.rules.registry import all_rules

    target = _load_target(path)

    available_rules = list(all_rules())
    enabled_ids = compute_enabled_rule_ids(
        target.config,
        available_rule_ids={r.meta.rule_id for r in available_rules},
    )

    rows = []
    for rule in sorted(available_rules, key=lambda r: r.meta.rule_id):
        meta = rule.meta
        enabled = meta.rule_id in enabled_ids
        if enabled_only and not enabled:
            continue
        rows.append(
            {
                "rule_id": meta.rule_id,
                "short_name": meta.short_name,
                "enabled": enabled,
                "title": meta.title,
                "description": meta.description,
                "group": meta.group,
                "default_severity": meta.default_severity,
                "enabled_by_default": meta.enabled_by_default,
            }
        )

    normalized = output_format.strip().lower()
    if normalized == "json":
        typer.echo(json.dumps(rows, indent=2, sort_keys=True))
        return
    if normalized != "terminal":
        raise typer.BadParameter("Unsupported format. Use: terminal, json.")

    table = Table(title="javagadgets rules")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Enabled", justify="center")
    table.add_column("Severity")
    table.add_column("Group")
    table.add_column("Title")
    for row in rows:
        table.add_row(
            str(row["rule_id"]),
            str(row["short_name"]),
            "yes" if row["enabled"] else "no",
            str(row["default_severity"]),
            str(row["group"]),
            str(row["title"]),
        )
    console.print(table)


@app.command()
def explain(
    rule_id: Annotated[
        str,
        typer.Argument(help="Rule id or short name to explain (e.g. J01, UnnecessarySemicolon)."),
    ],
    output_format: Annotated[
        str,
        typer.Option("--format", help="Output format: terminal, json.", show_default=True),
    ] = "terminal",
) -> None:
    """
    Explain a single rule (metadata, options and suppression hints).
    """

    from rich.panel import Panel
    from rich.syntax import Syntax
    from rich.text import Text

    from javagadgets import messages
    from javagadgets.rules.registry import resolve_rule

    rule = resolve_rule(rule_id)
    if rule is None:
        raise typer.BadParameter(f"Unknown rule: {rule_id!r}. Use `javagadgets rules` to list available rules.")

    meta = rule.meta
    options = [
        {"name": spec.name, "label": messages.render(spec.label_key), "default": spec.default} for spec in meta.options
    ]

    normalized = output_format.strip().lower()
    if normalized == "json":
        payload = {
            "rule_id": meta.rule_id,
            "short_name": meta.short_name,
            "display_name": messages.render(meta.display_name_key),
            "title": meta.title,
            "description": meta.description,
            "group": meta.group,
            "default_severity": meta.default_severity,
            "enabled_by_default": meta.enabled_by_default,
            "options": options,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        return
    if normalized != "terminal":
        raise typer.BadParameter("Unsupported format. Use: terminal, json.")

    header = Text()
    header.append(meta.rule_id, style="bold")
    header.append(" | ", style="dim")
    header.append(messages.render(meta.display_name_key))

    details = "\n".join(
        [
            meta.description,
            "",
            f"Short name: {meta.short_name}",
            f"Group: {meta.group}",
            f"Default severity: {meta.default_severity}",
            f"Enabled by default: {'yes' if meta.enabled_by_default else 'no'}",
        ]
    )
    console.print(Panel(details, title=header, border_style="cyan"))

    config_lines = [f"[tool.javagadgets.rules.{meta.rule_id}]", 'severity = "info"  # or warn/error']
    for spec in meta.options:
        config_lines.append(f"{spec.name.replace('_', '-')} = {'true' if spec.default else 'false'}")
    console.print(Text("Config override (pyproject.toml):", style="bold"))
    console.print(Syntax("\n".join(config_lines) + "\n", "toml", word_wrap=True))

    console.print(Text("Suppressions (in-file):", style="bold"))
    console.print(
        Syntax(
            "\n".join(
                [
                    f"// javagadgets: disable-file={meta.rule_id}",
                    f"//noinspection {meta.short_name}",
                    "foo();",
                    f"bar();  // javagadgets: disable={meta.rule_id}",
                    "",
                ]
            ),
            "java",
            word_wrap=True,
        )
    )
