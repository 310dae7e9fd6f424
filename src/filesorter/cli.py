"""Command line interface for filesorter."""

from __future__ import annotations

import difflib
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from filesorter.cli_support import build_controller, configure_logging, persist_history
from filesorter.config import ConfigError, ConfigManager, SorterConfig
from filesorter.state import AuditLog, HistoryEntry, MissingStateError, StateError, StateRepository
from filesorter.watch import Janitor

console = Console()

_COUNTED_PREFIXES = {
    "moved": "Moved '",
    "renamed": "Renamed folder '",
    "created": "Created folder '",
}
_ERROR_MARKERS = ("AI error", "File system error", "Max retries reached")


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _summarize(entries: list[HistoryEntry]) -> dict[str, int]:
    """Count outcomes recorded during a run."""

    metrics = {key: 0 for key in _COUNTED_PREFIXES}
    metrics["errors"] = 0
    for entry in entries:
        for key, prefix in _COUNTED_PREFIXES.items():
            if entry.message.startswith(prefix):
                metrics[key] += 1
        if any(marker in entry.message for marker in _ERROR_MARKERS):
            metrics["errors"] += 1
    metrics["entries"] = len(entries)
    return metrics


def _print_entry(entry: HistoryEntry) -> None:
    console.print(entry.render(), markup=False, highlight=False)


def _resolve_quiet(
    ctx: click.Context, quiet: bool, json_output: bool, config: SorterConfig
) -> bool:
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        return False
    return quiet_enabled


def _load_config() -> SorterConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    return manager.load()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="filesorter")
def cli() -> None:
    """filesorter reorganizes a directory tree by asking a language model where things belong."""


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--no-janitor", is_flag=True, help="Do not run the background janitor.")
@click.option(
    "--by-type",
    is_flag=True,
    help="Group loose files by extension in a single request instead of converging.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit the run history as JSON.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def org(
    ctx: click.Context,
    path: str,
    no_janitor: bool,
    by_type: bool,
    json_output: bool,
    quiet: bool,
) -> None:
    """Organize the directory tree rooted at PATH.

    Args:
        ctx: Click context for parameter source inspection.
        path: Root directory to organize.
        no_janitor: When True, skip the background janitor for this run.
        by_type: When True, only group loose files at PATH by type.
        json_output: When True, emit JSON instead of streaming entries.
        quiet: When True, suppress non-error output entirely.

    Raises:
        click.ClickException: If configuration cannot be loaded or arguments conflict.
    """

    unsubscribers = []
    try:
        config = _load_config()
        quiet_enabled = _resolve_quiet(ctx, quiet, json_output, config)

        root = Path(path).expanduser().resolve()
        repository = StateRepository()
        state_dir = repository.initialize(root)
        configure_logging(config, state_dir=state_dir)

        audit = AuditLog()
        unsubscribers.append(persist_history(audit, repository, root))
        if not quiet_enabled and not json_output:
            unsubscribers.append(audit.subscribe(_print_entry))

        controller = build_controller(
            config, audit, repository=repository, with_janitor=not no_janitor
        )
        controller.select_folder(root, max_chars=max(1, config.llm.max_tokens // 5))
        if by_type:
            controller.sort_by_type(root)
        else:
            controller.start_organization(root)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return
    except RuntimeError as exc:
        _handle_cli_error(
            str(exc), code="oracle_unavailable", json_output=json_output, original=exc
        )
        return
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
        return
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()

    entries = audit.entries
    metrics = _summarize(entries)
    if json_output:
        console.print_json(
            data={
                "root": str(root),
                "summary": metrics,
                "history": [entry.model_dump(mode="json") for entry in entries],
            }
        )
        return
    if not quiet_enabled:
        console.print(_format_summary_line("Organization", root, metrics))


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def janitor(ctx: click.Context, path: str, quiet: bool) -> None:
    """Run a single janitor pass over the leaf directories under PATH."""

    unsubscribers = []
    try:
        config = _load_config()
        quiet_enabled = _resolve_quiet(ctx, quiet, False, config)
        root = Path(path).expanduser().resolve()
        repository = StateRepository()
        configure_logging(config, state_dir=repository.initialize(root))

        audit = AuditLog()
        unsubscribers.append(persist_history(audit, repository, root))
        if not quiet_enabled:
            unsubscribers.append(audit.subscribe(_print_entry))

        controller = build_controller(config, audit, repository=repository, with_janitor=False)
        sweeper = Janitor(controller, root, interval_seconds=config.janitor.interval_seconds)
        sweeper.run_pass()
    except (ConfigError, RuntimeError) as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()

    if not quiet_enabled:
        console.print(_format_summary_line("Janitor", root, _summarize(audit.entries)))


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--limit", "limit", type=int, help="Number of recent entries to show.")
@click.option("--json", "json_output", is_flag=True, help="Emit history as JSON.")
@click.pass_context
def history(ctx: click.Context, path: str, limit: int | None, json_output: bool) -> None:
    """Show the persisted run history for PATH.

    Args:
        ctx: Click context for parameter source inspection.
        path: Root directory whose history should be shown.
        limit: Optional override for how many entries to include.
        json_output: When True, emit JSON instead of a table.
    """

    try:
        config = _load_config()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
        return

    explicit_limit = ctx.get_parameter_source("limit") == ParameterSource.COMMANDLINE
    effective_limit = limit if explicit_limit and limit is not None else config.cli.history_limit
    root = Path(path).expanduser().resolve()

    try:
        entries = StateRepository().load_history(root, limit=effective_limit)
    except MissingStateError as exc:
        _handle_cli_error(
            f"No history found for {root}. Run `filesorter org {root}` first.",
            code="history_missing",
            json_output=json_output,
            original=exc,
        )
        return
    except StateError as exc:
        _handle_cli_error(str(exc), code="history_error", json_output=json_output, original=exc)
        return

    if json_output:
        console.print_json(
            data={
                "root": str(root),
                "limit": effective_limit,
                "history": [entry.model_dump(mode="json") for entry in entries],
            }
        )
        return

    if not entries:
        console.print("[yellow]History is empty.[/yellow]")
        return

    table = Table(title=f"History for {root}", show_lines=False)
    table.add_column("Time", style="cyan", no_wrap=True)
    table.add_column("Message")
    for entry in entries:
        table.add_row(entry.timestamp.astimezone().strftime("%Y-%m-%d %H:%M:%S"), entry.message)
    console.print(table)


@cli.group()
def config() -> None:
    """Manage filesorter configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Store VALUE at the dotted KEY (for example `janitor.interval_seconds`)."""
    manager = ConfigManager()
    manager.ensure_exists()
    before = _config_body(manager)

    try:
        manager.set_value(key, yaml.safe_load(value))
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = list(
        difflib.unified_diff(
            before,
            _config_body(manager),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in $EDITOR and validate the result before saving."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return
    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        manager.replace_text(edited)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def _config_body(manager: ConfigManager) -> list[str]:
    # Header comments carry a timestamp that changes on every save.
    return [line for line in manager.read_text().splitlines() if not line.startswith("#")]


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
