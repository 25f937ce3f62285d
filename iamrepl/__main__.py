"""iamrepl CLI - replicate service accounts and bindings to the HML project."""

import json
import sys
from pathlib import Path

import fire
from rich.console import Console
from rich.table import Table

from iamrepl import __version__
from iamrepl.config import ConfigError, load_config
from iamrepl.gcloud import ToolingError
from iamrepl.logging import configure_logging, logger
from iamrepl.models import ReplicationReport
from iamrepl.replicator import run_replication

console = Console()


def _summary_table(report: ReplicationReport) -> Table:
    table = Table(title=f"{report.source_project} -> {report.target_project}")
    table.add_column("Item")
    table.add_column("Count", justify="right")
    table.add_row("Accounts already in target", str(len(report.accounts_existing)))
    table.add_row("Accounts missing in target", str(len(report.accounts_missing)))
    if report.apply:
        table.add_row("Accounts created", f"[green]{len(report.accounts_created)}[/green]")
        table.add_row("Accounts failed", f"[red]{len(report.accounts_failed)}[/red]")
    table.add_row("Bindings planned", str(len(report.plan)))
    if report.apply:
        table.add_row("Bindings applied", f"[green]{len(report.bindings_applied)}[/green]")
        table.add_row("Bindings failed", f"[red]{len(report.bindings_failed)}[/red]")
    return table


def replicate(
    apply: bool = False,
    source: str | None = None,
    target: str | None = None,
    suffix: str | None = None,
    config: str | None = None,
    workdir: str | None = None,
    verbose: bool = False,
    quiet: bool = False,
    json_output: bool = False,
    version: bool = False,
) -> None:
    """Replicate service accounts and project bindings to the HML project.

    Dry run unless --apply is given.

    Examples:
        iamrepl
        iamrepl --apply
        iamrepl --source my-prod --target my-hml --verbose
        iamrepl --json_output

    Args:
        apply: Create accounts and add bindings instead of only logging them.
        source: Source project id (overrides config).
        target: Target project id (overrides config).
        suffix: Suffix appended to cloned account ids (default -hml).
        config: Path to a TOML config file (default ~/.iamrepl/config.toml).
        workdir: Scratch directory for exported files (default: fresh temp dir).
        verbose: Enable debug logging, including every gcloud command.
        quiet: Log only warnings and errors.
        json_output: Print the report as JSON instead of a table.
        version: Show version and exit.
    """
    configure_logging(verbose, quiet)
    if not isinstance(apply, bool):
        # fire hands over positional words and --apply=<value> unparsed
        logger.error("Unexpected value for --apply: {!r}. Use --apply or nothing.", apply)
        sys.exit(1)
    if version:
        console.print(f"iamrepl {__version__}")
        return

    try:
        settings = load_config(
            Path(config) if config else None,
            # fire turns numeric-looking values into ints
            source_project=str(source) if source is not None else None,
            target_project=str(target) if target is not None else None,
            suffix=str(suffix) if suffix is not None else None,
        )
    except ConfigError as e:
        logger.error("{}", e)
        sys.exit(1)

    try:
        report = run_replication(
            settings, apply=apply, workdir=Path(workdir) if workdir else None
        )
    except ToolingError as e:
        logger.error("{}", e)
        sys.exit(1)

    if json_output:
        print(json.dumps(report.to_dict(), indent=2))
        return

    console.print(_summary_table(report))
    if not apply:
        console.print(
            "[yellow]Dry run: no changes made. Review the actions above and "
            "re-run with --apply to execute them.[/yellow]"
        )


def main() -> None:
    """Entry point for CLI."""
    fire.Fire(replicate)


if __name__ == "__main__":
    main()
