"""pagesprune CLI - remove stale Cloudflare Pages deployments."""

from pathlib import Path

import typer
from rich.markup import escape

from pagesprune import __version__
from pagesprune.api import ApiClient
from pagesprune.artifacts import build_removal_report, write_json
from pagesprune.config import ConfigError, load_credentials, resolve_config
from pagesprune.gate import confirm_removal, write_candidates
from pagesprune.lister import ListingError, list_removable_deployments
from pagesprune.remover import remove_deployments
from pagesprune.ui import Spinner, console, err_console

EXIT_INTERRUPTED = 130

cli = typer.Typer(
    name="pagesprune",
    help="Delete Cloudflare Pages deployments older than a threshold.",
    add_completion=False,
)


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@cli.command()
def prune(
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: .pagesprune.toml or .pagesprune.yaml in the current directory)",
    ),
    project: str | None = typer.Option(
        None,
        "--project",
        help="Pages project name",
    ),
    exclude_branch: list[str] | None = typer.Option(
        None,
        "--exclude-branch",
        help="Branch whose deployments are never removed (repeatable)",
    ),
    older_than_days: int | None = typer.Option(
        None,
        "--older-than-days",
        help="Only remove deployments created more than this many days ago (default: 30)",
    ),
    candidates_file: Path | None = typer.Option(
        None,
        "--candidates-file",
        help="Where to write the candidate ids (default: deployments.txt)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Trace every API request",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="List and write candidates without prompting or deleting",
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        help="Write a JSON report of the removal outcome",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show pagesprune version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """List stale deployments, confirm, then delete them one by one.

    When nothing is stale the empty candidate file is written and the
    command exits 0 without prompting.

    Credentials come from the ACCOUNT_ID and API_TOKEN environment variables.
    """
    try:
        credentials = load_credentials()
    except ConfigError as exc:
        err_console.print(escape(str(exc)))
        raise typer.Exit(1) from exc

    try:
        config = resolve_config(
            config_path=config_file,
            cwd=Path.cwd(),
            overrides={
                "project": project,
                "exclude_branches": exclude_branch or None,
                "older_than_days": older_than_days,
                "candidates_file": str(candidates_file) if candidates_file else None,
                "verbose": True if verbose else None,
            },
        )
    except ConfigError as exc:
        err_console.print(f"[yellow]{escape(str(exc))}[/yellow]")
        raise typer.Exit(2) from exc

    try:
        with ApiClient(
            credentials,
            api_base=config.api_base,
            verbose=config.verbose,
            timeout=config.request_timeout,
        ) as client:
            console.print("Fetching deployments which can be deleted...")
            try:
                candidates = Spinner("Listing deployments").run(
                    lambda: list_removable_deployments(client, config)
                )
            except ListingError as exc:
                err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
                err_console.print("Nothing was removed.")
                raise typer.Exit(1) from exc

            console.print(f"Found {len(candidates)} removable deployment(s).")

            if dry_run or not candidates:
                path = write_candidates(config.candidates_file, candidates)
                console.print(f"Wrote {len(candidates)} deployment id(s) to {escape(str(path))}")
                if not candidates:
                    console.print("[green]Nothing to remove.[/green]")
                return

            if not confirm_removal(candidates, candidates_file=config.candidates_file):
                err_console.print("Confirmation not given, exiting!")
                raise typer.Exit(1)

            outcome = remove_deployments(client, config, candidates)
    except KeyboardInterrupt as exc:
        err_console.print("[yellow]Interrupted before deletion; nothing was removed.[/yellow]")
        raise typer.Exit(EXIT_INTERRUPTED) from exc
    except typer.Exit:
        raise
    except Exception as exc:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    if report is not None:
        write_json(report, build_removal_report(config, candidates, outcome))

    console.print(
        f"Deleted {len(outcome.deleted)} of {len(candidates)} deployment(s), {len(outcome.failed)} failed."
    )
    if outcome.failed:
        err_console.print("Failed: " + ", ".join(escape(i) for i in outcome.failed))

    if outcome.interrupted:
        err_console.print(
            f"[yellow]Interrupted during deletion; {len(outcome.pending)} deployment(s) not removed:[/yellow]"
        )
        for deployment_id in outcome.pending:
            err_console.print(f"  {escape(deployment_id)}")
        raise typer.Exit(EXIT_INTERRUPTED)

    if outcome.failed:
        raise typer.Exit(1)

    console.print("[green]✓ Removal complete[/green]")


if __name__ == "__main__":

    cli()
