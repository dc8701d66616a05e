"""``stackpkg install`` / ``stackpkg unpack``: run the acquisition pipeline.

Both commands resolve, fetch (or reuse from cache), verify and extract the
artifact, then hand it to the installer with the matching subcommand.
Arguments after ``--`` are passed through to the installer unchanged.
"""

from __future__ import annotations

from typing import List, Optional

import typer
from rich.console import Console

from stackpkg.cli._formatting import render_report
from stackpkg.config import StackpkgSettings
from stackpkg.core.errors import StackpkgError
from stackpkg.core.installer import NamiInstaller
from stackpkg.core.pipeline import AcquisitionPipeline
from stackpkg.models.config import Command, InvocationRequest, PipelineConfig

console = Console()
err_console = Console(stderr=True)

_DONE_VERB = {
    Command.INSTALL: "Installed",
    Command.UNPACK: "Unpacked",
}


def _validate_package(value: str) -> str:
    """Reject blank package arguments before anything touches the disk."""
    if not value.strip():
        raise typer.BadParameter("expected a name-version string, e.g. nginx-1.9.10-0")
    return value.strip()


def run_pipeline(
    command: Command,
    package: str,
    args: list[str] | None,
    bucket: str | None,
    checksum: str | None,
    verbose: bool,
) -> None:
    """Build the request and config, run the pipeline, report the outcome."""
    settings = StackpkgSettings()
    request = InvocationRequest(
        command=command,
        package=package,
        bucket=bucket or settings.bucket,
        checksum=checksum or settings.checksum,
        args=list(args or []),
    )
    config = PipelineConfig.from_settings(settings)

    try:
        with AcquisitionPipeline(
            config, installer=NamiInstaller(settings.installer)
        ) as pipeline:
            report = pipeline.run(request)
    except StackpkgError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {exc}")
        if verbose and exc.report is not None:
            render_report(err_console, exc.report)
        raise typer.Exit(code=exc.exit_code)

    if verbose:
        render_report(console, report)
    source = " (cached)" if report.from_cache else ""
    console.print(
        f"[bold green]{_DONE_VERB[command]}[/bold green] {report.identifier}{source}"
    )


def install_cmd(
    package: str = typer.Argument(
        ..., help="Package to install, as name-version.", callback=_validate_package
    ),
    args: Optional[List[str]] = typer.Argument(
        None, help="Installer arguments, given after --."
    ),
    bucket: str = typer.Option(
        None, "--bucket", "-b", help="Release bucket (default: stacksmith)."
    ),
    checksum: str = typer.Option(
        None, "--checksum", "-c", help="Expected SHA256 of the archive."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print the per-step report."
    ),
) -> None:
    """Fetch, verify and install a package."""
    run_pipeline(Command.INSTALL, package, args, bucket, checksum, verbose)


def unpack_cmd(
    package: str = typer.Argument(
        ..., help="Package to unpack, as name-version.", callback=_validate_package
    ),
    args: Optional[List[str]] = typer.Argument(
        None, help="Installer arguments, given after --."
    ),
    bucket: str = typer.Option(
        None, "--bucket", "-b", help="Release bucket (default: stacksmith)."
    ),
    checksum: str = typer.Option(
        None, "--checksum", "-c", help="Expected SHA256 of the archive."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Print the per-step report."
    ),
) -> None:
    """Fetch, verify and unpack a package without running its install logic."""
    run_pipeline(Command.UNPACK, package, args, bucket, checksum, verbose)
