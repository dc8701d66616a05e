"""Main Typer application: imports and registers all CLI commands.

Entry point: ``stackpkg`` (configured via pyproject.toml scripts).

Usage errors (bad options, unknown command, missing package) exit with
status 1, as does every pipeline failure except installer failures,
which propagate the installer's own exit status.
"""

from __future__ import annotations

import logging
import sys

import typer
from typer.main import get_command

from stackpkg.cli.commands.install import install_cmd, unpack_cmd
from stackpkg.cli.commands.installed import installed_cmd
from stackpkg.cli.commands.platform_cmd import platform_cmd
from stackpkg.config import StackpkgSettings

EXIT_USAGE = 1
CLICK_USAGE_STATUS = 2

app = typer.Typer(
    name="stackpkg",
    help="stackpkg: fetch, verify and install prebuilt stack packages.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Register subcommands
app.command(name="install", help="Fetch, verify and install a package.")(install_cmd)
app.command(name="unpack", help="Fetch, verify and unpack a package.")(unpack_cmd)
app.command(name="platform", help="Show the detected platform.")(platform_cmd)
app.command(name="installed", help="List installed packages.")(installed_cmd)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Logging level (default from STACKPKG_LOG_LEVEL)."
    ),
) -> None:
    """Configure logging before any command runs."""
    level = (log_level or StackpkgSettings().log_level).upper()
    logging.basicConfig(
        format="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        level=level,
    )


def _click_error_status(exc: Exception) -> int | None:
    """Show a click-style error and return its exit status, else None.

    Recognised by shape (``show()`` plus an integer ``exit_code``) so the
    mapping holds whether typer raises click's exceptions or its own
    vendored copies. Click reports usage errors as status 2; they exit 1.
    """
    show = getattr(exc, "show", None)
    exit_code = getattr(exc, "exit_code", None)
    if not callable(show) or not isinstance(exit_code, int):
        return None
    show()
    return EXIT_USAGE if exit_code == CLICK_USAGE_STATUS else exit_code


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    command = get_command(app)
    try:
        result = command.main(args=argv, prog_name="stackpkg", standalone_mode=False)
    except typer.Abort:
        typer.echo("Aborted!", err=True)
        return EXIT_USAGE
    except Exception as exc:
        status = _click_error_status(exc)
        if status is None:
            raise
        return status
    return result if isinstance(result, int) else 0


def main() -> None:
    """CLI entry point."""
    sys.exit(run())


if __name__ == "__main__":
    main()
