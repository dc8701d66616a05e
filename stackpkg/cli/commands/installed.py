"""``stackpkg installed``: list the installed-packages ledger."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from stackpkg.config import StackpkgSettings
from stackpkg.core.ledger import InstalledLedger
from stackpkg.models.artifacts import bare_package_name

console = Console()


def installed_cmd() -> None:
    """List artifact identifiers recorded by previous runs."""
    settings = StackpkgSettings()
    ledger = InstalledLedger(settings.resolved_ledger_path)
    entries = ledger.entries()

    if not entries:
        console.print(f"[dim]No packages recorded in {ledger.path}.[/dim]")
        return

    table = Table(title=f"Installed packages ({ledger.path})")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Package", style="cyan")
    table.add_column("Artifact")
    for index, identifier in enumerate(entries, start=1):
        table.add_row(str(index), bare_package_name(identifier), identifier)
    console.print(table)
