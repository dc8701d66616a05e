"""``stackpkg platform``: show the detected platform and artifact names."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from stackpkg.config import StackpkgSettings
from stackpkg.core.platform_id import identify_platform
from stackpkg.core.resolver import resolve_identifier

console = Console()


def platform_cmd(
    package: Optional[str] = typer.Argument(
        None, help="Optional name-version to resolve into artifact names."
    ),
) -> None:
    """Print the distribution and architecture used in artifact names."""
    settings = StackpkgSettings()
    descriptor = identify_platform(
        settings.os_flavour, settings.os_release_path, machine=settings.machine
    )

    table = Table(title="Platform", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Distribution", descriptor.distribution)
    table.add_row("Major version", descriptor.distribution_major_version or "-")
    arch_style = "green" if descriptor.is_known else "yellow"
    table.add_row("Architecture", f"[{arch_style}]{descriptor.architecture}[/{arch_style}]")

    if package:
        identifier = resolve_identifier(package, descriptor)
        table.add_row("Canonical", identifier.canonical)
        table.add_row("Fallback", identifier.fallback)
        table.add_row("Package name", identifier.package_name)

    console.print(table)
