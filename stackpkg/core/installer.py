"""Pluggable installer backends.

Defines the ``Installer`` Protocol the pipeline dispatches to, and
``NamiInstaller``, the default backend that shells out to the ``nami``
binary. Tests and alternative deployments provide their own Protocol
implementations.
"""

from __future__ import annotations

import json
import logging
import re
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

# Exit status used when the installer binary cannot be started at all.
EXIT_NOT_FOUND = 127

_INSTALLDIR_PATTERN = re.compile(r"""["']?installdir["']?\s*[:=]\s*["']?([^"',\s}]+)""")


class InstallerMetadata(BaseModel):
    """What the installer reports about an installed package."""

    model_config = ConfigDict(frozen=True)

    package_name: str
    installdirs: list[Path] = []
    raw: str = ""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class Installer(Protocol):
    """Capability interface for the external package installer."""

    def run(
        self,
        command: str,
        identifier: str,
        args: Sequence[str],
        *,
        cwd: Path,
    ) -> int:
        """Run ``installer <command> <identifier> <args...>`` and return its exit code."""
        ...

    def inspect(self, package_name: str, *, cwd: Path) -> InstallerMetadata:
        """Describe an installed package, run from *cwd*."""
        ...


# ---------------------------------------------------------------------------
# Output parsing
# ---------------------------------------------------------------------------


def _collect_installdirs(node: Any, found: list[str]) -> None:
    if isinstance(node, dict):
        for key, value in node.items():
            if key == "installdir" and isinstance(value, str):
                found.append(value)
            else:
                _collect_installdirs(value, found)
    elif isinstance(node, list):
        for item in node:
            _collect_installdirs(item, found)


def parse_installdirs(output: str) -> list[str]:
    """Extract every ``installdir`` value from inspector output.

    The output is normally JSON; anything else is scanned line by line.
    """
    found: list[str] = []
    try:
        _collect_installdirs(json.loads(output), found)
    except ValueError:
        found = _INSTALLDIR_PATTERN.findall(output)

    # Preserve order, drop duplicates.
    return list(dict.fromkeys(d for d in found if d))


# ---------------------------------------------------------------------------
# Default implementation
# ---------------------------------------------------------------------------


class NamiInstaller:
    """Runs the ``nami`` binary as a subprocess.

    Parameters
    ----------
    binary:
        Installer executable name or path.
    """

    def __init__(self, binary: str = "nami") -> None:
        self.binary = binary

    def run(
        self,
        command: str,
        identifier: str,
        args: Sequence[str],
        *,
        cwd: Path,
    ) -> int:
        argv = [self.binary, command, identifier, *args]
        logger.info("Dispatching: %s (cwd=%s)", " ".join(argv), cwd)
        try:
            result = subprocess.run(argv, cwd=cwd)
        except OSError as exc:
            logger.error("Could not run %s: %s", self.binary, exc)
            return EXIT_NOT_FOUND
        return result.returncode

    def inspect(self, package_name: str, *, cwd: Path) -> InstallerMetadata:
        argv = [self.binary, "inspect", package_name]
        try:
            result = subprocess.run(argv, cwd=cwd, capture_output=True, text=True)
        except OSError as exc:
            logger.warning("Could not run %s: %s", self.binary, exc)
            return InstallerMetadata(package_name=package_name)

        if result.returncode != 0:
            logger.warning(
                "%s inspect %s exited %d: %s",
                self.binary,
                package_name,
                result.returncode,
                result.stderr.strip(),
            )
            return InstallerMetadata(package_name=package_name, raw=result.stdout)

        return InstallerMetadata(
            package_name=package_name,
            installdirs=[Path(d) for d in parse_installdirs(result.stdout)],
            raw=result.stdout,
        )
