"""Archive extraction into the working install root.

``bsdtar`` is preferred: GNU-tar-style extraction of archives with very
large file counts fails on overlay filesystems. When ``bsdtar`` is not on
PATH the standard library ``tarfile`` module is used instead.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tarfile
import zlib
from pathlib import Path

from stackpkg.core.errors import ExtractionError

logger = logging.getLogger(__name__)

PREFERRED_TOOL = "bsdtar"


class Extractor:
    """Unpacks a verified archive.

    Parameters
    ----------
    preferred_tool:
        Name of the external extraction binary to look up on PATH.
    """

    def __init__(self, preferred_tool: str = PREFERRED_TOOL) -> None:
        self._preferred = preferred_tool

    def preferred_tool_path(self) -> str | None:
        return shutil.which(self._preferred)

    def extract(self, archive: Path, dest: Path) -> str:
        """Extract *archive* into *dest*; return the name of the tool used."""
        archive = Path(archive)
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)

        tool_path = self.preferred_tool_path()
        if tool_path:
            self._extract_with_tool(tool_path, archive, dest)
            used = self._preferred
        else:
            logger.info("%s not found, falling back to tarfile", self._preferred)
            self._extract_with_tarfile(archive, dest)
            used = "tarfile"

        logger.info("Extracted %s into %s using %s", archive.name, dest, used)
        return used

    @staticmethod
    def _extract_with_tool(tool_path: str, archive: Path, dest: Path) -> None:
        try:
            result = subprocess.run(
                [tool_path, "-xf", str(archive), "-C", str(dest)],
                capture_output=True,
                text=True,
            )
        except OSError as exc:
            raise ExtractionError(f"Could not run {tool_path}: {exc}") from exc
        if result.returncode != 0:
            raise ExtractionError(
                f"Extraction of {archive.name} failed: "
                f"{result.stderr.strip() or f'exit {result.returncode}'}"
            )

    @staticmethod
    def _extract_with_tarfile(archive: Path, dest: Path) -> None:
        try:
            with tarfile.open(archive, "r:*") as tar:
                tar.extractall(dest, filter="tar")
        except (tarfile.TarError, EOFError, OSError, zlib.error) as exc:
            raise ExtractionError(
                f"Extraction of {archive.name} failed: {exc}"
            ) from exc
