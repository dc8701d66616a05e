"""Installed-packages ledger.

Plain text, one artifact identifier per line, append-only. There is no
deduplication or locking; concurrent invocations may interleave lines.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class InstalledLedger:
    """Append-only record of installed artifact identifiers.

    Parameters
    ----------
    path:
        Ledger file. Parent directories are created on first write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def record(self, identifier: str) -> None:
        """Append *identifier* as one line. I/O errors propagate."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.touch(exist_ok=True)
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(f"{identifier}\n")
        logger.info("Recorded %s in %s", identifier, self._path)

    def entries(self) -> list[str]:
        """Return recorded identifiers in write order."""
        if not self._path.exists():
            return []
        return [
            line.strip()
            for line in self._path.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.entries()
