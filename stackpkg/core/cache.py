"""Read-only local artifact cache.

Storage layout (populated by the operator, never by this tool)::

    {cache_root}/{identifier}.tar.gz
    {cache_root}/{identifier}.tar.gz.sha256   (optional)

A cached sidecar checksum supersedes any checksum given by the caller.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from stackpkg.models.artifacts import (
    ARCHIVE_SUFFIX,
    CHECKSUM_SUFFIX,
    ArtifactSource,
    CacheEntry,
    ResolvedArtifact,
)

logger = logging.getLogger(__name__)


class CacheGateway:
    """Looks up previously fetched archives by canonical identifier.

    Parameters
    ----------
    cache_root:
        Directory holding cached archives. It need not exist.
    """

    def __init__(self, cache_root: Path) -> None:
        self._root = Path(cache_root)

    @property
    def root(self) -> Path:
        return self._root

    def archive_path(self, identifier: str) -> Path:
        return self._root / f"{identifier}{ARCHIVE_SUFFIX}"

    def checksum_path(self, identifier: str) -> Path:
        return self._root / f"{identifier}{ARCHIVE_SUFFIX}{CHECKSUM_SUFFIX}"

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, identifier: str) -> CacheEntry | None:
        """Return the cache entry for *identifier*, or None on a miss."""
        archive = self.archive_path(identifier)
        if not archive.is_file():
            logger.debug("Cache miss for %s in %s", identifier, self._root)
            return None

        checksum: str | None = None
        sidecar = self.checksum_path(identifier)
        if sidecar.is_file():
            content = sidecar.read_text(encoding="utf-8").strip()
            checksum = content.split()[0] if content else None

        logger.info(
            "Cache hit for %s%s",
            identifier,
            " (with checksum)" if checksum else "",
        )
        return CacheEntry(identifier=identifier, archive_path=archive, checksum=checksum)

    # ------------------------------------------------------------------
    # Restore
    # ------------------------------------------------------------------

    def restore(self, entry: CacheEntry, install_root: Path) -> ResolvedArtifact:
        """Copy a cached archive into the working install root."""
        dest = Path(install_root) / entry.archive_path.name
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(entry.archive_path, dest)
        return ResolvedArtifact(
            identifier=entry.identifier,
            archive_path=dest,
            source=ArtifactSource.CACHE,
            checksum=entry.checksum,
        )
