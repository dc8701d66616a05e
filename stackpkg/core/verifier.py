"""Archive integrity checks: well-formedness, then digest."""

from __future__ import annotations

import logging
import tarfile
import zlib
from pathlib import Path

from stackpkg.core.errors import ChecksumMismatchError, CorruptArtifactError
from stackpkg.core.hasher import digests_match, normalize_digest, sha256_file

logger = logging.getLogger(__name__)


class IntegrityVerifier:
    """Validates a downloaded or cached archive before extraction.

    Both checks are fatal on failure. The digest check only runs when a
    checksum is known.
    """

    def list_members(self, archive: Path) -> list[str]:
        """Return member names, raising ``CorruptArtifactError`` if unreadable."""
        try:
            with tarfile.open(archive, "r:*") as tar:
                return tar.getnames()
        except (tarfile.TarError, EOFError, OSError, zlib.error) as exc:
            raise CorruptArtifactError(
                f"Corrupt package {Path(archive).name}: {exc}"
            ) from exc

    def verify_digest(self, archive: Path, expected: str, identifier: str = "") -> str:
        """Compare the archive's SHA-256 with *expected*; return the actual digest."""
        actual = sha256_file(archive)
        if not digests_match(expected, actual):
            raise ChecksumMismatchError(
                identifier or Path(archive).name,
                normalize_digest(expected),
                actual,
            )
        return actual

    def verify(
        self,
        archive: Path,
        checksum: str | None = None,
        *,
        identifier: str = "",
    ) -> int:
        """Run both checks and return the archive's member count."""
        members = self.list_members(archive)
        logger.info("%s lists %d members", Path(archive).name, len(members))

        if checksum:
            self.verify_digest(archive, checksum, identifier)
            logger.info("SHA256 verified for %s", identifier or Path(archive).name)
        else:
            logger.debug("No checksum declared for %s", identifier or archive)
        return len(members)
