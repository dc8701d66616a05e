"""Artifact naming and resolution models.

An artifact is one build of one package for one platform, published as
``{name}-{version}-linux-{arch}-{distro}.tar.gz``. Older releases were
published without the distribution suffix, which is the fallback form.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

ARCHIVE_SUFFIX = ".tar.gz"
CHECKSUM_SUFFIX = ".sha256"

# Bare package name ends right before the first "-<digit>" segment.
_VERSION_SEGMENT = re.compile(r"-\d")


def bare_package_name(identifier: str) -> str:
    """Return the package name portion of an identifier.

    ``mysql-client-10.1.11-0-linux-amd64-debian-10`` -> ``mysql-client``.
    Identifiers without a numeric segment are returned unchanged.
    """
    match = _VERSION_SEGMENT.search(identifier)
    if match is None:
        return identifier
    return identifier[: match.start()]


class ArtifactIdentifier(BaseModel):
    """Canonical name of a platform-specific build.

    ``package`` is the ``name-version`` base given on the command line.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    architecture: str
    distribution: str

    @property
    def canonical(self) -> str:
        return f"{self.package}-linux-{self.architecture}-{self.distribution}"

    @property
    def fallback(self) -> str:
        """The identifier with the distribution suffix stripped."""
        return f"{self.package}-linux-{self.architecture}"

    @property
    def package_name(self) -> str:
        return bare_package_name(self.package)

    def __str__(self) -> str:
        return self.canonical


class ArtifactSource(str, Enum):
    """Where the archive of a run came from."""

    CACHE = "cache"
    REMOTE = "remote"


class CacheEntry(BaseModel):
    """A previously fetched archive found in the local cache."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    archive_path: Path
    checksum: str | None = None


class ResolvedArtifact(BaseModel):
    """The single active artifact of a run.

    ``identifier`` is what every downstream step must use: it is the
    fallback form whenever ``used_fallback`` is set.
    """

    model_config = ConfigDict(frozen=True)

    identifier: str
    archive_path: Path
    source: ArtifactSource
    used_fallback: bool = False
    checksum: str | None = None
