"""Artifact resolution: package base + platform -> artifact identifier."""

from __future__ import annotations

import logging

from stackpkg.models.artifacts import ArtifactIdentifier, bare_package_name
from stackpkg.models.platform import PlatformDescriptor

logger = logging.getLogger(__name__)


def resolve_identifier(
    package: str, platform: PlatformDescriptor
) -> ArtifactIdentifier:
    """Compose the canonical identifier for *package* on *platform*.

    ``resolve_identifier("nginx-1.9.10-0", debian10_amd64).canonical``
    is ``"nginx-1.9.10-0-linux-amd64-debian-10"``.
    """
    if not package.strip():
        raise ValueError("package must be a non-empty name-version string")
    identifier = ArtifactIdentifier(
        package=package.strip(),
        architecture=platform.architecture,
        distribution=platform.distribution,
    )
    logger.info("Resolved %s -> %s", package, identifier)
    return identifier


def package_name(identifier: str) -> str:
    """Bare package name used for install-directory lookups."""
    return bare_package_name(identifier)
