"""Platform identification: (distribution, architecture) for artifact names.

Distribution comes from an explicit override or from the os-release file;
architecture from the machine type, mapped per distribution family because
Debian-style and RPM-style distributions publish x86-64 builds under
different names.
"""

from __future__ import annotations

import logging
import platform
from pathlib import Path

from stackpkg.models.platform import UNKNOWN, PlatformDescriptor

logger = logging.getLogger(__name__)

X86_64 = "x86_64"

# Raw machine types published as-is.
PASSTHROUGH_ARCHITECTURES: frozenset[str] = frozenset({"aarch64"})

# x86-64 naming by distribution family prefix.
X86_64_FAMILY_ARCH: dict[str, str] = {
    "debian-": "amd64",
    "ubuntu-": "amd64",
    "centos-": "x86_64",
    "rhel-": "x86_64",
    "ol-": "x86_64",
    "photon-": "x86_64",
    "fedora-": "x86_64",
    "amzn-": "x86_64",
}


def parse_os_release(text: str) -> dict[str, str]:
    """Parse os-release ``KEY=value`` lines, stripping quotes."""
    fields: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        fields[key.strip()] = value.strip().strip("\"'")
    return fields


def detect_distribution(
    override: str | None, os_release_path: Path
) -> tuple[str, str]:
    """Return ``(distribution, major_version)``.

    The override wins unless it is empty or the ``unknown`` sentinel.
    """
    if override and override != UNKNOWN:
        _, _, major = override.rpartition("-")
        return override, major

    path = Path(os_release_path)
    if not path.is_file():
        logger.info("No os-release file at %s; distribution unknown", path)
        return UNKNOWN, ""

    fields = parse_os_release(path.read_text(encoding="utf-8", errors="replace"))
    dist_id = fields.get("ID", "")
    major = fields.get("VERSION_ID", "").split(".")[0]
    if not dist_id:
        return UNKNOWN, ""
    if not major:
        return dist_id, ""
    return f"{dist_id}-{major}", major


def map_architecture(machine: str, distribution: str) -> str:
    """Map a raw machine type to the published architecture name.

    x86-64 on a distribution outside the family table maps to ``unknown``
    rather than an empty name.
    """
    if machine in PASSTHROUGH_ARCHITECTURES:
        return machine
    if machine == X86_64:
        for family, arch in X86_64_FAMILY_ARCH.items():
            if distribution.startswith(family):
                return arch
        logger.warning(
            "No x86_64 architecture mapping for distribution %r", distribution
        )
        return UNKNOWN
    return UNKNOWN


def identify_platform(
    override: str | None = None,
    os_release_path: Path = Path("/etc/os-release"),
    *,
    machine: str | None = None,
) -> PlatformDescriptor:
    """Derive the platform descriptor for this host.

    Parameters
    ----------
    override:
        Distribution override (``OS_FLAVOUR``), e.g. ``"debian-10"``.
    os_release_path:
        os-release file consulted when there is no usable override.
    machine:
        Raw machine type; defaults to ``platform.machine()``.
    """
    distribution, major = detect_distribution(override, os_release_path)
    raw_machine = machine if machine is not None else platform.machine()
    architecture = map_architecture(raw_machine, distribution)
    descriptor = PlatformDescriptor(
        distribution=distribution,
        distribution_major_version=major,
        architecture=architecture,
    )
    logger.info(
        "Platform: distribution=%s architecture=%s (machine=%s)",
        descriptor.distribution,
        descriptor.architecture,
        raw_machine,
    )
    return descriptor
