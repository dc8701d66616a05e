"""Invocation and pipeline configuration models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from stackpkg.config import DEFAULT_BASE_URL, DEFAULT_BUCKET, StackpkgSettings


class Command(str, Enum):
    """Installer subcommands this tool can dispatch."""

    INSTALL = "install"
    UNPACK = "unpack"


class InvocationRequest(BaseModel):
    """What the caller asked for. Built once from CLI input."""

    model_config = ConfigDict(frozen=True)

    command: Command
    package: str  # "name-version", e.g. "nginx-1.9.10-0"
    bucket: str = DEFAULT_BUCKET
    checksum: str | None = None
    args: list[str] = []


class PipelineConfig(BaseModel):
    """Explicit configuration consumed by ``AcquisitionPipeline``.

    Carries everything the pipeline would otherwise read from the process
    environment, so a run is fully determined by (request, config).
    """

    model_config = ConfigDict(frozen=True)

    os_flavour: str | None = None
    os_release_path: Path = Path("/etc/os-release")
    machine: str | None = None  # None: read from the host
    prefix: Path = Path("/opt/bitnami")
    install_root: Path = Path("/tmp/stackpkg/install")
    cache_root: Path = Path("/tmp/stackpkg/cache")
    ledger_path: Path | None = None  # None: under prefix
    volume_dir: Path = Path("/bitnami")
    home: Path = Field(default_factory=Path.home)
    chmod: str | None = None
    extra_dirs: list[Path] = []
    base_url: str = DEFAULT_BASE_URL
    http_timeout: float | None = None

    @property
    def resolved_ledger_path(self) -> Path:
        """Ledger location, defaulting to a file under the install prefix."""
        if self.ledger_path is not None:
            return self.ledger_path
        return self.prefix / ".stackpkg" / "installed-packages"

    @property
    def installer_state_dir(self) -> Path:
        """Directory where the installer keeps its package metadata."""
        return self.prefix / ".nami"

    @property
    def git_destination(self) -> Path:
        return self.prefix / "git"

    @classmethod
    def from_settings(cls, settings: StackpkgSettings) -> PipelineConfig:
        return cls(
            os_flavour=settings.os_flavour,
            os_release_path=settings.os_release_path,
            machine=settings.machine,
            prefix=settings.prefix,
            install_root=settings.install_root,
            cache_root=settings.cache_root,
            ledger_path=settings.resolved_ledger_path,
            volume_dir=settings.volume_dir,
            home=settings.home,
            chmod=settings.chmod or None,
            extra_dirs=settings.extra_dir_list,
            base_url=settings.base_url,
            http_timeout=settings.http_timeout,
        )
