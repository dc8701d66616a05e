"""Environment-driven settings.

Uses pydantic-settings so every option can come from a ``STACKPKG_*``
environment variable, a ``.env`` file, or the legacy variable names the
container images already export (``OS_FLAVOUR``, ``BITNAMI_PREFIX``,
``BITNAMI_PKG_CHMOD`` ...).

The pipeline never reads these settings directly. ``PipelineConfig``
(see ``stackpkg.models.config``) is built from them once at the CLI edge.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://downloads.bitnami.com/files"
DEFAULT_BUCKET = "stacksmith"


class StackpkgSettings(BaseSettings):
    """Process settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export STACKPKG_PREFIX=/opt/bitnami
        export STACKPKG_CHMOD="-R g+rwX"
        export STACKPKG_EXTRA_DIRS="/opt/bitnami/nginx/tmp /opt/bitnami/nginx/logs"
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="STACKPKG_",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Platform
    os_flavour: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STACKPKG_OS_FLAVOUR", "OS_FLAVOUR"),
    )
    os_release_path: Path = Path("/etc/os-release")
    machine: str | None = None  # None: read from the host

    # Filesystem layout
    prefix: Path = Field(
        default=Path("/opt/bitnami"),
        validation_alias=AliasChoices("STACKPKG_PREFIX", "BITNAMI_PREFIX"),
    )
    install_root: Path = Path("/tmp/stackpkg/install")
    cache_root: Path = Path("/tmp/stackpkg/cache")
    ledger_path: Path | None = None
    volume_dir: Path = Path("/bitnami")
    home: Path = Field(
        default_factory=Path.home,
        validation_alias=AliasChoices("STACKPKG_HOME", "HOME"),
    )

    # Permissions
    chmod: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STACKPKG_CHMOD", "BITNAMI_PKG_CHMOD"),
    )
    extra_dirs: str = Field(
        default="",
        validation_alias=AliasChoices("STACKPKG_EXTRA_DIRS", "BITNAMI_PKG_EXTRA_DIRS"),
    )

    # Release channel
    base_url: str = DEFAULT_BASE_URL
    bucket: str = DEFAULT_BUCKET
    checksum: str | None = Field(
        default=None,
        validation_alias=AliasChoices("STACKPKG_CHECKSUM", "PACKAGE_SHA256"),
    )
    http_timeout: float | None = None

    # Delegate
    installer: str = "nami"

    # Observability
    log_level: str = "WARNING"

    @property
    def resolved_ledger_path(self) -> Path:
        """Ledger location, defaulting to a file under the install prefix."""
        if self.ledger_path is not None:
            return self.ledger_path
        return self.prefix / ".stackpkg" / "installed-packages"

    @property
    def extra_dir_list(self) -> list[Path]:
        """``extra_dirs`` split on whitespace."""
        return [Path(p) for p in self.extra_dirs.split()]
