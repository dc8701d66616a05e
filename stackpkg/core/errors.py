"""Pipeline error taxonomy.

Every failure the pipeline can surface derives from ``StackpkgError`` and
carries the process exit code the CLI should use. Nothing here is retried.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stackpkg.models.report import RunReport


class StackpkgError(RuntimeError):
    """Base class for all acquisition pipeline failures."""

    exit_code: int = 1

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.report: RunReport | None = None


class ConfigurationError(StackpkgError):
    """Raised when a configured value cannot be used (e.g. a bad chmod mode)."""


class PackageNotFoundError(StackpkgError):
    """Raised when neither the canonical nor the fallback name can be fetched."""

    def __init__(self, canonical: str, fallback: str) -> None:
        super().__init__(
            f"Package not found: tried {canonical} and {fallback}"
        )
        self.canonical = canonical
        self.fallback = fallback


class FetchError(StackpkgError):
    """Raised on transport-level download failures (DNS, TLS, refused)."""


class CorruptArtifactError(StackpkgError):
    """Raised when the downloaded archive cannot be listed."""


class ChecksumMismatchError(StackpkgError):
    """Raised when the archive digest differs from the declared checksum."""

    def __init__(self, identifier: str, expected: str, actual: str) -> None:
        super().__init__(
            f"SHA256 mismatch for {identifier}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual


class ExtractionError(StackpkgError):
    """Raised when the archive cannot be unpacked into the install root."""


class DelegateFailure(StackpkgError):
    """Raised when the external installer exits non-zero.

    The installer's return code is propagated as the exit code.
    """

    def __init__(self, command: str, identifier: str, returncode: int) -> None:
        super().__init__(
            f"Installer '{command}' failed for {identifier} (exit {returncode})"
        )
        self.returncode = returncode
        self.exit_code = returncode if returncode > 0 else 1
