"""SHA-256 helpers for archive integrity checks."""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1024 * 1024


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def sha256_file(path: Path) -> str:
    """Return the SHA-256 hex digest of a file, read in chunks."""
    h = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            h.update(chunk)
    return h.hexdigest()


def normalize_digest(value: str) -> str:
    """Normalize a declared checksum for comparison.

    Accepts ``sha256sum`` output (``<hex>  <file>``) and an optional
    ``sha256:`` prefix; comparison is case-insensitive.
    """
    token = value.strip().split()[0] if value.strip() else ""
    return token.removeprefix("sha256:").lower()


def digests_match(expected: str, actual: str) -> bool:
    return normalize_digest(expected) == normalize_digest(actual)
