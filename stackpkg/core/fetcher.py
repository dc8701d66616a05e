"""HTTPS fetcher for release-channel archives.

Downloads ``{base_url}/{bucket}/{identifier}.tar.gz``. When the canonical
name is missing remotely, one retry is made with the distribution suffix
stripped; whichever name succeeds becomes the run's active identifier.
HTTP status errors count as "not found here". Transport failures (DNS,
refused connections, TLS) are raised as ``FetchError`` and never retried.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx
from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)

from stackpkg.core.errors import FetchError, PackageNotFoundError
from stackpkg.models.artifacts import (
    ARCHIVE_SUFFIX,
    ArtifactIdentifier,
    ArtifactSource,
    ResolvedArtifact,
)
from stackpkg.config import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)


class Fetcher:
    """Downloads artifacts from a release channel.

    Parameters
    ----------
    base_url:
        Root of the release channel, without the bucket.
    client:
        Optional pre-built ``httpx.Client`` (tests pass one backed by
        ``httpx.MockTransport``). A client created here is closed by
        ``close()``.
    console:
        Rich console used for the progress bar. Progress is only drawn
        when the console is attached to a terminal.
    timeout:
        Request timeout in seconds; ``None`` keeps the httpx default.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client: httpx.Client | None = None,
        console: Console | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        if client is None:
            if timeout is None:
                client = httpx.Client(follow_redirects=True)
            else:
                client = httpx.Client(follow_redirects=True, timeout=timeout)
        self._client = client
        self._console = console or Console(stderr=True)

    def __enter__(self) -> Fetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def url_for(self, bucket: str, identifier: str) -> str:
        return f"{self._base_url}/{bucket}/{identifier}{ARCHIVE_SUFFIX}"

    # ------------------------------------------------------------------
    # Single download
    # ------------------------------------------------------------------

    def fetch(self, url: str, dest: Path) -> bool:
        """Download *url* into *dest*.

        Returns False on an HTTP error status (nothing is left at *dest*).
        Raises ``FetchError`` on transport failures.
        """
        dest = Path(dest)
        dest.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Fetching %s", url)
        try:
            with self._client.stream("GET", url) as response:
                if response.is_error:
                    logger.warning(
                        "GET %s returned HTTP %d", url, response.status_code
                    )
                    return False
                self._write_body(response, dest)
        except httpx.HTTPError as exc:
            dest.unlink(missing_ok=True)
            logger.error("Download of %s failed: %s", url, exc)
            raise FetchError(f"Download of {url} failed: {exc}") from exc
        return True

    def _write_body(self, response: httpx.Response, dest: Path) -> None:
        length = response.headers.get("Content-Length")
        total = int(length) if length and length.isdigit() else None

        with dest.open("wb") as fh:
            if not self._console.is_terminal:
                for chunk in response.iter_bytes():
                    fh.write(chunk)
                return

            with Progress(
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=self._console,
                transient=True,
            ) as progress:
                task = progress.add_task(dest.name, total=total)
                for chunk in response.iter_bytes():
                    fh.write(chunk)
                    progress.update(task, advance=len(chunk))

    # ------------------------------------------------------------------
    # Canonical name, then fallback
    # ------------------------------------------------------------------

    def resolve_and_fetch(
        self,
        identifier: ArtifactIdentifier,
        bucket: str,
        install_root: Path,
    ) -> ResolvedArtifact:
        """Fetch the canonical artifact, or its fallback name.

        Returns the ``ResolvedArtifact`` whose ``identifier`` is the name
        that was actually downloaded. Raises ``PackageNotFoundError`` when
        both names fail.
        """
        install_root = Path(install_root)

        canonical = identifier.canonical
        dest = install_root / f"{canonical}{ARCHIVE_SUFFIX}"
        if self.fetch(self.url_for(bucket, canonical), dest):
            return ResolvedArtifact(
                identifier=canonical,
                archive_path=dest,
                source=ArtifactSource.REMOTE,
            )

        fallback = identifier.fallback
        logger.warning("%s not found, trying %s", canonical, fallback)
        dest = install_root / f"{fallback}{ARCHIVE_SUFFIX}"
        if self.fetch(self.url_for(bucket, fallback), dest):
            return ResolvedArtifact(
                identifier=fallback,
                archive_path=dest,
                source=ArtifactSource.REMOTE,
                used_fallback=True,
            )

        raise PackageNotFoundError(canonical, fallback)
