"""Shared test fixtures for stackpkg."""

from __future__ import annotations

import io
import tarfile
from collections.abc import Callable, Sequence
from pathlib import Path

import httpx
import pytest
from rich.console import Console

from stackpkg.core.fetcher import Fetcher
from stackpkg.core.installer import InstallerMetadata
from stackpkg.models.config import PipelineConfig

BASE_URL = "https://downloads.test/files"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeInstaller:
    """In-memory ``Installer`` that records every call.

    ``on_run`` lets a test look at the install root while the installer
    "runs", before the pipeline removes it.
    """

    def __init__(
        self,
        returncode: int = 0,
        installdirs: Sequence[Path] = (),
        on_run: Callable[[str, str, Path], None] | None = None,
    ) -> None:
        self.returncode = returncode
        self.installdirs = list(installdirs)
        self.on_run = on_run
        self.runs: list[tuple[str, str, list[str], Path]] = []
        self.inspections: list[tuple[str, Path]] = []

    def run(self, command, identifier, args, *, cwd):
        self.runs.append((command, identifier, list(args), Path(cwd)))
        if self.on_run is not None:
            self.on_run(command, identifier, Path(cwd))
        return self.returncode

    def inspect(self, package_name, *, cwd):
        self.inspections.append((package_name, Path(cwd)))
        return InstallerMetadata(package_name=package_name, installdirs=self.installdirs)


class RecordingTransport:
    """``httpx.MockTransport`` handler serving a fixed route table.

    Routes map a URL path to archive bytes or an HTTP status code.
    Unrouted paths return 404.
    """

    def __init__(self, routes: dict[str, bytes | int] | None = None) -> None:
        self.routes = dict(routes or {})
        self.requested: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requested.append(request.url.path)
        body = self.routes.get(request.url.path, 404)
        if isinstance(body, int):
            return httpx.Response(body)
        return httpx.Response(200, content=body)


# ---------------------------------------------------------------------------
# Archives
# ---------------------------------------------------------------------------


def build_archive(top_dir: str, files: dict[str, bytes] | None = None) -> bytes:
    """Build a gzip tarball with every file under ``top_dir/``."""
    files = files if files is not None else {
        "nami.json": b'{"id": "pkg"}',
        "files/app/bin/run": b"#!/bin/sh\necho run\n",
        "files/app/conf/app.conf": b"listen 8080\n",
    }
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for rel, data in sorted(files.items()):
            info = tarfile.TarInfo(name=f"{top_dir}/{rel}")
            info.size = len(data)
            info.mode = 0o644
            info.mtime = 1_700_000_000
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Factory fixture: build an artifact archive for an identifier."""
    return build_archive


# ---------------------------------------------------------------------------
# Pipeline wiring
# ---------------------------------------------------------------------------


@pytest.fixture
def pipeline_config(tmp_path: Path) -> PipelineConfig:
    """A PipelineConfig rooted entirely in the temp directory.

    Pinned to debian-10 on x86_64 so identifiers are deterministic.
    """
    home = tmp_path / "home"
    home.mkdir()
    return PipelineConfig(
        os_flavour="debian-10",
        os_release_path=tmp_path / "no-os-release",
        machine="x86_64",
        prefix=tmp_path / "opt",
        install_root=tmp_path / "work" / "install",
        cache_root=tmp_path / "cache",
        ledger_path=tmp_path / "opt" / ".stackpkg" / "installed-packages",
        volume_dir=tmp_path / "volume",
        home=home,
        base_url=BASE_URL,
    )


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def fetcher(transport: RecordingTransport) -> Fetcher:
    """Fetcher backed by the recording mock transport."""
    client = httpx.Client(transport=httpx.MockTransport(transport))
    return Fetcher(BASE_URL, client=client, console=Console(file=io.StringIO()))


@pytest.fixture
def installer() -> FakeInstaller:
    return FakeInstaller()


def route(bucket: str, identifier: str) -> str:
    """URL path the fetcher requests for *identifier* in *bucket*."""
    return f"/files/{bucket}/{identifier}.tar.gz"
