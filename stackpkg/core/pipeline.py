"""Acquisition pipeline: the central coordinator for one invocation.

Wires the platform identifier, resolver, cache gateway, fetcher, integrity
verifier, extractor, installer dispatcher, permission normalizer and
installed-packages ledger into one strictly sequential run:

    platform -> resolve -> cache | fetch -> verify -> extract
        -> dispatch -> permissions -> record

Exactly one artifact identifier is active per run. When the fetch falls
back to the distribution-less name, that name is what gets verified,
extracted, dispatched and recorded.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from stackpkg.core.cache import CacheGateway
from stackpkg.core.dispatcher import InstallerDispatcher
from stackpkg.core.errors import StackpkgError
from stackpkg.core.extractor import Extractor
from stackpkg.core.fetcher import Fetcher
from stackpkg.core.installer import Installer, NamiInstaller
from stackpkg.core.ledger import InstalledLedger
from stackpkg.core.permissions import PermissionNormalizer
from stackpkg.core.platform_id import identify_platform
from stackpkg.core.resolver import package_name, resolve_identifier
from stackpkg.core.verifier import IntegrityVerifier
from stackpkg.models.artifacts import (
    ArtifactIdentifier,
    ArtifactSource,
    ResolvedArtifact,
)
from stackpkg.models.config import InvocationRequest, PipelineConfig
from stackpkg.models.report import RunReport, Step, StepRecord, StepState

logger = logging.getLogger(__name__)


class AcquisitionPipeline:
    """Runs the acquisition pipeline for a single request.

    Parameters
    ----------
    config:
        Pipeline configuration. Uses defaults if not provided.
    installer:
        Installer backend; defaults to ``NamiInstaller``.
    fetcher:
        Release-channel fetcher; one is built from *config* if omitted
        and closed by ``close()``.
    extractor, verifier:
        Optional replacements for the default implementations.
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        *,
        installer: Installer | None = None,
        fetcher: Fetcher | None = None,
        extractor: Extractor | None = None,
        verifier: IntegrityVerifier | None = None,
    ) -> None:
        self.config = config or PipelineConfig()
        self.installer = installer or NamiInstaller()

        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(
            self.config.base_url, timeout=self.config.http_timeout
        )
        self.cache = CacheGateway(self.config.cache_root)
        self.verifier = verifier or IntegrityVerifier()
        self.extractor = extractor or Extractor()
        self.dispatcher = InstallerDispatcher(
            self.installer,
            self.config.install_root,
            self.config.git_destination,
        )
        self.permissions = PermissionNormalizer(
            self.config.chmod,
            fixed_dirs=[self.config.installer_state_dir, self.config.volume_dir],
            extra_dirs=self.config.extra_dirs,
            volume_dir=self.config.volume_dir,
            installer=self.installer,
            home=self.config.home,
        )
        self.ledger = InstalledLedger(self.config.resolved_ledger_path)

        self._steps: list[StepRecord] = []
        self._context: dict[str, Any] = {}

    def __enter__(self) -> AcquisitionPipeline:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self, request: InvocationRequest) -> RunReport:
        """Execute every step for *request* and return the run report.

        Any ``StackpkgError`` is re-raised with the partial report
        attached as ``error.report``.
        """
        self._steps = []
        self._context = {}
        try:
            self._execute(request)
        except StackpkgError as exc:
            exc.report = self._build_report(request)
            raise
        return self._build_report(request)

    def _execute(self, request: InvocationRequest) -> None:
        with self._step(Step.PLATFORM):
            platform = identify_platform(
                self.config.os_flavour,
                self.config.os_release_path,
                machine=self.config.machine,
            )
        self._context["platform"] = platform
        self._record(
            Step.PLATFORM,
            StepState.PASSED,
            f"{platform.distribution}/{platform.architecture}",
        )

        with self._step(Step.RESOLVE):
            identifier = resolve_identifier(request.package, platform)
        self._record(Step.RESOLVE, StepState.PASSED, str(identifier))

        install_root = self._prepare_install_root()
        resolved = self._acquire(request, identifier, install_root)
        self._context["resolved"] = resolved
        active = resolved.identifier

        checksum = resolved.checksum or request.checksum
        with self._step(Step.VERIFY):
            members = self.verifier.verify(
                resolved.archive_path, checksum, identifier=active
            )
        self._record(
            Step.VERIFY,
            StepState.PASSED,
            f"{members} members" + (", sha256 ok" if checksum else ""),
        )

        with self._step(Step.EXTRACT):
            tool = self.extractor.extract(resolved.archive_path, install_root)
        self._record(Step.EXTRACT, StepState.PASSED, tool)

        try:
            with self._step(Step.DISPATCH):
                self.dispatcher.dispatch(request.command.value, active, request.args)
            self._record(
                Step.DISPATCH, StepState.PASSED, f"{request.command.value} {active}"
            )
        finally:
            shutil.rmtree(install_root, ignore_errors=True)

        if self.permissions.enabled:
            with self._step(Step.PERMISSIONS):
                applied = self.permissions.normalize(package_name(active))
            self._record(Step.PERMISSIONS, StepState.PASSED, f"{len(applied)} paths")
        else:
            self._record(Step.PERMISSIONS, StepState.SKIPPED, "no mode configured")

        with self._step(Step.RECORD):
            self.ledger.record(active)
        self._record(Step.RECORD, StepState.PASSED, str(self.ledger.path))

    # ------------------------------------------------------------------
    # Cache, then network
    # ------------------------------------------------------------------

    def _acquire(
        self,
        request: InvocationRequest,
        identifier: ArtifactIdentifier,
        install_root: Path,
    ) -> ResolvedArtifact:
        entry = self.cache.lookup(identifier.canonical)
        if entry is not None:
            resolved = self.cache.restore(entry, install_root)
            self._record(Step.CACHE, StepState.PASSED, f"hit {entry.archive_path}")
            self._record(Step.FETCH, StepState.SKIPPED, "served from cache")
            return resolved

        self._record(Step.CACHE, StepState.SKIPPED, f"miss in {self.cache.root}")
        with self._step(Step.FETCH):
            resolved = self.fetcher.resolve_and_fetch(
                identifier, request.bucket, install_root
            )
        detail = resolved.identifier
        if resolved.used_fallback:
            detail += " (fallback name)"
        self._record(Step.FETCH, StepState.PASSED, detail)
        return resolved

    def _prepare_install_root(self) -> Path:
        """Recreate the working install root empty."""
        root = Path(self.config.install_root)
        if root.exists():
            shutil.rmtree(root)
        root.mkdir(parents=True)
        return root

    # ------------------------------------------------------------------
    # Reporting helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _step(self, step: Step) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            logger.error("Step %s failed: %s", step.value, exc)
            self._record(step, StepState.FAILED, str(exc))
            raise

    def _record(self, step: Step, state: StepState, detail: str = "") -> None:
        self._steps.append(StepRecord(step=step, state=state, detail=detail))
        logger.info("[%s] %s %s", step.value, state.value, detail)

    def _build_report(self, request: InvocationRequest) -> RunReport:
        resolved: ResolvedArtifact | None = self._context.get("resolved")
        return RunReport(
            request=request,
            platform=self._context.get("platform"),
            identifier=resolved.identifier if resolved else None,
            from_cache=bool(resolved and resolved.source == ArtifactSource.CACHE),
            used_fallback=bool(resolved and resolved.used_fallback),
            steps=list(self._steps),
        )
