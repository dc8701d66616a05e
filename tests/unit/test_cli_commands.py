"""Unit tests for the CLI: command registration, exit statuses and output.

The acquisition pipeline itself is replaced with a stub here; end-to-end
runs live in tests/integration.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from stackpkg.cli.app import _click_error_status, app, run
from stackpkg.cli.commands import install as install_mod
from stackpkg.core.errors import ChecksumMismatchError, DelegateFailure
from stackpkg.models.config import Command, InvocationRequest
from stackpkg.models.report import RunReport, Step, StepRecord, StepState

runner = CliRunner()


class StubPipeline:
    """Stands in for AcquisitionPipeline; records requests, replays an outcome."""

    requests: list[InvocationRequest] = []
    error: Exception | None = None
    from_cache = False

    def __init__(self, config, *, installer=None):
        self.config = config
        self.installer = installer

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def run(self, request: InvocationRequest) -> RunReport:
        type(self).requests.append(request)
        report = RunReport(
            request=request,
            identifier=f"{request.package}-linux-amd64-debian-10",
            from_cache=self.from_cache,
            steps=[StepRecord(step=Step.PLATFORM, state=StepState.PASSED, detail="debian-10")],
        )
        if self.error is not None:
            self.error.report = report
            raise self.error
        return report


@pytest.fixture
def stub_pipeline(monkeypatch: pytest.MonkeyPatch) -> type[StubPipeline]:
    monkeypatch.setattr(StubPipeline, "requests", [])
    monkeypatch.setattr(StubPipeline, "error", None)
    monkeypatch.setattr(StubPipeline, "from_cache", False)
    monkeypatch.setattr(install_mod, "AcquisitionPipeline", StubPipeline)
    return StubPipeline


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in ("PACKAGE_SHA256", "STACKPKG_CHECKSUM", "STACKPKG_BUCKET", "OS_FLAVOUR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("STACKPKG_OS_FLAVOUR", "debian-10")
    monkeypatch.setenv("STACKPKG_PREFIX", str(tmp_path / "opt"))
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("install", "unpack", "platform", "installed"):
            assert name in result.output

    @pytest.mark.parametrize("command", ["install", "unpack", "platform", "installed"])
    def test_subcommand_help(self, command: str):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0

    def test_run_help_exits_zero(self):
        assert run(["--help"]) == 0


class TestUsageErrors:
    """Usage errors exit with status 1, not click's default of 2."""

    def test_unknown_command(self):
        assert run(["frobnicate"]) == 1

    def test_missing_package(self):
        assert run(["install"]) == 1

    def test_unknown_option(self, stub_pipeline):
        assert run(["install", "nginx-1.9.10-0", "--no-such-flag"]) == 1
        assert stub_pipeline.requests == []

    @pytest.mark.parametrize("command", ["install", "unpack"])
    @pytest.mark.parametrize("package", ["", " ", "\t"])
    def test_blank_package(self, stub_pipeline, command: str, package: str):
        assert run([command, package]) == 1
        assert stub_pipeline.requests == []

    def test_blank_package_message(self, stub_pipeline):
        result = runner.invoke(app, ["install", " "])
        assert result.exit_code != 0
        assert "Traceback" not in result.output
        assert stub_pipeline.requests == []

    def test_unexpected_errors_propagate(self, stub_pipeline):
        stub_pipeline.error = RuntimeError("boom")
        with pytest.raises(RuntimeError, match="boom"):
            run(["install", "nginx-1.9.10-0"])


class _ClickStyleError(Exception):
    """Shaped like click's (or typer's vendored) ClickException."""

    def __init__(self, exit_code):
        super().__init__("bad usage")
        self.exit_code = exit_code
        self.shown = False

    def show(self):
        self.shown = True


class TestClickErrorStatus:
    def test_usage_status_maps_to_one(self):
        exc = _ClickStyleError(2)
        assert _click_error_status(exc) == 1
        assert exc.shown is True

    @pytest.mark.parametrize("code", [1, 3])
    def test_other_statuses_pass_through(self, code: int):
        assert _click_error_status(_ClickStyleError(code)) == code

    def test_plain_exception_is_not_handled(self):
        assert _click_error_status(ValueError("nope")) is None

    def test_non_integer_exit_code_is_not_handled(self):
        exc = _ClickStyleError("2")
        assert _click_error_status(exc) is None
        assert exc.shown is False


# ---------------------------------------------------------------------------
# Test: install / unpack
# ---------------------------------------------------------------------------


class TestInstallCommand:
    def test_install_builds_request(self, stub_pipeline):
        assert run(["install", "nginx-1.9.10-0"]) == 0
        (request,) = stub_pipeline.requests
        assert request.command == Command.INSTALL
        assert request.package == "nginx-1.9.10-0"
        assert request.bucket == "stacksmith"
        assert request.checksum is None
        assert request.args == []

    def test_unpack_uses_unpack_command(self, stub_pipeline):
        assert run(["unpack", "php-7.4.0-0"]) == 0
        assert stub_pipeline.requests[0].command == Command.UNPACK

    def test_installer_args_pass_through(self, stub_pipeline):
        assert run(["install", "nginx-1.9.10-0", "--", "--http_port", "8080"]) == 0
        assert stub_pipeline.requests[0].args == ["--http_port", "8080"]

    def test_bucket_and_checksum_options(self, stub_pipeline):
        assert run(["install", "nginx-1.9.10-0", "-b", "testing", "-c", "abc"]) == 0
        request = stub_pipeline.requests[0]
        assert request.bucket == "testing"
        assert request.checksum == "abc"

    def test_checksum_from_environment(self, stub_pipeline, monkeypatch):
        monkeypatch.setenv("PACKAGE_SHA256", "deadbeef")
        assert run(["install", "nginx-1.9.10-0"]) == 0
        assert stub_pipeline.requests[0].checksum == "deadbeef"

    def test_success_output(self, stub_pipeline):
        result = runner.invoke(app, ["install", "nginx-1.9.10-0"])
        assert result.exit_code == 0
        assert "Installed" in result.output
        assert "nginx-1.9.10-0-linux-amd64-debian-10" in result.output

    def test_cached_output(self, stub_pipeline):
        stub_pipeline.from_cache = True
        result = runner.invoke(app, ["unpack", "nginx-1.9.10-0"])
        assert "Unpacked" in result.output
        assert "(cached)" in result.output

    def test_verbose_prints_report(self, stub_pipeline):
        result = runner.invoke(app, ["install", "nginx-1.9.10-0", "--verbose"])
        assert result.exit_code == 0
        assert "platform" in result.output
        assert "passed" in result.output


class TestFailureExitCodes:
    def test_pipeline_error_exits_one(self, stub_pipeline):
        stub_pipeline.error = ChecksumMismatchError("mariadb", "aaa", "bbb")
        result = runner.invoke(app, ["install", "mariadb-10.1.11-0"])
        assert result.exit_code == 1
        assert "SHA256 mismatch" in result.output

    def test_delegate_failure_propagates_status(self, stub_pipeline):
        stub_pipeline.error = DelegateFailure("install", "nginx", 7)
        assert run(["install", "nginx-1.9.10-0"]) == 7

    def test_failure_report_on_verbose(self, stub_pipeline):
        stub_pipeline.error = DelegateFailure("install", "nginx", 3)
        result = runner.invoke(app, ["install", "nginx-1.9.10-0", "-v"])
        assert result.exit_code == 3
        assert "platform" in result.output


# ---------------------------------------------------------------------------
# Test: platform / installed
# ---------------------------------------------------------------------------


class TestPlatformCommand:
    def test_shows_distribution(self):
        result = runner.invoke(app, ["platform"])
        assert result.exit_code == 0
        assert "debian-10" in result.output
        assert "Architecture" in result.output

    def test_resolves_package_names(self):
        result = runner.invoke(app, ["platform", "nginx-1.9.10-0"])
        assert result.exit_code == 0
        assert "Canonical" in result.output
        assert "Fallback" in result.output


class TestInstalledCommand:
    def test_empty_ledger(self):
        result = runner.invoke(app, ["installed"])
        assert result.exit_code == 0
        assert "No packages recorded" in result.output

    def test_lists_entries(self, tmp_path: Path):
        ledger = tmp_path / "opt" / ".stackpkg" / "installed-packages"
        ledger.parent.mkdir(parents=True)
        ledger.write_text("nginx-1.9.10-0-linux-amd64-debian-10\n")
        result = runner.invoke(app, ["installed"])
        assert result.exit_code == 0
        assert "nginx-1.9.10-0-linux-amd64-debian-10" in result.output
