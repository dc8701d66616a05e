"""Tests for artifact naming models and the resolver."""

from __future__ import annotations

import pytest

from stackpkg.core.resolver import package_name, resolve_identifier
from stackpkg.models.artifacts import ArtifactIdentifier, bare_package_name
from stackpkg.models.config import Command, InvocationRequest
from stackpkg.models.platform import PlatformDescriptor

DEBIAN_10 = PlatformDescriptor(
    distribution="debian-10", distribution_major_version="10", architecture="amd64"
)


class TestArtifactIdentifier:
    def test_canonical_form(self):
        identifier = ArtifactIdentifier(
            package="nginx-1.9.10-0", architecture="amd64", distribution="debian-10"
        )
        assert identifier.canonical == "nginx-1.9.10-0-linux-amd64-debian-10"
        assert str(identifier) == identifier.canonical

    def test_fallback_strips_distribution(self):
        identifier = ArtifactIdentifier(
            package="nginx-1.9.10-0", architecture="amd64", distribution="debian-10"
        )
        assert identifier.fallback == "nginx-1.9.10-0-linux-amd64"

    def test_package_name(self):
        identifier = ArtifactIdentifier(
            package="mysql-client-10.1.11-0", architecture="x86_64", distribution="centos-7"
        )
        assert identifier.package_name == "mysql-client"


class TestBarePackageName:
    @pytest.mark.parametrize(
        ("identifier", "expected"),
        [
            ("nginx-1.9.10-0", "nginx"),
            ("nginx-1.9.10-0-linux-amd64-debian-10", "nginx"),
            ("mysql-client-10.1.11-0-linux-amd64", "mysql-client"),
            ("git-2.26.0-0-linux-amd64-debian-10", "git"),
            ("node-exporter-1.0.1-0", "node-exporter"),
            ("noversion", "noversion"),
        ],
    )
    def test_truncates_at_first_version_segment(self, identifier: str, expected: str):
        assert bare_package_name(identifier) == expected
        assert package_name(identifier) == expected


class TestResolver:
    def test_resolve_identifier(self):
        identifier = resolve_identifier("nginx-1.9.10-0", DEBIAN_10)
        assert identifier.canonical == "nginx-1.9.10-0-linux-amd64-debian-10"

    def test_resolve_strips_whitespace(self):
        identifier = resolve_identifier("  redis-6.0.5-0 ", DEBIAN_10)
        assert identifier.package == "redis-6.0.5-0"

    def test_empty_package_rejected(self):
        with pytest.raises(ValueError):
            resolve_identifier("  ", DEBIAN_10)


class TestInvocationRequest:
    def test_defaults(self):
        request = InvocationRequest(command=Command.INSTALL, package="nginx-1.9.10-0")
        assert request.bucket == "stacksmith"
        assert request.checksum is None
        assert request.args == []

    def test_command_from_string(self):
        request = InvocationRequest(command="unpack", package="nginx-1.9.10-0")
        assert request.command is Command.UNPACK

    def test_invalid_command_rejected(self):
        with pytest.raises(Exception):
            InvocationRequest(command="remove", package="nginx-1.9.10-0")

    def test_frozen(self):
        request = InvocationRequest(command=Command.INSTALL, package="nginx-1.9.10-0")
        with pytest.raises(Exception):
            request.package = "other"  # type: ignore[misc]
