"""Unit tests for install state detection and password resolution."""

from __future__ import annotations

import pytest

from loftctl.errors import ClusterAccessError, LoftError
from loftctl.start.credentials import PasswordResolver
from loftctl.start.state import DeploymentState, InstallStateDetector


class TestInstallStateDetector:
    """Tests for InstallStateDetector."""

    def test_absent(self, cluster):
        """No deployment means loft is not installed."""
        state = InstallStateDetector(cluster).detect("loft")

        assert state is DeploymentState.ABSENT
        assert not state.installed
        assert "get_ingress" not in cluster.calls

    def test_present_local(self, cluster):
        """A deployment without ingress is a local install."""
        cluster.add_deployment()

        state = InstallStateDetector(cluster).detect("loft")

        assert state is DeploymentState.PRESENT_LOCAL
        assert state.installed

    def test_present_remote(self, cluster):
        """A deployment with the loft ingress is a remote install."""
        cluster.add_deployment()
        cluster.add_ingress(hosts=["loft.example.com"])

        assert InstallStateDetector(cluster).detect("loft") is DeploymentState.PRESENT_REMOTE

    def test_other_namespace(self, cluster):
        """Only the requested namespace is considered."""
        cluster.add_deployment(namespace="other")

        assert InstallStateDetector(cluster).detect("loft") is DeploymentState.ABSENT

    def test_deployment_error_propagates(self, cluster, cluster_error):
        """Errors other than not-found are not mistaken for absence."""
        cluster.failures["get_deployment"] = cluster_error()

        with pytest.raises(ClusterAccessError):
            InstallStateDetector(cluster).detect("loft")

    def test_ingress_error_propagates(self, cluster, cluster_error):
        cluster.add_deployment()
        cluster.failures["get_ingress"] = cluster_error(status=500)

        with pytest.raises(ClusterAccessError) as exc_info:
            InstallStateDetector(cluster).detect("loft")
        assert exc_info.value.status == 500


class TestIngressHost:
    """Tests for InstallStateDetector.ingress_host()."""

    def test_first_rule_host(self, cluster):
        cluster.add_ingress(hosts=["loft.example.com", "other.example.com"])

        assert InstallStateDetector(cluster).ingress_host("loft") == "loft.example.com"

    def test_no_rules(self, cluster):
        """An ingress without rules cannot be used to reach loft."""
        cluster.add_ingress(hosts=[])

        with pytest.raises(LoftError, match="couldn't find any host"):
            InstallStateDetector(cluster).ingress_host("loft")

    def test_rule_without_host(self, cluster):
        cluster.add_ingress(hosts=[None])

        with pytest.raises(LoftError, match="loft start --reset"):
            InstallStateDetector(cluster).ingress_host("loft")


class TestPasswordResolver:
    """Tests for PasswordResolver."""

    def test_explicit_password_wins(self, cluster):
        """An explicit password is returned without touching the cluster."""
        resolver = PasswordResolver(cluster, "loft", explicit="s3cret")

        assert resolver.resolve() == "s3cret"
        assert cluster.calls == []

    def test_existing_namespace_uid(self, cluster):
        cluster.namespaces["loft"] = "1234-abcd"

        assert PasswordResolver(cluster, "loft").resolve() == "1234-abcd"

    def test_idempotent_for_existing_namespace(self, cluster):
        """Resolving twice yields the same password and creates nothing."""
        cluster.namespaces["loft"] = "1234-abcd"
        resolver = PasswordResolver(cluster, "loft")

        assert resolver.resolve() == resolver.resolve()
        assert cluster.created == []

    def test_creates_missing_namespace(self, cluster):
        """A missing namespace is created and its UID used."""
        password = PasswordResolver(cluster, "loft").resolve()

        assert password == "uid-loft"
        assert cluster.created == [("namespace", "loft")]
        assert PasswordResolver(cluster, "loft").resolve() == password

    def test_read_error_propagates(self, cluster, cluster_error):
        cluster.failures["get_namespace"] = cluster_error()

        with pytest.raises(ClusterAccessError):
            PasswordResolver(cluster, "loft").resolve()
