"""安装包解析测试"""

from __future__ import annotations

import pytest

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.exceptions import UnsupportedPlatformError
from rabbitmq_cookbook.core.models import Family
from rabbitmq_cookbook.core.resolver import artifact_filename, resolve


class TestUpstreamArtifact:
    def test_debian(self) -> None:
        art = resolve(Family.DEBIAN, ProvisioningAttributes(version="3.5.6"))
        assert art.is_remote
        assert art.local_path == "/tmp/rabbitmq-server_3.5.6-1_all.deb"
        assert art.filename == "rabbitmq-server_3.5.6-1_all.deb"
        assert art.url == (
            "https://www.rabbitmq.com/releases/rabbitmq-server/v3.5.6/"
            "rabbitmq-server_3.5.6-1_all.deb"
        )
        assert art.packages == ()

    def test_rhel(self) -> None:
        art = resolve(Family.RHEL, ProvisioningAttributes(version="3.5.6"))
        assert art.local_path == "/tmp/rabbitmq-server-3.5.6-1.noarch.rpm"
        assert art.package_version == "3.5.6-1"

    def test_default_version(self) -> None:
        art = resolve(Family.RHEL, ProvisioningAttributes())
        assert art.version == "3.5.6"
        assert art.local_path == "/tmp/rabbitmq-server-3.5.6-1.noarch.rpm"

    def test_cache_dir(self) -> None:
        art = resolve(Family.DEBIAN, ProvisioningAttributes(version="3.6.1"),
                      cache_dir="/var/cache/chef")
        assert art.local_path == "/var/cache/chef/rabbitmq-server_3.6.1-1_all.deb"

    def test_custom_mirror(self) -> None:
        attrs = ProvisioningAttributes(
            version="3.6.1", rpm_package_url="http://mirror.local/rabbit/{version}",
            package_checksum="abc123",
        )
        art = resolve(Family.RHEL, attrs)
        assert art.url == "http://mirror.local/rabbit/3.6.1/rabbitmq-server-3.6.1-1.noarch.rpm"
        assert art.checksum == "abc123"

    def test_deterministic(self) -> None:
        attrs = ProvisioningAttributes(version="3.5.6")
        assert resolve(Family.DEBIAN, attrs) == resolve(Family.DEBIAN, attrs)


class TestRepositoryPackages:
    @pytest.mark.parametrize("family", [Family.DEBIAN, Family.RHEL])
    def test_distro_version(self, family: Family) -> None:
        art = resolve(family, ProvisioningAttributes(use_distro_version=True))
        assert not art.is_remote
        assert art.packages == ("rabbitmq-server",)
        assert art.local_path == ""

    @pytest.mark.parametrize("distro", [True, False])
    def test_suse_always_repository(self, distro: bool) -> None:
        art = resolve(Family.SUSE, ProvisioningAttributes(use_distro_version=distro))
        assert art.packages == ("rabbitmq-server", "rabbitmq-server-plugins")
        assert not art.is_remote


class TestErrors:
    def test_unknown_family(self) -> None:
        with pytest.raises(UnsupportedPlatformError):
            resolve("gentoo", ProvisioningAttributes())  # type: ignore[arg-type]

    def test_no_upstream_artifact_for_suse(self) -> None:
        with pytest.raises(UnsupportedPlatformError):
            artifact_filename(Family.SUSE, "3.5.6")

    def test_to_dict(self) -> None:
        data = resolve(Family.SUSE, ProvisioningAttributes()).to_dict()
        assert data["family"] == "suse"
        assert data["packages"] == ["rabbitmq-server", "rabbitmq-server-plugins"]
