"""安装包解析

纯函数：由 (族, 属性, 缓存目录) 计算 PackageArtifact，不触发任何 IO。

规则:
  - SUSE: 始终走仓库，rabbitmq-server + rabbitmq-server-plugins
  - use_distro_version: 仓库包 rabbitmq-server
  - 其他: 按版本拼出上游 .deb / .rpm 文件名，缓存到 <cache_dir>/<文件名>
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.exceptions import UnsupportedPlatformError
from rabbitmq_cookbook.core.models import (
    PACKAGE_RELEASE,
    SERVER_PACKAGE,
    Family,
    PackageArtifact,
)

logger = logging.getLogger(__name__)

SUSE_PACKAGES = (SERVER_PACKAGE, f"{SERVER_PACKAGE}-plugins")


def artifact_filename(family: Family, version: str) -> str:
    """上游发布包文件名，如 rabbitmq-server_3.5.6-1_all.deb"""
    if family is Family.DEBIAN:
        return f"{SERVER_PACKAGE}_{version}-{PACKAGE_RELEASE}_all.deb"
    if family is Family.RHEL:
        return f"{SERVER_PACKAGE}-{version}-{PACKAGE_RELEASE}.noarch.rpm"
    raise UnsupportedPlatformError(f"{family.value} 族没有上游发布包")


def resolve(
    family: Family,
    attrs: ProvisioningAttributes,
    cache_dir: str = "/tmp",
) -> PackageArtifact:
    """计算本次运行要安装的包"""
    if not isinstance(family, Family):
        raise UnsupportedPlatformError(f"不支持的发行版族: {family!r}")

    version = attrs.target_version

    if family is Family.SUSE:
        return PackageArtifact(family=family, version=version, packages=SUSE_PACKAGES)

    if attrs.use_distro_version:
        return PackageArtifact(
            family=family, version=version, packages=(SERVER_PACKAGE,),
        )

    filename = artifact_filename(family, version)
    base_url = (
        attrs.deb_package_url if family is Family.DEBIAN else attrs.rpm_package_url
    )
    base_url = base_url.replace("{version}", version)
    url = f"{base_url.rstrip('/')}/{filename}"
    local_path = str(PurePosixPath(cache_dir) / filename)

    artifact = PackageArtifact(
        family=family,
        version=version,
        url=url,
        local_path=local_path,
        checksum=attrs.package_checksum or "",
    )
    logger.debug("解析结果: %s -> %s", url, local_path)
    return artifact
