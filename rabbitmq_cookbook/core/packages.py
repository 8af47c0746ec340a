"""包管理器适配

每个发行版族一个实现，只负责两件事:
  - 查询已安装版本（判断是否需要安装）
  - 安装仓库包 / 本地包文件
已满足时不调用安装命令，保证重复运行无可观察副作用。
"""

from __future__ import annotations

import logging

from rabbitmq_cookbook.core.exceptions import InstallError
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.models import Family

logger = logging.getLogger(__name__)


class PackageManager:
    """包管理器基类"""

    #: 本地包文件安装对应的资源类型
    file_resource = "package"

    def __init__(self, host: Host) -> None:
        self.host = host

    def installed_version(self, package: str) -> str | None:
        raise NotImplementedError

    def install_command(self, package: str) -> list[str]:
        raise NotImplementedError

    def install_file_command(self, path: str) -> list[str]:
        raise NotImplementedError

    def install(self, package: str) -> bool:
        """安装仓库包，已安装则跳过；返回是否有变更"""
        ref = {"resource": f"package[{package}]"}
        current = self.installed_version(package)
        if current:
            logger.info("  已安装: %s (%s)", package, current, extra=ref)
            return False
        self.host.run(
            self.install_command(package),
            label=f"安装 {package}", error_cls=InstallError,
        )
        logger.info("  已安装: %s", package, extra=ref)
        return True

    def install_file(self, path: str, package: str, version: str) -> bool:
        """安装本地包文件，已安装同版本则跳过；返回是否有变更"""
        ref = {"resource": f"{self.file_resource}[{path}]"}
        current = self.installed_version(package)
        if current == version:
            logger.info("  版本已满足: %s=%s", package, version, extra=ref)
            return False
        real = str(self.host.path(path))
        self.host.run(
            self.install_file_command(real),
            label=f"安装 {path}", error_cls=InstallError,
        )
        logger.info("  已安装: %s=%s", package, version, extra=ref)
        return True


def _rpm_version(host: Host, package: str) -> str | None:
    r = host.query(["rpm", "-q", "--qf", "%{VERSION}-%{RELEASE}", package])
    if r is None or not r.success:
        return None
    return r.stdout.strip() or None


class AptPackageManager(PackageManager):
    file_resource = "dpkg_package"

    def installed_version(self, package: str) -> str | None:
        r = self.host.query(["dpkg-query", "-W", "-f=${Status}|${Version}", package])
        if r is None or not r.success:
            return None
        status, _, version = r.stdout.strip().partition("|")
        if not status.endswith(" installed"):
            return None
        return version or None

    def install_command(self, package: str) -> list[str]:
        return ["apt-get", "install", "-y", "-q", package]

    def install_file_command(self, path: str) -> list[str]:
        return ["dpkg", "-i", path]


class YumPackageManager(PackageManager):
    file_resource = "rpm_package"

    def installed_version(self, package: str) -> str | None:
        return _rpm_version(self.host, package)

    def install_command(self, package: str) -> list[str]:
        return ["yum", "install", "-y", package]

    def install_file_command(self, path: str) -> list[str]:
        return ["rpm", "-Uvh", path]


class ZypperPackageManager(PackageManager):
    """SUSE 只装仓库包，没有本地包文件安装"""

    def installed_version(self, package: str) -> str | None:
        return _rpm_version(self.host, package)

    def install_command(self, package: str) -> list[str]:
        return ["zypper", "--non-interactive", "install", package]


_MANAGERS: dict[Family, type[PackageManager]] = {
    Family.DEBIAN: AptPackageManager,
    Family.RHEL: YumPackageManager,
    Family.SUSE: ZypperPackageManager,
}


def package_manager_for(family: Family, host: Host) -> PackageManager:
    return _MANAGERS[family](host)
