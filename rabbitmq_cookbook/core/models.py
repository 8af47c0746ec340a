"""核心数据模型

数据类:
- Family / Platform: 发行版族与主机平台
- PackageArtifact: 本次运行要安装的包（仓库包或下载的 .deb/.rpm）
- ServiceState: 服务最终状态
- ResourceAction: 一次运行中触达的声明式资源
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Any

SERVER_PACKAGE = "rabbitmq-server"
PACKAGE_RELEASE = "1"


class Family(str, Enum):
    """发行版族（封闭集合）"""

    DEBIAN = "debian"
    RHEL = "rhel"
    SUSE = "suse"


@dataclass(frozen=True)
class Platform:
    """主机平台: 发行版名 + 版本 + 所属族"""

    name: str
    version: str
    family: Family

    def __str__(self) -> str:
        ver = f" {self.version}" if self.version else ""
        return f"{self.name}{ver} ({self.family.value})"


@dataclass(frozen=True)
class PackageArtifact:
    """待安装的包描述

    两种形态:
      - 仓库包: packages 非空，url 为空，交给 apt/yum/zypper 安装
      - 下载包: url + local_path，先 fetch-if-missing 再按本地文件安装
    """

    family: Family
    version: str
    packages: tuple[str, ...] = ()
    url: str = ""
    local_path: str = ""
    checksum: str = ""
    package_name: str = SERVER_PACKAGE

    @property
    def is_remote(self) -> bool:
        return bool(self.url)

    @property
    def filename(self) -> str:
        return PurePosixPath(self.local_path).name if self.local_path else ""

    @property
    def package_version(self) -> str:
        """包管理器视角的完整版本号（含 release），如 3.5.6-1"""
        return f"{self.version}-{PACKAGE_RELEASE}"

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["family"] = self.family.value
        data["packages"] = list(self.packages)
        return data


class ServiceState(str, Enum):
    """服务状态，仅由 manage_service 决定"""

    UNMANAGED = "unmanaged"
    PRESENT = "present"
    RUNNING = "running"


@dataclass
class ResourceAction:
    """一条资源动作记录

    resource: package / dpkg_package / rpm_package / remote_file / execute /
              template / directory / service / recipe
    updated: 本次运行是否真正改变（或 why-run 下将要改变）了主机状态
    """

    resource: str
    name: str
    action: str
    updated: bool = False
    attrs: dict[str, Any] = field(default_factory=dict)

    @property
    def ref(self) -> str:
        """资源引用，如 template[/etc/rabbitmq/rabbitmq.config]"""
        return f"{self.resource}[{self.name}]"

    def __str__(self) -> str:
        flag = "updated" if self.updated else "up-to-date"
        return f"{self.ref} {self.action} ({flag})"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
