"""安装阶段

职责:
- 前置依赖（apt 非交互配置、CentOS 的 EPEL、Erlang 运行时）
- 上游包 fetch-if-missing + 校验和
- 安装仓库包 / 本地包文件（已满足则跳过）
- Debian 安装前屏蔽包自带的服务自启动，安装后恢复
"""

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from pathlib import Path

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.exceptions import DownloadError
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.models import (
    Family,
    PackageArtifact,
    Platform,
    ResourceAction,
)
from rabbitmq_cookbook.core.packages import PackageManager, package_manager_for
from rabbitmq_cookbook.core.render import render_apt_force_yes
from rabbitmq_cookbook.utils.net import download_file, sha256_of, verify_checksum

logger = logging.getLogger(__name__)

APT_FORCE_YES = "/etc/apt/apt.conf.d/90forceyes"
POLICY_RC_D = "/usr/sbin/policy-rc.d"
EPEL_RECIPE = "yum-epel"
EPEL_PACKAGE = "epel-release"

ERLANG_PACKAGES: dict[Family, str] = {
    Family.DEBIAN: "erlang-nox",
    Family.RHEL: "erlang",
}

Downloader = Callable[[str, Path], Path]


class Installer:
    """安装器"""

    def __init__(self, host: Host, downloader: Downloader = download_file) -> None:
        self.host = host
        self.downloader = downloader

    def install(
        self,
        platform: Platform,
        artifact: PackageArtifact,
        attrs: ProvisioningAttributes,
    ) -> list[ResourceAction]:
        """按平台安装 artifact，返回本阶段的资源动作"""
        pm = package_manager_for(platform.family, self.host)
        actions: list[ResourceAction] = []
        debian = platform.family is Family.DEBIAN

        if debian:
            actions.append(self.host.template(
                APT_FORCE_YES, render_apt_force_yes(attrs), source="90forceyes",
            ))
        if platform.name == "centos":
            actions.extend(self._include_epel(pm))

        erlang = ERLANG_PACKAGES.get(platform.family)
        if erlang:
            actions.append(self._package(pm, erlang))

        if artifact.is_remote:
            actions.append(self.fetch(artifact))
            if debian:
                actions.extend(self._disable_autostart())
                try:
                    actions.append(self._package_file(pm, artifact))
                finally:
                    actions.append(self._undo_disable_autostart())
            else:
                actions.append(self._package_file(pm, artifact))
        else:
            for name in artifact.packages:
                actions.append(self._package(pm, name))

        if debian:
            actions.append(self._package(pm, "logrotate"))
        return actions

    # ---- 下载 ----

    def fetch(self, artifact: PackageArtifact) -> ResourceAction:
        """fetch-if-missing：缓存文件存在（且校验和匹配）时不触发网络传输"""
        dest = self.host.path(artifact.local_path)
        action = ResourceAction(
            resource="remote_file", name=artifact.local_path,
            action="create_if_missing", attrs={"source": artifact.url},
        )
        if dest.is_file() and self._cache_valid(dest, artifact.checksum):
            logger.info("  缓存命中: %s", artifact.local_path, extra={"resource": action.ref})
            return action

        action.updated = True
        if self.host.why_run:
            logger.info("  [why-run] 将下载: %s", artifact.url)
            return action

        self.downloader(artifact.url, dest)
        if artifact.checksum:
            try:
                verify_checksum(dest, artifact.checksum)
            except DownloadError:
                dest.unlink(missing_ok=True)
                raise
        logger.info("  已保存: %s", artifact.local_path, extra={"resource": action.ref})
        return action

    @staticmethod
    def _cache_valid(dest: Path, checksum: str) -> bool:
        if not checksum:
            return True
        if sha256_of(dest) == checksum.lower():
            return True
        logger.warning("缓存文件校验和不匹配，重新下载: %s", dest)
        return False

    # ---- 包 ----

    def _package(self, pm: PackageManager, name: str) -> ResourceAction:
        updated = pm.install(name)
        return ResourceAction(
            resource="package", name=name, action="install", updated=updated,
        )

    def _package_file(self, pm: PackageManager, artifact: PackageArtifact) -> ResourceAction:
        updated = pm.install_file(
            artifact.local_path, artifact.package_name, artifact.package_version,
        )
        return ResourceAction(
            resource=pm.file_resource, name=artifact.local_path,
            action="install", updated=updated,
            attrs={"version": artifact.package_version},
        )

    def _include_epel(self, pm: PackageManager) -> list[ResourceAction]:
        logger.info("  包含 %s", EPEL_RECIPE)
        return [
            ResourceAction(resource="recipe", name=EPEL_RECIPE, action="include", updated=False),
            self._package(pm, EPEL_PACKAGE),
        ]

    # ---- Debian 自启动屏蔽 ----

    def _disable_autostart(self) -> list[ResourceAction]:
        """写 policy-rc.d (exit 101)，阻止 deb 包安装后立即拉起服务"""
        policy = str(self.host.path(POLICY_RC_D))
        steps = [
            ("disable auto-start 1/2",
             ["sh", "-c", f"printf '#!/bin/sh\\nexit 101\\n' > {shlex.quote(policy)}"]),
            ("disable auto-start 2/2", ["chmod", "+x", policy]),
        ]
        actions = []
        for name, cmd in steps:
            self.host.run(cmd, label=name)
            actions.append(ResourceAction(
                resource="execute", name=name, action="run", updated=True,
                attrs={"command": " ".join(cmd)},
            ))
        return actions

    def _undo_disable_autostart(self) -> ResourceAction:
        name = "undo service disable hack"
        cmd = ["rm", "-f", str(self.host.path(POLICY_RC_D))]
        self.host.run(cmd, label=name)
        return ResourceAction(
            resource="execute", name=name, action="run", updated=True,
            attrs={"command": " ".join(cmd)},
        )
