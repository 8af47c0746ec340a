"""部署步骤实现 - 4 步流水线

步骤顺序：
1. resolve   - 识别平台族，计算待安装的包
2. install   - 下载（如需）并安装
3. configure - 渲染并收敛配置文件
4. supervise - 托管系统服务
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rabbitmq_cookbook.core.exceptions import CookbookError
from rabbitmq_cookbook.core.models import Platform, ResourceAction
from rabbitmq_cookbook.core.resolver import resolve

if TYPE_CHECKING:
    from rabbitmq_cookbook.services.configurer import Configurer
    from rabbitmq_cookbook.services.installer import Installer
    from rabbitmq_cookbook.services.provisioner.models import ProvisionReport
    from rabbitmq_cookbook.services.supervisor import ServiceSupervisor

logger = logging.getLogger(__name__)


class ProvisionSteps:
    """部署步骤集合"""

    def __init__(
        self,
        installer: Installer,
        configurer: Configurer,
        supervisor: ServiceSupervisor,
        cache_dir: str = "/tmp",
    ) -> None:
        self.installer = installer
        self.configurer = configurer
        self.supervisor = supervisor
        self.cache_dir = cache_dir

    def resolve(self, platform: Platform, report: ProvisionReport) -> None:
        """步骤1: 计算 PackageArtifact"""
        artifact = resolve(platform.family, report.attrs, self.cache_dir)
        report.platform = platform
        report.artifact = artifact
        source = artifact.url if artifact.is_remote else ",".join(artifact.packages)
        report.steps.append({
            "step": "resolve", "status": "done",
            "family": platform.family.value, "version": artifact.version,
            "source": source,
        })
        logger.info("[Step 1] 解析完成: %s -> %s", platform, source)

    def install(self, report: ProvisionReport) -> None:
        """步骤2: 获取并安装"""
        if report.platform is None or report.artifact is None:
            raise CookbookError("安装步骤必须在解析步骤之后执行")
        actions = self.installer.install(report.platform, report.artifact, report.attrs)
        self._record("install", actions, report)
        logger.info("[Step 2] 安装完成: %d 个资源, %d 个变更",
                    len(actions), sum(a.updated for a in actions))

    def configure(self, report: ProvisionReport) -> None:
        """步骤3: 渲染配置"""
        actions = self.configurer.configure(report.attrs)
        self._record("configure", actions, report)
        logger.info("[Step 3] 配置完成: %d 个变更", sum(a.updated for a in actions))

    def supervise(self, report: ProvisionReport) -> None:
        """步骤4: 托管服务"""
        state, actions = self.supervisor.supervise(report.attrs)
        report.service_state = state
        self._record("supervise", actions, report)
        report.steps[-1]["service_state"] = state.value
        logger.info("[Step 4] 服务状态: %s", state.value)

    @staticmethod
    def _record(
        step: str, actions: list[ResourceAction], report: ProvisionReport,
    ) -> None:
        report.actions.extend(actions)
        report.steps.append({
            "step": step,
            "status": "done" if actions else "skipped",
            "resources": len(actions),
            "updated": sum(a.updated for a in actions),
        })
