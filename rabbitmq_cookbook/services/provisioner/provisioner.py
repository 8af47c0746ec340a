"""部署编排器 - 协调 4 步流水线

严格顺序、单线程、一次跑完；任何一步失败立即中止（不回滚已完成的步骤）。
"""

from __future__ import annotations

import logging

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.config import Config, get_config
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.models import Platform
from rabbitmq_cookbook.core.platform import detect_platform
from rabbitmq_cookbook.services.configurer import Configurer
from rabbitmq_cookbook.services.installer import Downloader, Installer
from rabbitmq_cookbook.services.provisioner.models import ProvisionReport
from rabbitmq_cookbook.services.provisioner.steps import ProvisionSteps
from rabbitmq_cookbook.services.supervisor import ServiceSupervisor
from rabbitmq_cookbook.utils.net import download_file

logger = logging.getLogger(__name__)


class Provisioner:
    """RabbitMQ 部署编排器"""

    def __init__(
        self,
        host: Host | None = None,
        config: Config | None = None,
        downloader: Downloader = download_file,
    ) -> None:
        self.config = config or get_config()
        self.host = host or Host.from_config(self.config)
        self.steps = ProvisionSteps(
            installer=Installer(self.host, downloader=downloader),
            configurer=Configurer(self.host),
            supervisor=ServiceSupervisor(self.host),
            cache_dir=self.config.file_cache_path,
        )

    def run(
        self,
        attrs: ProvisioningAttributes,
        platform: Platform | None = None,
    ) -> ProvisionReport:
        """执行一次完整部署，返回报告；失败时异常原样抛出"""
        if platform is None:
            platform = detect_platform(self.host.path(self.config.os_release))
        report = ProvisionReport(attrs=attrs, why_run=self.host.why_run)

        logger.info("开始部署 RabbitMQ %s -> %s%s", attrs.target_version, platform,
                    " [why-run]" if self.host.why_run else "")
        self.steps.resolve(platform, report)
        self.steps.install(report)
        self.steps.configure(report)
        self.steps.supervise(report)
        logger.info("部署完成: %d 个资源, %d 个变更",
                    len(report.actions), len(report.updated))
        return report
