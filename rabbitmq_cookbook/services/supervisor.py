"""服务托管阶段

manage_service=True  → 确保开机自启且正在运行
manage_service=False → 完全不触碰服务（不 disable、不 stop）
"""

from __future__ import annotations

import logging

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.exceptions import ServiceError
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.models import ResourceAction, ServiceState

logger = logging.getLogger(__name__)


class ServiceSupervisor:
    def __init__(self, host: Host) -> None:
        self.host = host

    def supervise(
        self, attrs: ProvisioningAttributes,
    ) -> tuple[ServiceState, list[ResourceAction]]:
        name = attrs.service_name
        if not attrs.manage_service:
            logger.info("  manage_service=false，不托管服务 %s", name)
            return ServiceState.PRESENT, []

        actions = [
            self._ensure(name, "enable", ["systemctl", "is-enabled", "--quiet", name]),
            self._ensure(name, "start", ["systemctl", "is-active", "--quiet", name]),
        ]
        return ServiceState.RUNNING, actions

    def _ensure(self, name: str, action: str, probe: list[str]) -> ResourceAction:
        r = self.host.query(probe)
        satisfied = r is not None and r.success
        if not satisfied:
            self.host.run(
                ["systemctl", action, name],
                label=f"{action} {name}", error_cls=ServiceError,
            )
        result = ResourceAction(
            resource="service", name=name, action=action, updated=not satisfied,
        )
        logger.info("  %s %s: %s", action, name, "已变更" if result.updated else "已满足",
                    extra={"resource": result.ref})
        return result
