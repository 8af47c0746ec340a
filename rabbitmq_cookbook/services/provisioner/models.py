"""部署报告数据模型"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.models import (
    PackageArtifact,
    Platform,
    ResourceAction,
    ServiceState,
)


@dataclass
class ProvisionReport:
    """一次部署运行的报告"""

    attrs: ProvisioningAttributes
    platform: Platform | None = None
    artifact: PackageArtifact | None = None
    actions: list[ResourceAction] = field(default_factory=list)
    steps: list[dict[str, Any]] = field(default_factory=list)
    service_state: ServiceState = ServiceState.UNMANAGED
    why_run: bool = False

    @property
    def updated(self) -> list[ResourceAction]:
        return [a for a in self.actions if a.updated]

    def find(
        self, resource: str, name: str, action: str | None = None,
    ) -> ResourceAction | None:
        for a in self.actions:
            if a.resource == resource and a.name == name:
                if action is None or a.action == action:
                    return a
        return None

    def has(self, resource: str, name: str, action: str | None = None) -> bool:
        return self.find(resource, name, action) is not None

    def names(self, resource: str, action: str | None = None) -> list[str]:
        return [
            a.name for a in self.actions
            if a.resource == resource and (action is None or a.action == action)
        ]

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": str(self.platform) if self.platform else None,
            "artifact": self.artifact.to_dict() if self.artifact else None,
            "service_state": self.service_state.value,
            "why_run": self.why_run,
            "steps": self.steps,
            "actions": [a.to_dict() for a in self.actions],
        }
