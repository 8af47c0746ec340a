"""配置阶段：mnesia 目录 + 三个受管配置文件"""

from __future__ import annotations

import logging

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.models import ResourceAction
from rabbitmq_cookbook.core.render import (
    render_default_file,
    render_env_conf,
    render_rabbitmq_config,
)

logger = logging.getLogger(__name__)

MNESIA_MODE = 0o775
CONFIG_MODE = 0o644


class Configurer:
    """配置收敛器"""

    def __init__(self, host: Host) -> None:
        self.host = host

    def configure(self, attrs: ProvisioningAttributes) -> list[ResourceAction]:
        actions = [
            self.host.directory(
                attrs.mnesiadir,
                owner=attrs.service_user, group=attrs.service_group,
                mode=MNESIA_MODE,
            ),
        ]
        files = (
            (attrs.env_file, render_env_conf(attrs), "rabbitmq-env.conf"),
            (attrs.config_file, render_rabbitmq_config(attrs), "rabbitmq.config"),
            (attrs.default_file, render_default_file(attrs), "default.rabbitmq-server"),
        )
        for path, content, source in files:
            actions.append(self.host.template(
                path, content, source=source,
                owner="root", group="root", mode=CONFIG_MODE,
            ))

        changed = [a.name for a in actions if a.updated]
        logger.info("  配置变更: %s", changed or "无")
        return actions
