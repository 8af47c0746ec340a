"""部署编排模块

- models.py: ProvisionReport 运行报告
- steps.py: 四个阶段的实现
- provisioner.py: 编排入口
"""

from rabbitmq_cookbook.services.provisioner.models import ProvisionReport
from rabbitmq_cookbook.services.provisioner.provisioner import Provisioner

__all__ = [
    "ProvisionReport",
    "Provisioner",
]
