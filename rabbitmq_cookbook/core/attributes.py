"""部署属性（ProvisioningAttributes）

声明期望状态的不可变输入。一次运行内按值传递给各阶段，
不存在隐式的全局节点状态。

加载来源:
  - YAML 文件，顶层字典或嵌套在 ``rabbitmq:`` 键下
  - CLI ``--set key=value`` 覆盖（值按 YAML 标量解析）
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from rabbitmq_cookbook.core.exceptions import ValidationError
from rabbitmq_cookbook.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "3.5.6"
RELEASES_URL = "https://www.rabbitmq.com/releases/rabbitmq-server/v{version}/"


@dataclass(frozen=True)
class ProvisioningAttributes:
    """RabbitMQ 部署属性"""

    # 包与服务
    version: str | None = None
    use_distro_version: bool = False
    manage_service: bool = True
    service_name: str = "rabbitmq-server"
    service_user: str = "rabbitmq"
    service_group: str = "rabbitmq"
    deb_package_url: str = RELEASES_URL
    rpm_package_url: str = RELEASES_URL
    package_checksum: str | None = None

    # 环境文件 rabbitmq-env.conf
    nodename: str | None = None
    address: str | None = None
    port: int | None = None
    config_root: str = "/etc/rabbitmq"
    config: str = "/etc/rabbitmq/rabbitmq"
    logdir: str | None = None
    mnesiadir: str = "/var/lib/rabbitmq/mnesia"
    server_additional_erl_args: str | None = None
    ctl_erl_args: str | None = None
    additional_env_settings: tuple[str, ...] = ()
    open_file_limit: int | None = None

    # rabbitmq.config
    default_user: str = "guest"
    default_pass: str = "guest"
    heartbeat: int | None = None
    vm_memory_high_watermark: float | None = None
    disk_free_limit_relative: float | None = None
    loopback_users: tuple[str, ...] | None = None
    additional_rabbit_configs: dict[str, Any] = field(default_factory=dict)

    # SSL
    ssl: bool = False
    ssl_port: int = 5671
    ssl_cacert: str = "/path/to/cacert.pem"
    ssl_cert: str = "/path/to/cert.pem"
    ssl_key: str = "/path/to/key.pem"
    ssl_verify: str = "verify_none"
    ssl_fail_if_no_peer_cert: bool = False
    ssl_ciphers: tuple[str, ...] | None = None
    web_console_ssl: bool = False
    web_console_ssl_port: int = 15671

    @property
    def target_version(self) -> str:
        """未指定 version 时回落到内置默认版本"""
        return self.version or DEFAULT_VERSION

    @property
    def env_file(self) -> str:
        return f"{self.config_root}/rabbitmq-env.conf"

    @property
    def config_file(self) -> str:
        return f"{self.config}.config"

    @property
    def default_file(self) -> str:
        return f"/etc/default/{self.service_name}"

    def merge(self, overrides: dict[str, Any]) -> ProvisioningAttributes:
        """返回叠加 overrides 后的新属性集（自身不变）"""
        if not overrides:
            return self
        return replace(self, **_coerce(overrides))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProvisioningAttributes:
        if "rabbitmq" in data and isinstance(data["rabbitmq"], dict):
            data = data["rabbitmq"]
        return cls(**_coerce(data))


_BOOL_FIELDS = frozenset((
    "use_distro_version", "manage_service", "ssl",
    "ssl_fail_if_no_peer_cert", "web_console_ssl",
))
_LIST_FIELDS = frozenset(("additional_env_settings", "loopback_users", "ssl_ciphers"))
_MAPPING_FIELDS = frozenset(("additional_rabbit_configs",))
_KNOWN_FIELDS = frozenset(f.name for f in fields(ProvisioningAttributes))


def _coerce(data: dict[str, Any]) -> dict[str, Any]:
    """校验键名与值类型，列表统一转为 tuple

    additional_rabbit_configs 的内容原样透传，不做校验。
    """
    errors: list[str] = []
    result: dict[str, Any] = {}
    for key, value in data.items():
        if key not in _KNOWN_FIELDS:
            errors.append(f"未知属性: {key}")
            continue
        if key in _BOOL_FIELDS:
            if not isinstance(value, bool):
                errors.append(f"{key} 必须是布尔值: {value!r}")
                continue
        elif key in _LIST_FIELDS:
            if value is None:
                value = () if key == "additional_env_settings" else None
            elif isinstance(value, (list, tuple)):
                bad = [i for i, v in enumerate(value) if not isinstance(v, str)]
                if bad:
                    errors.extend(
                        f"{key}[{i}] 必须是字符串，请加引号: {value[i]!r}" for i in bad
                    )
                    continue
                value = tuple(value)
            else:
                errors.append(f"{key} 必须是列表: {value!r}")
                continue
        elif key in _MAPPING_FIELDS:
            if value is None:
                value = {}
            elif not isinstance(value, dict):
                errors.append(f"{key} 必须是字典: {value!r}")
                continue
            else:
                value = dict(value)
        elif isinstance(value, (list, tuple, dict)):
            errors.append(f"{key} 必须是标量: {value!r}")
            continue
        elif key == "version" and value is not None:
            value = str(value)
        result[key] = value
    if errors:
        raise ValidationError("部署属性无效", details=errors)
    return result


def parse_overrides(pairs: tuple[str, ...] | list[str]) -> dict[str, Any]:
    """解析 key=value 覆盖参数，值按 YAML 标量解析（true / 5672 / [a, b]）"""
    result: dict[str, Any] = {}
    for p in pairs:
        if "=" not in p:
            raise ValidationError(f"覆盖参数格式应为 key=value: {p}")
        k, v = p.split("=", 1)
        k = k.strip()
        if k == "version":
            # 3.10 这类版本号不能按浮点解析
            result[k] = v.strip() or None
            continue
        try:
            result[k] = yaml.safe_load(v) if v.strip() else None
        except yaml.YAMLError as e:
            raise ValidationError(f"覆盖参数值无法解析: {p} ({e})") from e
    return result


def load_attributes(
    path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> ProvisioningAttributes:
    """从 YAML 文件加载属性并叠加覆盖；文件缺省时全部使用默认值"""
    data: dict[str, Any] = {}
    if path:
        try:
            data = load_yaml(path)
        except (ValueError, yaml.YAMLError) as e:
            raise ValidationError(str(e)) from e
        if data:
            logger.info("属性已加载: %s (%d 项)", path, len(data))
    attrs = ProvisioningAttributes.from_dict(data)
    return attrs.merge(overrides or {})
