"""主机平台识别

发行版名 → 族 的映射是封闭的；不在表中的平台直接判定为不支持，
在任何安装动作之前终止运行。
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path

from rabbitmq_cookbook.core.exceptions import UnsupportedPlatformError
from rabbitmq_cookbook.core.models import Family, Platform

logger = logging.getLogger(__name__)

PLATFORM_FAMILIES: dict[str, Family] = {
    "debian": Family.DEBIAN,
    "ubuntu": Family.DEBIAN,
    "linuxmint": Family.DEBIAN,
    "raspbian": Family.DEBIAN,
    "redhat": Family.RHEL,
    "rhel": Family.RHEL,
    "centos": Family.RHEL,
    "fedora": Family.RHEL,
    "amazon": Family.RHEL,
    "amzn": Family.RHEL,
    "scientific": Family.RHEL,
    "oracle": Family.RHEL,
    "ol": Family.RHEL,
    "rocky": Family.RHEL,
    "almalinux": Family.RHEL,
    "suse": Family.SUSE,
    "sles": Family.SUSE,
    "opensuse": Family.SUSE,
    "opensuse-leap": Family.SUSE,
    "opensuse-tumbleweed": Family.SUSE,
}


def family_for(name: str) -> Family:
    """按发行版名查族，未知平台抛 UnsupportedPlatformError"""
    family = PLATFORM_FAMILIES.get(name.lower())
    if family is None:
        raise UnsupportedPlatformError(
            f"不支持的平台 '{name}'，"
            f"可用: {', '.join(sorted(PLATFORM_FAMILIES))}"
        )
    return family


def parse_platform(spec: str) -> Platform:
    """解析 ``name[:version]`` 形式的平台描述，如 ``ubuntu:14.04``"""
    name, _, version = spec.partition(":")
    name = name.strip().lower()
    return Platform(name=name, version=version.strip(), family=family_for(name))


def parse_os_release(text: str) -> dict[str, str]:
    """解析 /etc/os-release 的 KEY=value 行"""
    result: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        try:
            parts = shlex.split(value)
        except ValueError:
            parts = [value.strip("\"'")]
        result[key.strip()] = parts[0] if parts else ""
    return result


def detect_platform(os_release: str | Path = "/etc/os-release") -> Platform:
    """从 os-release 识别平台

    ID 不在映射表中时依次尝试 ID_LIKE 中的条目（如 ``rhel centos fedora``），
    平台名保留原始 ID。
    """
    path = Path(os_release)
    if not path.exists():
        raise UnsupportedPlatformError(f"无法识别平台: {path} 不存在")

    info = parse_os_release(path.read_text(encoding="utf-8"))
    os_id = info.get("ID", "").lower()
    version = info.get("VERSION_ID", "")
    if not os_id:
        raise UnsupportedPlatformError(f"无法识别平台: {path} 缺少 ID")

    for candidate in [os_id, *info.get("ID_LIKE", "").lower().split()]:
        if candidate in PLATFORM_FAMILIES:
            platform = Platform(
                name=os_id, version=version,
                family=PLATFORM_FAMILIES[candidate],
            )
            logger.info("识别平台: %s", platform)
            return platform

    raise UnsupportedPlatformError(
        f"不支持的平台 '{os_id}' (ID_LIKE={info.get('ID_LIKE', '')})"
    )
