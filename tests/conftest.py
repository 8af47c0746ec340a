"""测试共享 fixture — 记录型命令执行器 + 假下载器

所有测试都不触碰真实包管理器、systemctl 和网络：
  - FakeExecutor 记录每条命令，探测类命令默认失败（= 未安装 / 未运行）
  - fake_download 把固定内容写到目标路径并记录调用
  - host 的 root_dir 指向 tmp_path，受管文件都落在临时目录
"""

from __future__ import annotations

from pathlib import Path

import pytest

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.config import Config
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.core.platform import parse_platform
from rabbitmq_cookbook.services.provisioner import Provisioner
from rabbitmq_cookbook.utils.shell import CommandResult

PLATFORMS = {
    "ubuntu": "ubuntu:14.04",
    "debian": "debian:8",
    "redhat": "redhat:7.1",
    "centos": "centos:7.0",
    "fedora": "fedora:22",
    "suse": "opensuse:13.2",
}

_PROBES = (
    ["dpkg-query"],
    ["rpm", "-q"],
    ["systemctl", "is-enabled"],
    ["systemctl", "is-active"],
)

PACKAGE_BYTES = b"fake package payload"


class FakeExecutor:
    """记录型 CommandExecutor"""

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self._responses: list[tuple[list[str], CommandResult]] = []

    def respond(
        self, prefix: list[str], returncode: int = 0,
        stdout: str = "", stderr: str = "",
    ) -> None:
        """为以 prefix 开头的命令预设返回（后设置的优先）"""
        self._responses.insert(0, (prefix, CommandResult(returncode, stdout, stderr)))

    def execute(self, cmd: list[str], *, timeout: int | None = None) -> CommandResult:
        self.calls.append(list(cmd))
        for prefix, result in self._responses:
            if cmd[:len(prefix)] == prefix:
                return result
        if any(cmd[:len(p)] == p for p in _PROBES):
            return CommandResult(returncode=1)
        return CommandResult(returncode=0)

    def ran(self, *prefix: str) -> bool:
        return any(c[:len(prefix)] == list(prefix) for c in self.calls)


class FakeDownloader:
    def __init__(self, payload: bytes = PACKAGE_BYTES) -> None:
        self.payload = payload
        self.calls: list[tuple[str, Path]] = []

    def __call__(self, url: str, dest: Path) -> Path:
        self.calls.append((url, dest))
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(self.payload)
        return dest


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def downloader() -> FakeDownloader:
    return FakeDownloader()


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(root_dir=str(tmp_path), manage_ownership=False)


@pytest.fixture
def host(tmp_path: Path, executor: FakeExecutor) -> Host:
    return Host(executor=executor, root_dir=tmp_path, manage_ownership=False)


@pytest.fixture
def provisioner(host: Host, config: Config, downloader: FakeDownloader) -> Provisioner:
    return Provisioner(host=host, config=config, downloader=downloader)


@pytest.fixture
def converge(provisioner: Provisioner):
    """converge("ubuntu", version="3.5.6") -> ProvisionReport"""

    def _converge(platform: str = "redhat", **attrs):
        return provisioner.run(
            ProvisioningAttributes.from_dict(attrs),
            parse_platform(PLATFORMS[platform]),
        )

    return _converge


@pytest.fixture
def read_file(tmp_path: Path):
    def _read(logical: str) -> str:
        return (tmp_path / logical.lstrip("/")).read_text(encoding="utf-8")

    return _read
