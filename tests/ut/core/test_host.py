"""主机原语测试 — 路径映射、文件收敛、why-run"""

from __future__ import annotations

import logging
import stat
from pathlib import Path

import pytest

from rabbitmq_cookbook.core.config import Config
from rabbitmq_cookbook.core.exceptions import ExecutionError, ServiceError
from rabbitmq_cookbook.core.host import Host


def _mode(path: Path) -> int:
    return stat.S_IMODE(path.stat().st_mode)


class TestPaths:
    def test_logical_path_mapped_under_root(self, host: Host, tmp_path: Path) -> None:
        assert host.path("/etc/rabbitmq/rabbitmq.config") == \
            tmp_path / "etc" / "rabbitmq" / "rabbitmq.config"

    def test_from_config(self, tmp_path: Path) -> None:
        cfg = Config(root_dir=str(tmp_path), why_run=True, command_timeout=5)
        h = Host.from_config(cfg)
        assert h.root_dir == tmp_path
        assert h.why_run is True
        assert h.timeout == 5


class TestTemplate:
    def test_create(self, host: Host, tmp_path: Path) -> None:
        action = host.template("/etc/app.conf", "a=1\n", source="app.conf")
        real = tmp_path / "etc" / "app.conf"
        assert action.updated is True
        assert action.resource == "template"
        assert real.read_text() == "a=1\n"
        assert _mode(real) == 0o644

    def test_unchanged_content_not_updated(self, host: Host) -> None:
        host.template("/etc/app.conf", "a=1\n", source="app.conf")
        action = host.template("/etc/app.conf", "a=1\n", source="app.conf")
        assert action.updated is False

    def test_changed_content_rewritten(self, host: Host, tmp_path: Path) -> None:
        host.template("/etc/app.conf", "a=1\n", source="app.conf")
        action = host.template("/etc/app.conf", "a=2\n", source="app.conf")
        assert action.updated is True
        assert (tmp_path / "etc" / "app.conf").read_text() == "a=2\n"

    def test_mode_drift_corrected(self, host: Host, tmp_path: Path) -> None:
        host.template("/etc/app.conf", "a=1\n", source="app.conf")
        real = tmp_path / "etc" / "app.conf"
        real.chmod(0o600)
        action = host.template("/etc/app.conf", "a=1\n", source="app.conf")
        assert action.updated is True
        assert _mode(real) == 0o644

    def test_why_run_does_not_write(self, executor, tmp_path: Path) -> None:
        h = Host(executor=executor, root_dir=tmp_path, why_run=True, manage_ownership=False)
        action = h.template("/etc/app.conf", "a=1\n", source="app.conf")
        assert action.updated is True
        assert not (tmp_path / "etc").exists()

    def test_non_utf8_file_replaced(self, host: Host, tmp_path: Path) -> None:
        real = tmp_path / "etc" / "app.conf"
        real.parent.mkdir()
        real.write_bytes(b"\xff\xfe legacy latin-1 \xe9\n")
        action = host.template("/etc/app.conf", "a=1\n", source="app.conf")
        assert action.updated is True
        assert real.read_bytes() == b"a=1\n"

    def test_non_ascii_content_stable(self, host: Host) -> None:
        host.template("/etc/app.conf", "# 节点配置\n", source="app.conf")
        action = host.template("/etc/app.conf", "# 节点配置\n", source="app.conf")
        assert action.updated is False

    def test_update_logged_with_resource(
        self, host: Host, caplog: pytest.LogCaptureFixture,
    ) -> None:
        with caplog.at_level(logging.INFO, logger="rabbitmq_cookbook.core.host"):
            host.template("/etc/app.conf", "a=1\n", source="app.conf")
        assert [getattr(r, "resource", None) for r in caplog.records
                if r.name == "rabbitmq_cookbook.core.host"] == [
            "template[/etc/app.conf]",
        ]


class TestDirectory:
    def test_create_with_mode(self, host: Host, tmp_path: Path) -> None:
        action = host.directory("/var/lib/rabbitmq/mnesia", mode=0o775)
        real = tmp_path / "var" / "lib" / "rabbitmq" / "mnesia"
        assert action.updated is True
        assert real.is_dir()
        assert _mode(real) == 0o775

    def test_existing_directory_not_updated(self, host: Host) -> None:
        host.directory("/var/lib/rabbitmq/mnesia", mode=0o775)
        assert host.directory("/var/lib/rabbitmq/mnesia", mode=0o775).updated is False


class TestCommands:
    def test_run_records_command(self, host: Host, executor) -> None:
        host.run(["systemctl", "start", "rabbitmq-server"])
        assert executor.calls == [["systemctl", "start", "rabbitmq-server"]]

    def test_run_failure_raises(self, host: Host, executor) -> None:
        executor.respond(["systemctl", "start"], returncode=3, stderr="unit not found")
        with pytest.raises(ServiceError, match="启动失败 \\(rc=3\\): unit not found"):
            host.run(["systemctl", "start", "x"], label="启动", error_cls=ServiceError)

    def test_default_error_class(self, host: Host, executor) -> None:
        executor.respond(["false"], returncode=1)
        with pytest.raises(ExecutionError, match="cmd失败"):
            host.run(["false"])

    def test_why_run_skips_commands(self, executor, tmp_path: Path) -> None:
        h = Host(executor=executor, root_dir=tmp_path, why_run=True)
        assert h.run(["rm", "-rf", "/"]).success
        assert h.query(["dpkg-query", "-W", "x"]) is None
        assert executor.calls == []
