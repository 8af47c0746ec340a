"""主机操作原语 — 命令执行 + 受管文件/目录

所有逻辑路径（如 /etc/rabbitmq/rabbitmq.config）都经 root_dir 映射到真实文件系统，
测试时把 root_dir 指向临时目录即可。why-run 模式下不执行命令、不写文件，
只计算"将要改变什么"。
"""

from __future__ import annotations

import grp
import logging
import os
import pwd
import shutil
import stat
from pathlib import Path, PurePosixPath

from rabbitmq_cookbook.core.config import Config
from rabbitmq_cookbook.core.exceptions import ExecutionError
from rabbitmq_cookbook.core.models import ResourceAction
from rabbitmq_cookbook.utils.shell import CommandExecutor, CommandResult, get_executor
from rabbitmq_cookbook.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


class Host:
    """被部署主机的抽象"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        root_dir: str | Path = "/",
        *,
        why_run: bool = False,
        manage_ownership: bool = True,
        timeout: int | None = None,
    ) -> None:
        self.executor = executor or get_executor()
        self.root_dir = Path(root_dir)
        self.why_run = why_run
        self.manage_ownership = manage_ownership
        self.timeout = timeout

    @classmethod
    def from_config(cls, cfg: Config, executor: CommandExecutor | None = None) -> Host:
        return cls(
            executor=executor,
            root_dir=cfg.root_dir,
            why_run=cfg.why_run,
            manage_ownership=cfg.manage_ownership,
            timeout=cfg.command_timeout,
        )

    # ---- 路径 ----

    def path(self, logical: str) -> Path:
        """逻辑绝对路径 → 真实路径"""
        rel = PurePosixPath(logical).relative_to("/") if logical.startswith("/") else logical
        return self.root_dir / str(rel)

    def exists(self, logical: str) -> bool:
        return self.path(logical).exists()

    # ---- 命令 ----

    def query(self, cmd: list[str]) -> CommandResult | None:
        """只读探测命令；why-run 下不执行，返回 None 表示"未知" """
        if self.why_run:
            return None
        return self.executor.execute(cmd, timeout=self.timeout)

    def run(
        self,
        cmd: list[str],
        *,
        label: str = "cmd",
        error_cls: type[ExecutionError] = ExecutionError,
    ) -> CommandResult:
        """执行变更命令，非零退出码抛 error_cls"""
        if self.why_run:
            logger.info("  [why-run] 将执行 %s: %s", label, " ".join(cmd))
            return CommandResult(returncode=0)
        logger.info("  %s: %s", label, " ".join(cmd))
        r = self.executor.execute(cmd, timeout=self.timeout)
        if not r.success:
            raise error_cls(f"{label}失败 (rc={r.returncode}): {r.stderr[:500]}")
        return r

    # ---- 文件资源 ----

    def template(
        self,
        logical: str,
        content: str,
        *,
        source: str,
        owner: str = "root",
        group: str = "root",
        mode: int = 0o644,
    ) -> ResourceAction:
        """收敛受管文件：内容或权限不同才改写"""
        real = self.path(logical)
        action = ResourceAction(
            resource="template", name=logical, action="create",
            attrs={"source": source, "owner": owner, "group": group, "mode": mode},
        )
        current = real.read_bytes() if real.is_file() else None
        content_changed = current != content.encode("utf-8")
        mode_changed = real.is_file() and stat.S_IMODE(real.stat().st_mode) != mode
        owner_changed = real.is_file() and self._ownership_differs(real, owner, group)
        action.updated = content_changed or mode_changed or owner_changed
        if not action.updated:
            logger.debug("  无变化: %s", logical)
            return action
        if self.why_run:
            logger.info("  [why-run] 将更新文件: %s", logical)
            return action

        if content_changed:
            atomic_write(real, content, mode=mode)
        else:
            os.chmod(real, mode)
        self._chown(real, owner, group)
        logger.info("  已更新文件: %s", logical, extra={"resource": action.ref})
        return action

    def directory(
        self,
        logical: str,
        *,
        owner: str = "root",
        group: str = "root",
        mode: int = 0o755,
    ) -> ResourceAction:
        """收敛目录（递归创建父目录）"""
        real = self.path(logical)
        action = ResourceAction(
            resource="directory", name=logical, action="create",
            attrs={"owner": owner, "group": group, "mode": mode},
        )
        if real.is_dir():
            action.updated = (
                stat.S_IMODE(real.stat().st_mode) != mode
                or self._ownership_differs(real, owner, group)
            )
        else:
            action.updated = True
        if not action.updated or self.why_run:
            return action

        real.mkdir(parents=True, exist_ok=True)
        os.chmod(real, mode)
        self._chown(real, owner, group)
        logger.info("  已创建目录: %s", logical, extra={"resource": action.ref})
        return action

    # ---- 属主 ----

    def _ownership_differs(self, real: Path, owner: str, group: str) -> bool:
        if not self.manage_ownership:
            return False
        try:
            st = real.stat()
            return (
                pwd.getpwuid(st.st_uid).pw_name != owner
                or grp.getgrgid(st.st_gid).gr_name != group
            )
        except KeyError:
            return True

    def _chown(self, real: Path, owner: str, group: str) -> None:
        if not self.manage_ownership:
            return
        try:
            shutil.chown(real, user=owner, group=group)
        except LookupError as e:
            raise ExecutionError(f"设置属主失败 {real} ({owner}:{group}): {e}") from e
