"""统一异常体系

所有业务异常继承 CookbookError，替代散落的 ValueError / RuntimeError。
CLI 层据此输出友好提示（错误码 + 消息）。
"""

from __future__ import annotations


class CookbookError(Exception):
    """部署工具基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(CookbookError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(CookbookError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class UnsupportedPlatformError(CookbookError):
    """无法识别或不支持的发行版"""

    code = "UNSUPPORTED_PLATFORM"


class DownloadError(CookbookError):
    """安装包下载或校验失败"""

    code = "DOWNLOAD_ERROR"


class ExecutionError(CookbookError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class InstallError(ExecutionError):
    """包管理器安装失败"""

    code = "INSTALL_ERROR"


class ServiceError(ExecutionError):
    """系统服务启用/启动失败"""

    code = "SERVICE_ERROR"
