"""rabbitmq-cookbook 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import logging
import os
from typing import Any

import click

from rabbitmq_cookbook import __version__
from rabbitmq_cookbook.core.attributes import (
    ProvisioningAttributes,
    load_attributes,
    parse_overrides,
)
from rabbitmq_cookbook.core.config import Config, get_config, init_config
from rabbitmq_cookbook.core.exceptions import CookbookError, ValidationError
from rabbitmq_cookbook.core.models import Platform
from rabbitmq_cookbook.core.platform import detect_platform, parse_platform
from rabbitmq_cookbook.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def fail(exc: CookbookError) -> click.ClickException:
    """业务异常 → CLI 友好错误（退出码 1）"""
    logger.error("[%s] %s", exc.code, exc)
    message = f"[{exc.code}] {exc}"
    if isinstance(exc, ValidationError) and exc.details:
        message += "\n  " + "\n  ".join(exc.details)
    return click.ClickException(message)


def attributes_options(func: Any) -> Any:
    """--attributes / --set 公共选项"""
    func = click.option(
        "--set", "overrides", multiple=True, metavar="KEY=VALUE",
        help="覆盖单个属性（可多次指定）",
    )(func)
    func = click.option(
        "--attributes", "-a", "attributes_file", default=None,
        help="属性 YAML 文件（默认取配置中的 attributes_file）",
    )(func)
    return func


def platform_option(func: Any) -> Any:
    return click.option(
        "--platform", "-p", "platform_spec", default=None, metavar="NAME[:VERSION]",
        help="指定平台（默认读取 os-release 识别）",
    )(func)


def build_attributes(
    cfg: Config, attributes_file: str | None, overrides: tuple[str, ...],
) -> ProvisioningAttributes:
    path = attributes_file or cfg.attributes_file
    return load_attributes(path, parse_overrides(overrides))


def build_platform(cfg: Config, platform_spec: str | None) -> Platform:
    if platform_spec:
        return parse_platform(platform_spec)
    os_release = os.path.join(cfg.root_dir, cfg.os_release.lstrip("/"))
    return detect_platform(os_release)


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", default="configs/default.yml",
              help="工具配置文件路径")
def main(config_path: str) -> None:
    """rabbitmq-cookbook - RabbitMQ 服务端多发行版部署工具"""
    setup_logging(
        level=os.getenv("RABBITMQ_COOKBOOK_LOG_LEVEL", "INFO"),
        json_output=os.getenv("RABBITMQ_COOKBOOK_LOG_JSON", "") == "1",
    )
    try:
        init_config(config_path)
    except CookbookError as e:
        raise fail(e) from e


def current_config() -> Config:
    return get_config()


# 注册各领域子命令
from rabbitmq_cookbook.cli.cmd_converge import register as _reg_converge  # noqa: E402
from rabbitmq_cookbook.cli.cmd_inspect import register as _reg_inspect  # noqa: E402

_reg_converge(main)
_reg_inspect(main)
