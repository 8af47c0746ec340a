"""CLI — 部署命令"""

from __future__ import annotations

from dataclasses import replace

import click

from rabbitmq_cookbook.cli import (
    attributes_options,
    build_attributes,
    build_platform,
    current_config,
    fail,
    platform_option,
)
from rabbitmq_cookbook.core.exceptions import CookbookError
from rabbitmq_cookbook.services.provisioner import Provisioner
from rabbitmq_cookbook.utils.yaml_io import save_yaml


def register(group: click.Group) -> None:
    group.add_command(converge)


@click.command()
@attributes_options
@platform_option
@click.option("--why-run", is_flag=True, help="只报告将要发生的变更，不修改主机")
@click.option("--report", "report_path", default=None, help="运行报告输出 YAML 路径")
def converge(
    attributes_file: str | None, overrides: tuple[str, ...],
    platform_spec: str | None, why_run: bool, report_path: str | None,
) -> None:
    """安装并配置 RabbitMQ，收敛到属性声明的状态"""
    cfg = current_config()
    if why_run:
        cfg = replace(cfg, why_run=True)
    try:
        attrs = build_attributes(cfg, attributes_file, overrides)
        platform = build_platform(cfg, platform_spec)
        report = Provisioner(config=cfg).run(attrs, platform)
    except CookbookError as e:
        raise fail(e) from e

    for action in report.actions:
        marker = "*" if action.updated else " "
        click.echo(f" {marker} {action}")
    click.echo(
        f"{len(report.updated)}/{len(report.actions)} 个资源已更新"
        f"{' (why-run)' if report.why_run else ''}，"
        f"服务状态: {report.service_state.value}"
    )
    if report_path:
        save_yaml(report_path, report.to_dict())
