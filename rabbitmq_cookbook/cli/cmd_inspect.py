"""CLI — 只读查询命令：platform / resolve / render"""

from __future__ import annotations

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
from rabbitmq_cookbook.core.render import (
    render_default_file,
    render_env_conf,
    render_rabbitmq_config,
)
from rabbitmq_cookbook.core.resolver import resolve

RENDERERS = {
    "env": render_env_conf,
    "config": render_rabbitmq_config,
    "default": render_default_file,
}


def register(group: click.Group) -> None:
    group.add_command(show_platform)
    group.add_command(resolve_artifact)
    group.add_command(render)


@click.command(name="platform")
@platform_option
def show_platform(platform_spec: str | None) -> None:
    """显示识别到的平台与发行版族"""
    try:
        platform = build_platform(current_config(), platform_spec)
    except CookbookError as e:
        raise fail(e) from e
    click.echo(str(platform))


@click.command(name="resolve")
@attributes_options
@platform_option
def resolve_artifact(
    attributes_file: str | None, overrides: tuple[str, ...], platform_spec: str | None,
) -> None:
    """显示本次将安装的包（不下载、不安装）"""
    cfg = current_config()
    try:
        attrs = build_attributes(cfg, attributes_file, overrides)
        platform = build_platform(cfg, platform_spec)
        artifact = resolve(platform.family, attrs, cfg.file_cache_path)
    except CookbookError as e:
        raise fail(e) from e

    click.echo(f"platform: {platform}")
    click.echo(f"version:  {artifact.version}")
    if artifact.is_remote:
        click.echo(f"url:      {artifact.url}")
        click.echo(f"cache:    {artifact.local_path}")
    else:
        click.echo(f"packages: {', '.join(artifact.packages)}")


@click.command()
@click.argument("target", type=click.Choice(sorted(RENDERERS)))
@attributes_options
def render(target: str, attributes_file: str | None, overrides: tuple[str, ...]) -> None:
    """把配置文件渲染到标准输出"""
    try:
        attrs = build_attributes(current_config(), attributes_file, overrides)
    except CookbookError as e:
        raise fail(e) from e
    click.echo(RENDERERS[target](attrs), nl=False)
