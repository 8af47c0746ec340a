"""配置文件渲染

每个受管文件对应一个纯函数 ``render_*(attrs) -> str``：
同一属性集总是得到逐字节相同的输出，变更检测依赖这一点。
不依赖模板引擎，Erlang term 按行拼接。
"""

from __future__ import annotations

from typing import Any

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes

MANAGED_BANNER = "Generated by rabbitmq-cookbook - local changes will be overwritten"
ADDITIONAL_ENV_MARKER = "# Additional ENV settings"


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


# =========================================================================
# rabbitmq-env.conf
# =========================================================================

def render_env_conf(attrs: ProvisioningAttributes) -> str:
    """渲染 rabbitmq-env.conf

    每个可选属性只在设置时输出一行，未设置不留占位。
    additional_env_settings 非空时在单个注释标记下原样追加。
    """
    lines = ["###", f"# {MANAGED_BANNER}", "###", ""]

    optional = (
        ("NODENAME", attrs.nodename),
        ("NODE_IP_ADDRESS", attrs.address),
        ("NODE_PORT", attrs.port),
        ("CONFIG_FILE", attrs.config),
        ("LOG_BASE", attrs.logdir),
        ("MNESIA_BASE", attrs.mnesiadir),
    )
    for key, value in optional:
        if _is_set(value):
            lines.append(f"{key}={value}")

    if _is_set(attrs.server_additional_erl_args):
        lines.append(f"SERVER_ADDITIONAL_ERL_ARGS='{attrs.server_additional_erl_args}'")
    if _is_set(attrs.ctl_erl_args):
        lines.append(f"CTL_ERL_ARGS='{attrs.ctl_erl_args}'")

    if attrs.additional_env_settings:
        lines.append(ADDITIONAL_ENV_MARKER)
        lines.extend(attrs.additional_env_settings)

    return "\n".join(lines) + "\n"


# =========================================================================
# rabbitmq.config
# =========================================================================

def _term(value: Any) -> str:
    """透传值转 Erlang 文本；仅布尔需要转小写，其余原样"""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _binaries(names: tuple[str, ...]) -> str:
    return ",".join(f'<<"{n}">>' for n in names)


def _ciphers(attrs: ProvisioningAttributes) -> str | None:
    if not attrs.ssl_ciphers:
        return None
    return "{ciphers,[" + ",".join(attrs.ssl_ciphers) + "]}"


def _cert_opts(attrs: ProvisioningAttributes) -> list[str]:
    return [
        f'{{cacertfile,"{attrs.ssl_cacert}"}}',
        f'{{certfile,"{attrs.ssl_cert}"}}',
        f'{{keyfile,"{attrs.ssl_key}"}}',
    ]


def _ssl_options(attrs: ProvisioningAttributes) -> str:
    opts = _cert_opts(attrs) + [
        f"{{verify,{attrs.ssl_verify}}}",
        f"{{fail_if_no_peer_cert,{_term(attrs.ssl_fail_if_no_peer_cert)}}}",
    ]
    ciphers = _ciphers(attrs)
    if ciphers:
        opts.append(ciphers)
    prefix = "{ssl_options, ["
    return prefix + (",\n    " + " " * len(prefix)).join(opts) + "]}"


def _management_listener(attrs: ProvisioningAttributes) -> str:
    ssl_opts = _cert_opts(attrs)
    ciphers = _ciphers(attrs)
    if ciphers:
        ssl_opts.append(ciphers)
    prefix = "{listener, ["
    parts = [
        f"{{port,{attrs.web_console_ssl_port}}}",
        "{ssl,true}",
        "{ssl_opts,[" + ",".join(ssl_opts) + "]}",
    ]
    return prefix + (",\n    " + " " * len(prefix)).join(parts) + "]}"


def _rabbit_entries(attrs: ProvisioningAttributes) -> list[str]:
    entries = [
        f'{{default_user, <<"{attrs.default_user}">>}}',
        f'{{default_pass, <<"{attrs.default_pass}">>}}',
    ]
    # None = 不输出；空元组 = 显式空列表
    if attrs.loopback_users is not None:
        entries.append(f"{{loopback_users, [{_binaries(attrs.loopback_users)}]}}")
    if _is_set(attrs.heartbeat):
        entries.append(f"{{heartbeat, {attrs.heartbeat}}}")
    if _is_set(attrs.vm_memory_high_watermark):
        entries.append(f"{{vm_memory_high_watermark, {attrs.vm_memory_high_watermark}}}")
    if _is_set(attrs.disk_free_limit_relative):
        entries.append(
            f"{{disk_free_limit, {{mem_relative, {attrs.disk_free_limit_relative}}}}}"
        )
    if attrs.ssl:
        entries.append(f"{{ssl_listeners, [{attrs.ssl_port}]}}")
        entries.append(_ssl_options(attrs))
    for key, value in attrs.additional_rabbit_configs.items():
        entries.append(f"{{{key}, {_term(value)}}}")
    return entries


def _section(app: str, entries: list[str]) -> str:
    if not entries:
        return f"  {{{app}, []}}"
    body = ",\n".join(f"    {e}" for e in entries)
    return f"  {{{app}, [\n{body}\n  ]}}"


def render_rabbitmq_config(attrs: ProvisioningAttributes) -> str:
    """渲染 rabbitmq.config（Erlang term 格式）"""
    sections = [_section("rabbit", _rabbit_entries(attrs))]
    if attrs.web_console_ssl:
        sections.append(_section("rabbitmq_management", [_management_listener(attrs)]))
    header = f"%%%\n%% {MANAGED_BANNER}\n%%%\n\n"
    return header + "[\n" + ",\n".join(sections) + "\n].\n"


# =========================================================================
# /etc/default/<service> 与 apt 配置
# =========================================================================

def render_default_file(attrs: ProvisioningAttributes) -> str:
    """渲染 /etc/default/rabbitmq-server，供 init 脚本 source"""
    lines = [
        "#",
        f"# {MANAGED_BANNER}",
        "#",
        f"# Sourced by the {attrs.service_name} init script; adjusts system limits.",
    ]
    if _is_set(attrs.open_file_limit):
        lines.append(f"ulimit -n {attrs.open_file_limit}")
    return "\n".join(lines) + "\n"


def render_apt_force_yes(attrs: ProvisioningAttributes) -> str:
    """apt 非交互安装配置 (90forceyes)"""
    return (
        f"// {MANAGED_BANNER}\n"
        'APT::Get::Assume-Yes "true";\n'
        'APT::Get::force-yes "true";\n'
    )
