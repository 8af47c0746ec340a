"""配置收敛器单元测试"""

from __future__ import annotations

from pathlib import Path

from rabbitmq_cookbook.core.attributes import ProvisioningAttributes
from rabbitmq_cookbook.core.host import Host
from rabbitmq_cookbook.services.configurer import Configurer


class TestConfigure:
    def test_resources_in_order(self, host: Host) -> None:
        actions = Configurer(host).configure(ProvisioningAttributes())
        assert [(a.resource, a.name) for a in actions] == [
            ("directory", "/var/lib/rabbitmq/mnesia"),
            ("template", "/etc/rabbitmq/rabbitmq-env.conf"),
            ("template", "/etc/rabbitmq/rabbitmq.config"),
            ("template", "/etc/default/rabbitmq-server"),
        ]
        assert all(a.updated for a in actions)

    def test_custom_paths(self, host: Host, tmp_path: Path) -> None:
        attrs = ProvisioningAttributes(
            config_root="/opt/rmq/etc", config="/opt/rmq/etc/broker",
            mnesiadir="/data/mnesia", service_user="amqp", service_group="amqp",
        )
        actions = Configurer(host).configure(attrs)
        assert actions[0].attrs["owner"] == "amqp"
        assert (tmp_path / "opt/rmq/etc/rabbitmq-env.conf").is_file()
        assert (tmp_path / "opt/rmq/etc/broker.config").is_file()
        assert (tmp_path / "data/mnesia").is_dir()
        assert "CONFIG_FILE=/opt/rmq/etc/broker" in \
            (tmp_path / "opt/rmq/etc/rabbitmq-env.conf").read_text()

    def test_rerun_is_noop(self, host: Host, tmp_path: Path) -> None:
        attrs = ProvisioningAttributes(loopback_users=("foo",), ssl=True)
        Configurer(host).configure(attrs)
        before = (tmp_path / "etc/rabbitmq/rabbitmq.config").read_bytes()
        actions = Configurer(host).configure(attrs)
        assert not any(a.updated for a in actions)
        assert (tmp_path / "etc/rabbitmq/rabbitmq.config").read_bytes() == before
