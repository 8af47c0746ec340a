"""rabbitmq-cookbook - RabbitMQ 服务端多发行版部署工具"""

__version__ = "0.1.0"
