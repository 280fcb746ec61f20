"""Bot Framework Connector 集成层。

该包下的模块负责：
- 定义 Connector 抽象接口 (base)。
- 提供基于 httpx 的 REST 实现 (bot_connector)。
- 提供 Teams 成员/频道/团队查询 (teams_info)。
"""

from notify_core.config.settings import settings
from notify_core.connector.base import ConnectorClient
from notify_core.connector.bot_connector import BotConnectorClient


def create_connector(service_url: str, cfg=None) -> ConnectorClient:
    """为指定 serviceUrl 创建 Connector 实例，默认使用全局配置。"""

    return BotConnectorClient(service_url, cfg or settings)
