"""Connector 抽象接口。

通知层不直接依赖 HTTP，而是依赖此协议：

- BotConnectorClient 基于 httpx 实现 Bot Framework v3 REST 接口。
- 测试或其他宿主可以提供自己的实现（例如内存假实现）。

所有方法的参数与返回值均为平台原样的 JSON dict。
"""

from typing import Any, Dict, Optional, Protocol


class ConnectorClient(Protocol):
    """Bot Framework Connector 客户端协议。"""

    service_url: str

    async def create_conversation(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def send_to_conversation(self, conversation_id: str, activity: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def get_paged_members(
        self,
        conversation_id: str,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        ...

    async def get_team_channels(self, team_id: str) -> Dict[str, Any]:
        ...

    async def get_team_details(self, team_id: str) -> Dict[str, Any]:
        ...
