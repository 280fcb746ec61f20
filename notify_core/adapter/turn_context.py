from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from notify_core.connector.base import ConnectorClient
from notify_core.domain.activity import Activity, ActivityTypes
from notify_core.domain.models import SendResponse

if TYPE_CHECKING:
    from notify_core.adapter.bot_adapter import BotAdapter


class TurnContext:
    """一次 turn 的上下文：当前活动、所属 adapter 以及可用的 connector。"""

    def __init__(self, adapter: "BotAdapter", activity: Activity, connector: ConnectorClient):
        self.adapter = adapter
        self.activity = activity
        self.connector = connector

    async def send_activity(self, activity_or_text: Union[str, Dict[str, Any]]) -> SendResponse:
        """向当前会话发送一条活动；传入字符串时作为纯文本消息发送。"""
        if isinstance(activity_or_text, str):
            outgoing: Dict[str, Any] = {"type": ActivityTypes.MESSAGE, "text": activity_or_text}
        else:
            outgoing = dict(activity_or_text)
            outgoing.setdefault("type", ActivityTypes.MESSAGE)
        self._apply_conversation(outgoing)
        conversation_id = self.activity.conversation.get("id") or ""
        result = await self.connector.send_to_conversation(conversation_id, outgoing)
        return SendResponse(id=(result or {}).get("id"))

    async def send_trace_activity(
        self,
        name: str,
        value: Any = None,
        value_type: Optional[str] = None,
        label: Optional[str] = None,
    ) -> SendResponse:
        trace = {
            "type": ActivityTypes.TRACE,
            "name": name,
            "value": value,
            "valueType": value_type,
            "label": label,
        }
        return await self.send_activity({k: v for k, v in trace.items() if v is not None})

    def _apply_conversation(self, outgoing: Dict[str, Any]) -> None:
        # 回复方向与入站活动相反：bot 作为 from，用户作为 recipient
        outgoing.setdefault("conversation", dict(self.activity.conversation))
        if self.activity.recipient:
            outgoing.setdefault("from", dict(self.activity.recipient))
        if self.activity.from_property:
            outgoing.setdefault("recipient", dict(self.activity.from_property))
        if self.activity.channel_id:
            outgoing.setdefault("channelId", self.activity.channel_id)
        if self.activity.service_url:
            outgoing.setdefault("serviceUrl", self.activity.service_url)
        if self.activity.id and self.activity.type == ActivityTypes.MESSAGE:
            outgoing.setdefault("replyToId", self.activity.id)
