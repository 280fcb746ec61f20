"""平台活动（Activity）模型。

入站事件与 continue_conversation 时构造的续接事件都用 Activity 表示。
嵌套字段（from / recipient / conversation / channelData）保持平台原样的 dict。
"""

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .models import ConversationReference


class ActivityTypes:
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    INSTALLATION_UPDATE = "installationUpdate"
    EVENT = "event"
    TRACE = "trace"


CONTINUE_CONVERSATION = "continueConversation"


@dataclass
class Activity:
    type: str
    id: Optional[str] = None
    action: Optional[str] = None
    name: Optional[str] = None
    text: Optional[str] = None
    channel_id: Optional[str] = None
    service_url: Optional[str] = None
    locale: Optional[str] = None
    from_property: Dict[str, Any] = field(default_factory=dict)
    recipient: Dict[str, Any] = field(default_factory=dict)
    conversation: Dict[str, Any] = field(default_factory=dict)
    channel_data: Optional[Dict[str, Any]] = None
    members_added: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Activity":
        return cls(
            type=data.get("type") or "",
            id=data.get("id"),
            action=data.get("action"),
            name=data.get("name"),
            text=data.get("text"),
            channel_id=data.get("channelId"),
            service_url=data.get("serviceUrl"),
            locale=data.get("locale"),
            from_property=dict(data.get("from") or {}),
            recipient=dict(data.get("recipient") or {}),
            conversation=dict(data.get("conversation") or {}),
            channel_data=data.get("channelData"),
            members_added=list(data.get("membersAdded") or []),
        )

    @classmethod
    def from_reference(cls, reference: ConversationReference) -> "Activity":
        """根据会话引用构造一个续接事件，用于主动发送消息。"""
        return cls(
            type=ActivityTypes.EVENT,
            name=CONTINUE_CONVERSATION,
            id=reference.get("activityId"),
            channel_id=reference.get("channelId"),
            service_url=reference.get("serviceUrl"),
            locale=reference.get("locale"),
            from_property=copy.deepcopy(reference.get("user") or {}),
            recipient=copy.deepcopy(reference.get("bot") or {}),
            conversation=copy.deepcopy(reference.get("conversation") or {}),
        )

    def get_conversation_reference(self) -> ConversationReference:
        """提取当前会话的引用（深拷贝，修改不会影响 Activity 本身）。"""
        reference: ConversationReference = {
            "activityId": self.id,
            "user": copy.deepcopy(self.from_property),
            "bot": copy.deepcopy(self.recipient),
            "conversation": copy.deepcopy(self.conversation),
            "channelId": self.channel_id,
            "locale": self.locale,
            "serviceUrl": self.service_url,
        }
        return {k: v for k, v in reference.items() if v is not None}

    def channel_data_value(self, *path: str) -> Any:
        """按路径读取 channelData 中的嵌套字段，不存在时返回 None。"""
        node: Any = self.channel_data
        for key in path:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return node
