"""通知相关的统一数据模型。

本模块定义了通知层与 Connector 之间共享的标准数据结构：

- ConversationReference: 会话引用，保持为平台原样的 JSON dict（camelCase 键）。
- PagedData: 分页结果，continuation_token 为空串表示到达末页。
- ChannelInfo / TeamDetails / TeamsChannelAccount: Teams 查询结果。
- SendResponse: 发送消息后平台返回的活动 ID。

Connector 适配层负责在 REST JSON 与这些模型之间做转换，
会话引用本身则始终以 dict 形式透传和持久化。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar


# 会话引用按平台原样透传，核心只读写 conversation.tenantId / id / conversationType
ConversationReference = Dict[str, Any]


T = TypeVar("T")


@dataclass
class PagedData(Generic[T]):
    """一页数据。

    - data: 本页数据。
    - continuation_token: 获取下一页时传回的令牌，空串表示没有更多数据。
    """

    data: List[T] = field(default_factory=list)
    continuation_token: str = ""


@dataclass
class SendResponse:
    """发送消息/卡片的结果。"""

    id: Optional[str] = None


@dataclass
class ChannelInfo:
    """团队中的一个频道。"""

    id: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChannelInfo":
        return cls(id=data.get("id"), name=data.get("name"))


@dataclass
class TeamDetails:
    """团队详情。"""

    id: Optional[str] = None
    name: Optional[str] = None
    aad_group_id: Optional[str] = None
    channel_count: Optional[int] = None
    member_count: Optional[int] = None
    type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamDetails":
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            aad_group_id=data.get("aadGroupId"),
            channel_count=data.get("channelCount"),
            member_count=data.get("memberCount"),
            type=data.get("type"),
        )


_ACCOUNT_FIELDS = {
    "id": "id",
    "name": "name",
    "aad_object_id": "aadObjectId",
    "email": "email",
    "user_principal_name": "userPrincipalName",
    "given_name": "givenName",
    "surname": "surname",
    "user_role": "userRole",
    "tenant_id": "tenantId",
}


@dataclass
class TeamsChannelAccount:
    """会话中的一个成员账号。

    to_dict() 会还原为平台 JSON，用于创建 1:1 会话时的 members 参数。
    """

    id: Optional[str] = None
    name: Optional[str] = None
    aad_object_id: Optional[str] = None
    email: Optional[str] = None
    user_principal_name: Optional[str] = None
    given_name: Optional[str] = None
    surname: Optional[str] = None
    user_role: Optional[str] = None
    tenant_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TeamsChannelAccount":
        return cls(**{attr: data.get(key) for attr, key in _ACCOUNT_FIELDS.items()})

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: getattr(self, attr)
            for attr, key in _ACCOUNT_FIELDS.items()
            if getattr(self, attr) is not None
        }


@dataclass
class TeamsPagedMembersResult:
    """分页成员查询的原始结果。"""

    members: List[TeamsChannelAccount]
    continuation_token: str = ""
