"""通知目标。

三种目标共享 NotificationTarget 协议（send_message / send_adaptive_card）：

- BotInstallation: bot 的一次安装（个人聊天、群聊或团队），直接续接持久化的会话引用发送。
- Channel: 团队中的某个频道。先续接团队级会话，再派生以频道 ID 为会话 ID 的引用续接发送。
- Member: 某个成员。先续接父会话，再通过 connector 创建与该成员的 1:1 会话后发送；
  每次发送都会重新创建会话，不做缓存。

发送失败时，若传入 on_error 则交给它处理（参数为失败时的 TurnContext 与异常），否则直接抛出。
"""

from typing import Any, Awaitable, Callable, List, Optional, Protocol, Union

from notify_core.adapter.bot_adapter import BotAdapter
from notify_core.adapter.cards import adaptive_card_activity
from notify_core.adapter.turn_context import TurnContext
from notify_core.connector import teams_info
from notify_core.domain.models import (
    ChannelInfo,
    ConversationReference,
    PagedData,
    SendResponse,
    TeamDetails,
    TeamsChannelAccount,
)

OnError = Callable[[TurnContext, Exception], Awaitable[None]]
ReferenceFactory = Callable[[TurnContext], Awaitable[ConversationReference]]
Outgoing = Union[str, dict]


class NotificationTarget(Protocol):
    """通知目标协议，type 为 "channel" / "personal" / "groupChat"。"""

    type: Optional[str]

    async def send_message(self, text: str, on_error: Optional[OnError] = None) -> SendResponse:
        ...

    async def send_adaptive_card(self, card: Any, on_error: Optional[OnError] = None) -> SendResponse:
        ...


async def _send_activity(context: TurnContext, outgoing: Outgoing, on_error: Optional[OnError]) -> SendResponse:
    try:
        return await context.send_activity(outgoing)
    except Exception as error:
        if on_error is None:
            raise
        await on_error(context, error)
        return SendResponse()


async def _send_through(
    parent: "BotInstallation",
    derive_reference: ReferenceFactory,
    outgoing: Outgoing,
    on_error: Optional[OnError],
) -> SendResponse:
    """续接父会话，派生出目标会话引用后再续接一次并发送。"""
    response = SendResponse()

    async def resume_parent(context: TurnContext) -> None:
        reference = await derive_reference(context)

        async def send(target_context: TurnContext) -> None:
            nonlocal response
            response = await _send_activity(target_context, outgoing, on_error)

        await parent.adapter.continue_conversation(reference, send)

    await parent.adapter.continue_conversation(parent.conversation_reference, resume_parent)
    return response


class Channel:
    """团队中的一个频道，建议通过 BotInstallation.channels() 获取。"""

    type: Optional[str] = "channel"

    def __init__(self, parent: "BotInstallation", info: ChannelInfo):
        self.parent = parent
        self.info = info

    async def send_message(self, text: str, on_error: Optional[OnError] = None) -> SendResponse:
        return await _send_through(self.parent, self._new_conversation, text, on_error)

    async def send_adaptive_card(self, card: Any, on_error: Optional[OnError] = None) -> SendResponse:
        return await _send_through(self.parent, self._new_conversation, adaptive_card_activity(card), on_error)

    async def _new_conversation(self, context: TurnContext) -> ConversationReference:
        reference = context.activity.get_conversation_reference()
        reference.setdefault("conversation", {})["id"] = self.info.id or ""
        return reference


class Member:
    """会话中的一个成员，建议通过 BotInstallation.get_paged_members() 获取。"""

    type: Optional[str] = "personal"

    def __init__(self, parent: "BotInstallation", account: TeamsChannelAccount):
        self.parent = parent
        self.account = account

    async def send_message(self, text: str, on_error: Optional[OnError] = None) -> SendResponse:
        return await _send_through(self.parent, self._new_conversation, text, on_error)

    async def send_adaptive_card(self, card: Any, on_error: Optional[OnError] = None) -> SendResponse:
        return await _send_through(self.parent, self._new_conversation, adaptive_card_activity(card), on_error)

    async def _new_conversation(self, context: TurnContext) -> ConversationReference:
        reference = context.activity.get_conversation_reference()
        parameters = {
            "members": [self.account.to_dict()],
            "isGroup": False,
            "bot": context.activity.recipient,
            "tenantId": context.activity.conversation.get("tenantId"),
            "channelData": context.activity.channel_data or {},
        }
        conversation = await context.connector.create_conversation(parameters)
        reference.setdefault("conversation", {})["id"] = conversation.get("id")
        return reference


class BotInstallation:
    """bot 的一次安装，可能位于：

    - 个人聊天（type == "personal"）
    - 群聊（type == "groupChat"）
    - 团队（type == "channel"，消息默认发到 General 频道）

    建议通过 NotificationBot.get_paged_installations() 获取。
    """

    def __init__(self, adapter: BotAdapter, conversation_reference: ConversationReference, bot_app_id: str = ""):
        self.adapter = adapter
        self.conversation_reference = conversation_reference
        self.bot_app_id = bot_app_id
        self.type: Optional[str] = (conversation_reference.get("conversation") or {}).get("conversationType")

    async def send_message(self, text: str, on_error: Optional[OnError] = None) -> SendResponse:
        return await self._send(text, on_error)

    async def send_adaptive_card(self, card: Any, on_error: Optional[OnError] = None) -> SendResponse:
        return await self._send(adaptive_card_activity(card), on_error)

    async def channels(self) -> List[Channel]:
        """团队安装返回其全部频道，其他类型返回空列表。"""
        if self.type != "channel":
            return []
        infos: List[ChannelInfo] = []

        async def logic(context: TurnContext) -> None:
            nonlocal infos
            team_id = teams_info.get_team_id(context)
            if team_id is not None:
                infos = await teams_info.get_team_channels(context, team_id)

        await self.adapter.continue_conversation(self.conversation_reference, logic)
        return [Channel(self, info) for info in infos]

    async def get_paged_members(
        self,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> PagedData[Member]:
        result: PagedData[Member] = PagedData()

        async def logic(context: TurnContext) -> None:
            nonlocal result
            paged = await teams_info.get_paged_members(context, page_size, continuation_token)
            result = PagedData(
                data=[Member(self, account) for account in paged.members],
                continuation_token=paged.continuation_token,
            )

        await self.adapter.continue_conversation(self.conversation_reference, logic)
        return result

    async def get_team_details(self) -> Optional[TeamDetails]:
        """团队安装返回团队详情，其他类型返回 None。"""
        if self.type != "channel":
            return None
        details: Optional[TeamDetails] = None

        async def logic(context: TurnContext) -> None:
            nonlocal details
            team_id = teams_info.get_team_id(context)
            if team_id is not None:
                details = await teams_info.get_team_details(context, team_id)

        await self.adapter.continue_conversation(self.conversation_reference, logic)
        return details

    async def _send(self, outgoing: Outgoing, on_error: Optional[OnError]) -> SendResponse:
        response = SendResponse()

        async def logic(context: TurnContext) -> None:
            nonlocal response
            response = await _send_activity(context, outgoing, on_error)

        await self.adapter.continue_conversation(self.conversation_reference, logic)
        return response
