"""通知机器人：面向调用方的安装枚举、校验与搜索入口。"""

from enum import Flag
from typing import Awaitable, Callable, List, Optional

from notify_core.adapter.bot_adapter import BotAdapter
from notify_core.adapter.turn_context import TurnContext
from notify_core.connector import teams_info
from notify_core.domain.exceptions import BOT_NOT_IN_CONVERSATION_ROSTER, ValidationError
from notify_core.domain.models import ConversationReference, PagedData, TeamDetails
from notify_core.domain.storage import ConversationReferenceStore
from notify_core.infrastructure.logging.logger import logger
from notify_core.notification.middleware import NotificationMiddleware, get_key
from notify_core.notification.targets import BotInstallation, Channel, Member

MemberPredicate = Callable[[Member], Awaitable[bool]]
ChannelPredicate = Callable[[Channel, Optional[TeamDetails]], Awaitable[bool]]


class SearchScope(Flag):
    """find_member / find_all_members 的搜索范围，可用 | 组合。"""

    PERSON = 1
    GROUP = 2
    CHANNEL = 4
    ALL = PERSON | GROUP | CHANNEL


_SCOPE_BY_TYPE = {
    "personal": SearchScope.PERSON,
    "groupChat": SearchScope.GROUP,
    "channel": SearchScope.CHANNEL,
}


class NotificationBot:
    """向各类目标（成员、群聊、频道）发送通知的工具集。

    构造时会把 NotificationMiddleware 注册到 adapter 上，
    因此应在处理任何入站消息之前完成初始化。
    """

    def __init__(self, adapter: BotAdapter, store: ConversationReferenceStore, bot_app_id: str = ""):
        if adapter is None or store is None:
            raise ValidationError(code="NOT_INITIALIZED", message="NotificationBot requires an adapter and a store")
        self._store = store
        self._adapter = adapter.use(NotificationMiddleware(store))
        self._bot_app_id = bot_app_id

    @property
    def store(self) -> ConversationReferenceStore:
        return self._store

    def build_installation(self, conversation_reference: ConversationReference) -> BotInstallation:
        """用会话引用直接构造 BotInstallation，不做持久化和校验。"""
        if not conversation_reference:
            raise ValidationError(code="MISSING_REFERENCE", message="conversation_reference is required.")
        return BotInstallation(self._adapter, conversation_reference, self._bot_app_id)

    async def validate_installation(self, conversation_reference: ConversationReference) -> bool:
        """尝试获取一个成员来判断安装是否仍然有效。

        只有收到 BotNotInConversationRoster 时返回 False，其他错误都视为仍然有效。
        """
        is_valid = True

        async def logic(context: TurnContext) -> None:
            nonlocal is_valid
            try:
                await teams_info.get_paged_members(context, 1)
            except Exception as e:
                if getattr(e, "code", None) == BOT_NOT_IN_CONVERSATION_ROSTER:
                    is_valid = False
                else:
                    logger.warning(f"Installation validation inconclusive: {e}", extra={"extra": {
                        "key": get_key(conversation_reference),
                        "error": str(e),
                    }})

        await self._adapter.continue_conversation(conversation_reference, logic)
        return is_valid

    async def get_paged_installations(
        self,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
        validation_enabled: bool = True,
    ) -> PagedData[BotInstallation]:
        """从存储中读取一页安装。

        开启校验时，失效的安装会被丢弃并从存储中删除，因此返回的条数可能少于 page_size；
        continuation_token 始终原样透传存储返回的值。
        """
        references = await self._store.list(page_size, continuation_token)
        targets: List[BotInstallation] = []
        for reference in references.data:
            if not validation_enabled or await self.validate_installation(reference):
                targets.append(BotInstallation(self._adapter, reference, self._bot_app_id))
            else:
                key = get_key(reference)
                await self._store.delete([key])
                logger.info("stale installation pruned", extra={"extra": {"key": key}})
        return PagedData(data=targets, continuation_token=references.continuation_token)

    async def find_member(self, predicate: MemberPredicate, scope: SearchScope = SearchScope.ALL) -> Optional[Member]:
        """返回第一个满足 predicate 的成员，没有则返回 None。"""
        for target in await self._installations():
            if self._match_search_scope(target, scope):
                for member in await self._all_members(target):
                    if await predicate(member):
                        return member
        return None

    async def find_all_members(self, predicate: MemberPredicate, scope: SearchScope = SearchScope.ALL) -> List[Member]:
        members: List[Member] = []
        for target in await self._installations():
            if self._match_search_scope(target, scope):
                for member in await self._all_members(target):
                    if await predicate(member):
                        members.append(member)
        return members

    async def find_channel(self, predicate: ChannelPredicate) -> Optional[Channel]:
        """返回第一个满足 predicate 的频道。

        只会搜索团队安装（bot 需安装在 General 频道），没有则返回 None。
        """
        for target in await self._installations():
            if target.type == "channel":
                team_details = await target.get_team_details()
                for channel in await target.channels():
                    if await predicate(channel, team_details):
                        return channel
        return None

    async def find_all_channels(self, predicate: ChannelPredicate) -> List[Channel]:
        channels: List[Channel] = []
        for target in await self._installations():
            if target.type == "channel":
                team_details = await target.get_team_details()
                for channel in await target.channels():
                    if await predicate(channel, team_details):
                        channels.append(channel)
        return channels

    @staticmethod
    def _match_search_scope(target: BotInstallation, scope: SearchScope) -> bool:
        target_scope = _SCOPE_BY_TYPE.get(target.type or "")
        return target_scope is not None and target_scope in scope

    @staticmethod
    async def _all_members(target: BotInstallation) -> List[Member]:
        members: List[Member] = []
        continuation_token: Optional[str] = None
        while True:
            paged = await target.get_paged_members(None, continuation_token)
            members.extend(paged.data)
            continuation_token = paged.continuation_token
            if not continuation_token:
                return members

    async def _installations(self) -> List[BotInstallation]:
        """读取全部安装（逐页拉取直到末页），搜索的开销与安装总数成正比。"""
        targets: List[BotInstallation] = []
        continuation_token: Optional[str] = None
        while True:
            paged = await self.get_paged_installations(None, continuation_token)
            targets.extend(paged.data)
            continuation_token = paged.continuation_token
            if not continuation_token:
                return targets
