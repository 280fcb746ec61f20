import copy

from notify_core.adapter.bot_adapter import NextHandler
from notify_core.adapter.turn_context import TurnContext
from notify_core.domain.models import ConversationReference
from notify_core.domain.storage import ConversationReferenceStore
from notify_core.infrastructure.logging.logger import logger
from notify_core.notification.classifier import ActivityType, classify_activity


def get_key(reference: ConversationReference) -> str:
    """存储 key：_{tenantId}_{conversationId}，缺失的字段按空串处理。

    两段直接拼接，理论上不同的 (tenantId, id) 组合可能得到相同的 key。
    """
    conversation = reference.get("conversation") or {}
    return f"_{conversation.get('tenantId') or ''}_{conversation.get('id') or ''}"


class NotificationMiddleware:
    """根据安装/卸载/消息事件维护会话引用存储，处理完后总是继续执行后续管线。"""

    def __init__(self, store: ConversationReferenceStore):
        self._store = store

    async def on_turn(self, context: TurnContext, next_handler: NextHandler) -> None:
        activity_type = classify_activity(context.activity)
        if activity_type in (ActivityType.BOT_INSTALLED, ActivityType.TEAM_RESTORED):
            reference = context.activity.get_conversation_reference()
            await self._write(reference, activity_type)
        elif activity_type == ActivityType.BOT_MESSAGED:
            await self._try_add_messaged_reference(context)
        elif activity_type in (ActivityType.BOT_UNINSTALLED, ActivityType.TEAM_DELETED):
            key = get_key(context.activity.get_conversation_reference())
            await self._store.delete([key])
            logger.info("conversation reference removed", extra={"extra": {
                "key": key,
                "activity_type": activity_type.value,
            }})

        await next_handler()

    async def _try_add_messaged_reference(self, context: TurnContext) -> None:
        reference = context.activity.get_conversation_reference()
        conversation_type = (reference.get("conversation") or {}).get("conversationType")
        if conversation_type in ("personal", "groupChat"):
            await self._write(reference, ActivityType.BOT_MESSAGED)
        elif conversation_type == "channel":
            team_id = context.activity.channel_data_value("team", "id")
            channel_id = context.activity.channel_data_value("channel", "id")
            # team_id == channel_id 表示 General 频道，其他频道里的消息不记录
            if team_id is not None and (channel_id is None or channel_id == team_id):
                team_reference = copy.deepcopy(reference)
                team_reference.setdefault("conversation", {})["id"] = team_id
                await self._write(team_reference, ActivityType.BOT_MESSAGED)

    async def _write(self, reference: ConversationReference, activity_type: ActivityType) -> None:
        key = get_key(reference)
        await self._store.write({key: reference})
        logger.info("conversation reference saved", extra={"extra": {
            "key": key,
            "activity_type": activity_type.value,
        }})
