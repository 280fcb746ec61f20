"""对外 API 服务模块。

提供组装入口与简化的函数接口供宿主（HTTP 触发器、定时任务等）调用：

- build_notification_app(): 显式构造 store / adapter / NotificationBot，不使用进程级单例。
- handle_inbound_activity(): 处理平台推送过来的入站活动。
- broadcast_message() / broadcast_adaptive_card(): 向全部安装推送通知。
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from notify_core.adapter.bot_adapter import BotAdapter, ConnectorFactory, TurnLogic
from notify_core.adapter.turn_context import TurnContext
from notify_core.bots.welcome_bot import WelcomeBot
from notify_core.config.settings import Settings, resolve_storage_dir, settings
from notify_core.connector import create_connector
from notify_core.domain.activity import Activity, ActivityTypes
from notify_core.domain.models import SendResponse
from notify_core.domain.storage import ConversationReferenceStore
from notify_core.infrastructure.logging.logger import logger
from notify_core.infrastructure.storage.json_store import LocalConversationReferenceStore
from notify_core.notification.bot import NotificationBot
from notify_core.notification.targets import BotInstallation


@dataclass
class NotificationApp:
    adapter: BotAdapter
    store: ConversationReferenceStore
    bot: NotificationBot
    cfg: Settings


def build_notification_app(
    cfg: Settings = settings,
    connector_factory: Optional[ConnectorFactory] = None,
    store: Optional[ConversationReferenceStore] = None,
) -> NotificationApp:
    """组装通知应用。

    Args:
        cfg: 配置，默认使用全局 settings
        connector_factory: serviceUrl -> ConnectorClient，默认使用 httpx 实现
        store: 会话引用存储，默认使用本地 JSON 文件

    Returns:
        包含 adapter、store、bot 与所用配置的 NotificationApp
    """
    factory = connector_factory or (lambda service_url: create_connector(service_url, cfg))
    adapter = BotAdapter(factory, bot_app_id=cfg.bot_app_id)
    adapter.on_turn_error = default_on_turn_error
    if store is None:
        store = LocalConversationReferenceStore(resolve_storage_dir(cfg), cfg.notification_store_filename)
    bot = NotificationBot(adapter, store, cfg.bot_app_id)
    return NotificationApp(adapter=adapter, store=store, bot=bot, cfg=cfg)


async def default_on_turn_error(context: TurnContext, error: Exception) -> None:
    """记录未处理异常；仅对用户消息回复错误提示，避免在频道或群聊中刷屏。"""
    logger.error(f"[on_turn_error] unhandled error: {error}", exc_info=error, extra={"extra": {
        "activity_type": context.activity.type,
        "conversation_id": context.activity.conversation.get("id"),
    }})
    if context.activity.type == ActivityTypes.MESSAGE:
        await context.send_trace_activity(
            "OnTurnError Trace",
            str(error),
            "https://www.botframework.com/schemas/error",
            "TurnError",
        )
        await context.send_activity(f"The bot encountered unhandled error: {error}")
        await context.send_activity("To continue to run this bot, please fix the bot source code.")


async def handle_inbound_activity(
    app: NotificationApp,
    body: Dict[str, Any],
    logic: Optional[TurnLogic] = None,
) -> None:
    """处理一个入站活动（平台 POST 过来的 JSON）。

    Args:
        app: build_notification_app() 的返回值
        body: 原始活动 JSON
        logic: 应用层处理逻辑，默认使用 WelcomeBot
    """
    activity = Activity.from_dict(body)
    await app.adapter.process_activity(activity, logic or WelcomeBot().run)


async def broadcast_message(app: NotificationApp, text: str, page_size: Optional[int] = None) -> int:
    """向全部安装发送纯文本消息，返回发送成功的数量。"""
    return await _broadcast(app, lambda target: target.send_message(text), page_size)


async def broadcast_adaptive_card(app: NotificationApp, card: Any, page_size: Optional[int] = None) -> int:
    """向全部安装发送 Adaptive Card，返回发送成功的数量。"""
    return await _broadcast(app, lambda target: target.send_adaptive_card(card), page_size)


async def _broadcast(
    app: NotificationApp,
    send: Callable[[BotInstallation], Awaitable[SendResponse]],
    page_size: Optional[int],
) -> int:
    page_size = page_size or app.cfg.broadcast_page_size
    sent = 0
    continuation_token: Optional[str] = None
    while True:
        paged = await app.bot.get_paged_installations(page_size, continuation_token)
        # 同一页内的安装各自对应不同会话，可以并发发送
        results = await asyncio.gather(*(send(t) for t in paged.data), return_exceptions=True)
        for target, result in zip(paged.data, results):
            if isinstance(result, Exception):
                logger.error(f"Broadcast failed: {result}", extra={"extra": {
                    "conversation_id": (target.conversation_reference.get("conversation") or {}).get("id"),
                    "type": target.type,
                }})
            else:
                sent += 1
        continuation_token = paged.continuation_token
        if not continuation_token:
            return sent
