"""宿主 SDK 适配层。

包含：
- bot_adapter: 中间件管线、入站处理与会话续接。
- turn_context: 单次 turn 的上下文与发送原语。
- cards: Adaptive Card 附件封装。
"""

from notify_core.adapter.bot_adapter import BotAdapter, Middleware
from notify_core.adapter.turn_context import TurnContext

__all__ = ["BotAdapter", "Middleware", "TurnContext"]
