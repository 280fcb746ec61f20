"""安装追踪与通知目标。

- classifier: 入站活动分类。
- middleware: 维护会话引用存储的中间件。
- targets: BotInstallation / Channel / Member 三种通知目标。
- bot: NotificationBot，安装枚举、校验与搜索。
"""

from notify_core.notification.bot import NotificationBot, SearchScope
from notify_core.notification.middleware import NotificationMiddleware, get_key
from notify_core.notification.targets import BotInstallation, Channel, Member, NotificationTarget

__all__ = [
    "BotInstallation",
    "Channel",
    "Member",
    "NotificationBot",
    "NotificationMiddleware",
    "NotificationTarget",
    "SearchScope",
    "get_key",
]
