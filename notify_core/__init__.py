"""Notify Core 顶层包。

该包为 Teams / Bot Framework bot 提供"通知"能力：
追踪 bot 的安装位置（个人聊天、群聊、团队），持久化会话引用，
并按需向安装、成员或频道推送消息与 Adaptive Card。
"""

from notify_core.api.service import NotificationApp, build_notification_app
from notify_core.notification import NotificationBot, SearchScope

__all__ = ["NotificationApp", "NotificationBot", "SearchScope", "build_notification_app"]
