"""入站活动分类。

分类规则（按优先级）：
1. installationUpdate: action 为 add / add-upgrade（不区分大小写）视为安装，其余视为卸载。
2. conversationUpdate: channelData.eventType 为 teamDeleted / teamRestored 时分别对应团队删除/恢复。
3. message: bot 收到消息。
其余一律为 UNKNOWN，分类本身不会抛异常。
"""

from enum import Enum

from notify_core.domain.activity import Activity, ActivityTypes


class ActivityType(Enum):
    BOT_INSTALLED = "botInstalled"
    BOT_MESSAGED = "botMessaged"
    BOT_UNINSTALLED = "botUninstalled"
    TEAM_DELETED = "teamDeleted"
    TEAM_RESTORED = "teamRestored"
    UNKNOWN = "unknown"


_INSTALL_ACTIONS = {"add", "add-upgrade"}


def classify_activity(activity: Activity) -> ActivityType:
    if activity.type == ActivityTypes.INSTALLATION_UPDATE:
        action = activity.action.lower() if isinstance(activity.action, str) else ""
        if action in _INSTALL_ACTIONS:
            return ActivityType.BOT_INSTALLED
        return ActivityType.BOT_UNINSTALLED
    if activity.type == ActivityTypes.CONVERSATION_UPDATE:
        event_type = activity.channel_data_value("eventType")
        if event_type == "teamDeleted":
            return ActivityType.TEAM_DELETED
        if event_type == "teamRestored":
            return ActivityType.TEAM_RESTORED
        return ActivityType.UNKNOWN
    if activity.type == ActivityTypes.MESSAGE:
        return ActivityType.BOT_MESSAGED
    return ActivityType.UNKNOWN
