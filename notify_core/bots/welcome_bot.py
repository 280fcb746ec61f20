"""默认的应用层处理逻辑：新成员加入时发送欢迎语。"""

from notify_core.adapter.turn_context import TurnContext
from notify_core.domain.activity import ActivityTypes


WELCOME_MESSAGE = (
    "Welcome to the Notification Bot! I am designed to send you updates and alerts using "
    "Adaptive Cards triggered by HTTP post requests. Please note that I am a notification-only "
    "bot and you can't interact with me. Follow the README in the project and stay tuned for "
    "notifications!"
)


class WelcomeBot:
    """通知型 bot 不处理用户消息，只在 membersAdded 时问候一次。"""

    def __init__(self, welcome_message: str = WELCOME_MESSAGE):
        self._welcome_message = welcome_message

    async def run(self, context: TurnContext) -> None:
        activity = context.activity
        if activity.type != ActivityTypes.CONVERSATION_UPDATE or not activity.members_added:
            return
        bot_id = activity.recipient.get("id")
        if any(member.get("id") != bot_id for member in activity.members_added):
            await context.send_activity(self._welcome_message)
