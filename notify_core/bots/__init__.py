"""应用层 bot 逻辑。"""

from notify_core.bots.welcome_bot import WELCOME_MESSAGE, WelcomeBot

__all__ = ["WELCOME_MESSAGE", "WelcomeBot"]
