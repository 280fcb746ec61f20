"""Bot adapter：中间件管线与会话续接。

- use(): 注册中间件，按注册顺序执行，每个中间件必须 await next_handler() 才会继续。
- process_activity(): 处理一个入站活动，管线末端执行应用逻辑。
- continue_conversation(): 根据会话引用构造续接活动，同样经过管线后回调业务逻辑，
  用于主动推送消息。
"""

from typing import Awaitable, Callable, Dict, List, Optional, Protocol

from notify_core.adapter.turn_context import TurnContext
from notify_core.connector.base import ConnectorClient
from notify_core.domain.activity import Activity
from notify_core.domain.exceptions import ValidationError
from notify_core.domain.models import ConversationReference

TurnLogic = Callable[[TurnContext], Awaitable[None]]
NextHandler = Callable[[], Awaitable[None]]
TurnErrorHandler = Callable[[TurnContext, Exception], Awaitable[None]]
ConnectorFactory = Callable[[str], ConnectorClient]


class Middleware(Protocol):
    async def on_turn(self, context: TurnContext, next_handler: NextHandler) -> None:
        ...


class BotAdapter:
    def __init__(self, connector_factory: ConnectorFactory, bot_app_id: str = ""):
        self._connector_factory = connector_factory
        self._connectors: Dict[str, ConnectorClient] = {}
        self._middleware: List[Middleware] = []
        self.bot_app_id = bot_app_id
        self.on_turn_error: Optional[TurnErrorHandler] = None

    @property
    def middleware(self) -> List[Middleware]:
        return list(self._middleware)

    def use(self, middleware: Middleware) -> "BotAdapter":
        self._middleware.append(middleware)
        return self

    def connector_for(self, service_url: Optional[str]) -> ConnectorClient:
        """同一 serviceUrl 复用同一个 connector 实例。"""
        if not service_url:
            raise ValidationError(code="MISSING_SERVICE_URL", message="activity has no serviceUrl")
        connector = self._connectors.get(service_url)
        if connector is None:
            connector = self._connector_factory(service_url)
            self._connectors[service_url] = connector
        return connector

    async def process_activity(self, activity: Activity, logic: Optional[TurnLogic] = None) -> None:
        context = TurnContext(self, activity, self.connector_for(activity.service_url))
        try:
            await self._run_pipeline(context, logic, 0)
        except Exception as error:
            if self.on_turn_error is None:
                raise
            await self.on_turn_error(context, error)

    async def continue_conversation(self, reference: ConversationReference, logic: TurnLogic) -> None:
        """续接已有会话，异常直接抛给调用方。"""
        activity = Activity.from_reference(reference)
        context = TurnContext(self, activity, self.connector_for(activity.service_url))
        await self._run_pipeline(context, logic, 0)

    async def _run_pipeline(self, context: TurnContext, logic: Optional[TurnLogic], index: int) -> None:
        if index < len(self._middleware):
            async def next_handler() -> None:
                await self._run_pipeline(context, logic, index + 1)

            await self._middleware[index].on_turn(context, next_handler)
        elif logic is not None:
            await logic(context)

