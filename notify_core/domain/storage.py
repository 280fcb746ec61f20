from typing import Dict, List, Optional, Protocol

from .models import ConversationReference, PagedData


class ConversationReferenceStore(Protocol):
    """会话引用的持久化协议。

    key 由 notification.middleware.get_key 计算；同一 key 重复写入时直接覆盖。
    """

    async def write(self, changes: Dict[str, ConversationReference]) -> None:
        ...

    async def read(self, keys: List[str]) -> Dict[str, ConversationReference]:
        ...

    async def delete(self, keys: List[str]) -> None:
        ...

    async def list(
        self,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> PagedData[ConversationReference]:
        """返回一页会话引用，continuation_token 为空串表示已到末页。"""

        ...
