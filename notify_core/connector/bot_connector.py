"""Bot Framework Connector 适配器。

REST 端点均相对于会话引用中的 serviceUrl：
- POST /v3/conversations
- POST /v3/conversations/{conversationId}/activities
- GET  /v3/conversations/{conversationId}/pagedmembers
- GET  /v3/teams/{teamId}/conversations
- GET  /v3/teams/{teamId}

认证: Authorization: Bearer <token>，token 由宿主获取后通过配置传入。
"""

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from notify_core.config.settings import settings
from notify_core.domain.exceptions import ApiError, NetworkError, RateLimitError


class BotConnectorClient:
    """基于 httpx.AsyncClient 的 Connector 客户端实现。"""

    def __init__(self, service_url: str, cfg=settings):
        self.service_url = service_url.rstrip("/")
        self._settings = cfg

    async def create_conversation(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/v3/conversations", json=parameters)

    async def send_to_conversation(self, conversation_id: str, activity: Dict[str, Any]) -> Dict[str, Any]:
        path = f"/v3/conversations/{quote(conversation_id, safe='')}/activities"
        return await self._request("POST", path, json=activity)

    async def get_paged_members(
        self,
        conversation_id: str,
        page_size: Optional[int] = None,
        continuation_token: Optional[str] = None,
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {}
        if page_size:
            params["pageSize"] = page_size
        if continuation_token:
            params["continuationToken"] = continuation_token
        path = f"/v3/conversations/{quote(conversation_id, safe='')}/pagedmembers"
        return await self._request("GET", path, params=params)

    async def get_team_channels(self, team_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v3/teams/{quote(team_id, safe='')}/conversations")

    async def get_team_details(self, team_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"/v3/teams/{quote(team_id, safe='')}")

    # ---- 辅助方法 ----

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = await client.request(
                    method,
                    f"{self.service_url}{path}",
                    headers=self._headers(),
                    **kwargs,
                )
        except httpx.RequestError as e:
            raise NetworkError(code="NETWORK_ERROR", message=str(e), service_url=self.service_url)
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="connector rate limit", http_status=429)
        if resp.status_code >= 400:
            code, message = self._parse_error(resp)
            raise ApiError(code=code, message=message, http_status=resp.status_code)
        if not resp.content:
            return {}
        return resp.json()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = getattr(self._settings, "bot_access_token", None)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _parse_error(resp) -> tuple[str, str]:
        """解析 {"error": {"code": ..., "message": ...}}，解析失败时退回 API_ERROR。"""

        try:
            body = resp.json()
        except ValueError:
            return "API_ERROR", resp.text
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict) and error.get("code"):
            return str(error["code"]), str(error.get("message") or resp.text)
        return "API_ERROR", resp.text
