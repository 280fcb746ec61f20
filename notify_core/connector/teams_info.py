"""Teams 查询辅助函数，均基于当前 turn 的会话与 connector。"""

from typing import TYPE_CHECKING, List, Optional

from notify_core.domain.exceptions import ValidationError
from notify_core.domain.models import ChannelInfo, TeamDetails, TeamsChannelAccount, TeamsPagedMembersResult

if TYPE_CHECKING:
    from notify_core.adapter.turn_context import TurnContext


def get_team_id(context: "TurnContext") -> Optional[str]:
    """解析 bot 所在团队的 ID。

    优先使用 channelData.team.id；没有时，仅当会话没有 name（即团队级会话，
    bot 安装在 General 频道）才退回到会话 ID。
    """
    team_id = context.activity.channel_data_value("team", "id")
    if team_id:
        return team_id
    conversation = context.activity.conversation
    if conversation.get("name") is None and conversation.get("id"):
        return conversation["id"]
    return None


async def get_paged_members(
    context: "TurnContext",
    page_size: Optional[int] = None,
    continuation_token: Optional[str] = None,
) -> TeamsPagedMembersResult:
    conversation_id = context.activity.conversation.get("id")
    if not conversation_id:
        raise ValidationError(code="MISSING_CONVERSATION_ID", message="activity has no conversation id")
    data = await context.connector.get_paged_members(conversation_id, page_size, continuation_token)
    members = [TeamsChannelAccount.from_dict(m) for m in data.get("members") or []]
    return TeamsPagedMembersResult(members=members, continuation_token=data.get("continuationToken") or "")


async def get_team_channels(context: "TurnContext", team_id: str) -> List[ChannelInfo]:
    data = await context.connector.get_team_channels(team_id)
    return [ChannelInfo.from_dict(c) for c in data.get("conversations") or []]


async def get_team_details(context: "TurnContext", team_id: str) -> TeamDetails:
    data = await context.connector.get_team_details(team_id)
    return TeamDetails.from_dict(data)
