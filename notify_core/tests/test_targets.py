import asyncio

import pytest

from notify_core.adapter.bot_adapter import BotAdapter
from notify_core.adapter.cards import ADAPTIVE_CARD_CONTENT_TYPE
from notify_core.domain.exceptions import ApiError
from notify_core.domain.models import ChannelInfo, TeamsChannelAccount
from notify_core.notification.targets import BotInstallation, Channel, Member

from conftest import make_reference

CARD = {"type": "AdaptiveCard", "version": "1.4", "body": []}


def _installation(connector, **kwargs):
    adapter = BotAdapter(lambda url: connector)
    return BotInstallation(adapter, make_reference(**kwargs), "bot-app")


def test_installation_type_and_send_message(connector):
    installation = _installation(connector, conversation_type="groupChat")
    assert installation.type == "groupChat"
    res = asyncio.run(installation.send_message("hello"))
    assert res.id == "activity-1"
    conversation_id, activity = connector.sent[0]
    assert conversation_id == "C1"
    assert activity["text"] == "hello"
    assert activity["type"] == "message"
    assert activity["from"] == {"id": "bot-1"}


def test_installation_send_adaptive_card(connector):
    installation = _installation(connector)
    asyncio.run(installation.send_adaptive_card(CARD))
    _, activity = connector.sent[0]
    assert activity["attachments"] == [{"contentType": ADAPTIVE_CARD_CONTENT_TYPE, "content": CARD}]


def test_channel_send_uses_channel_conversation(connector):
    installation = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    channel = Channel(installation, ChannelInfo(id="CH2", name="Ops"))
    assert channel.type == "channel"
    asyncio.run(channel.send_message("deploy done"))
    asyncio.run(channel.send_adaptive_card(CARD))
    assert [cid for cid, _ in connector.sent] == ["CH2", "CH2"]
    assert installation.conversation_reference["conversation"]["id"] == "TEAM1"


def test_member_send_creates_conversation_every_time(connector):
    installation = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    member = Member(installation, TeamsChannelAccount(id="u-9", name="Bob", email="bob@contoso.com"))
    assert member.type == "personal"
    asyncio.run(member.send_message("hi"))
    asyncio.run(member.send_message("again"))
    assert len(connector.created) == 2
    params = connector.created[0]
    assert params["members"] == [{"id": "u-9", "name": "Bob", "email": "bob@contoso.com"}]
    assert params["isGroup"] is False
    assert params["tenantId"] == "T1"
    assert params["bot"] == {"id": "bot-1"}
    assert [cid for cid, _ in connector.sent] == ["dm-u-9-1", "dm-u-9-2"]


def test_send_error_goes_to_handler(connector):
    installation = _installation(connector)
    connector.send_errors["C1"] = ApiError(code="Forbidden", message="nope", http_status=403)
    handled = []

    async def on_error(context, error):
        handled.append((context.activity.conversation["id"], error.code))

    res = asyncio.run(installation.send_message("x", on_error))
    assert res.id is None
    assert handled == [("C1", "Forbidden")]


def test_send_error_propagates_without_handler(connector):
    installation = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    channel = Channel(installation, ChannelInfo(id="CH2"))
    connector.send_errors["CH2"] = ApiError(code="Forbidden", message="nope", http_status=403)
    with pytest.raises(ApiError):
        asyncio.run(channel.send_adaptive_card(CARD))


def test_channels_only_for_team_installations(connector):
    connector.channels["TEAM1"] = [{"id": "TEAM1", "name": None}, {"id": "CH2", "name": "Ops"}]
    personal = _installation(connector)
    assert asyncio.run(personal.channels()) == []
    assert asyncio.run(personal.get_team_details()) is None

    team = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    channels = asyncio.run(team.channels())
    assert [c.info.id for c in channels] == ["TEAM1", "CH2"]
    assert all(c.parent is team for c in channels)


def test_named_channel_conversation_has_no_team_id(connector):
    connector.channels["CH2"] = [{"id": "CH2"}]
    team = _installation(connector, conversation_id="CH2", conversation_type="channel", name="Ops")
    assert asyncio.run(team.channels()) == []
    assert asyncio.run(team.get_team_details()) is None


def test_get_team_details(connector):
    connector.teams["TEAM1"] = {"id": "TEAM1", "name": "Contoso", "aadGroupId": "g-1", "memberCount": 3}
    team = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    details = asyncio.run(team.get_team_details())
    assert details.name == "Contoso"
    assert details.aad_group_id == "g-1"
    assert details.member_count == 3


def test_get_paged_members(connector):
    connector.members["C1"] = [{"id": "u1", "email": "a@x"}, {"id": "u2"}, {"id": "u3"}]
    installation = _installation(connector)
    first = asyncio.run(installation.get_paged_members(2))
    assert [m.account.id for m in first.data] == ["u1", "u2"]
    assert first.continuation_token == "2"
    assert first.data[0].account.email == "a@x"
    second = asyncio.run(installation.get_paged_members(2, first.continuation_token))
    assert [m.account.id for m in second.data] == ["u3"]
    assert second.continuation_token == ""


def _recording_handler(handled):
    async def on_error(context, error):
        handled.append((context.activity.conversation["id"], error.code))

    return on_error


def test_channel_send_error_goes_to_handler(connector):
    installation = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    channel = Channel(installation, ChannelInfo(id="CH2"))
    connector.send_errors["CH2"] = ApiError(code="Forbidden", message="nope", http_status=403)
    handled = []

    res = asyncio.run(channel.send_message("x", _recording_handler(handled)))
    assert res.id is None
    res = asyncio.run(channel.send_adaptive_card(CARD, _recording_handler(handled)))
    assert res.id is None
    assert handled == [("CH2", "Forbidden"), ("CH2", "Forbidden")]
    assert connector.sent == []


def test_member_send_error_goes_to_handler(connector):
    installation = _installation(connector, conversation_id="TEAM1", conversation_type="channel")
    member = Member(installation, TeamsChannelAccount(id="u-9", name="Bob"))
    connector.send_errors["dm-u-9-1"] = ApiError(code="Forbidden", message="blocked", http_status=403)
    handled = []

    res = asyncio.run(member.send_message("x", _recording_handler(handled)))
    assert res.id is None
    assert handled == [("dm-u-9-1", "Forbidden")]

    # 第二次发送会新建会话 dm-u-9-2，不受上一次错误影响
    res = asyncio.run(member.send_adaptive_card(CARD, _recording_handler(handled)))
    assert res.id == "activity-1"
    assert [cid for cid, _ in connector.sent] == ["dm-u-9-2"]


def test_installation_card_error_goes_to_handler(connector):
    installation = _installation(connector)
    connector.send_errors["C1"] = ApiError(code="BadRequest", message="bad card", http_status=400)
    handled = []

    res = asyncio.run(installation.send_adaptive_card(CARD, _recording_handler(handled)))
    assert res.id is None
    assert handled == [("C1", "BadRequest")]
