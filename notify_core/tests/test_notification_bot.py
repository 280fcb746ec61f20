import asyncio

import pytest

from notify_core.adapter.bot_adapter import BotAdapter
from notify_core.domain.exceptions import NetworkError, ValidationError
from notify_core.notification.bot import NotificationBot, SearchScope
from notify_core.notification.middleware import NotificationMiddleware, get_key

from conftest import make_reference, roster_error


def _seed(store, *references):
    asyncio.run(store.write({get_key(r): r for r in references}))


def test_constructor_requires_adapter_and_store(connector, store):
    with pytest.raises(ValidationError):
        NotificationBot(None, store)
    with pytest.raises(ValidationError):
        NotificationBot(BotAdapter(lambda url: connector), None)


def test_constructor_registers_middleware(app):
    assert any(isinstance(m, NotificationMiddleware) for m in app.adapter.middleware)


def test_build_installation(app):
    with pytest.raises(ValidationError):
        app.bot.build_installation({})
    installation = app.bot.build_installation(make_reference(conversation_type="groupChat"))
    assert installation.type == "groupChat"
    assert asyncio.run(app.store.list()).data == []


def test_validate_installation(app, connector):
    connector.member_errors["GONE"] = roster_error()
    connector.member_errors["FLAKY"] = NetworkError(code="NETWORK_ERROR", message="timeout")
    assert asyncio.run(app.bot.validate_installation(make_reference("OK"))) is True
    assert asyncio.run(app.bot.validate_installation(make_reference("GONE"))) is False
    assert asyncio.run(app.bot.validate_installation(make_reference("FLAKY"))) is True
    assert connector.member_queries[0] == ("OK", 1, None)


def test_get_paged_installations_prunes_stale(app, connector):
    _seed(app.store, make_reference("A"), make_reference("GONE"), make_reference("B"))
    connector.member_errors["GONE"] = roster_error()
    page = asyncio.run(app.bot.get_paged_installations())
    assert [i.conversation_reference["conversation"]["id"] for i in page.data] == ["A", "B"]
    assert page.continuation_token == ""
    assert asyncio.run(app.store.read(["_T1_GONE"])) == {}


def test_get_paged_installations_keeps_cursor(app, connector):
    _seed(app.store, *(make_reference(c) for c in ("A", "B", "C", "D")))
    connector.member_errors["A"] = roster_error()
    first = asyncio.run(app.bot.get_paged_installations(2))
    assert [i.conversation_reference["conversation"]["id"] for i in first.data] == ["B"]
    assert first.continuation_token == "_T1_B"
    second = asyncio.run(app.bot.get_paged_installations(2, first.continuation_token))
    assert [i.conversation_reference["conversation"]["id"] for i in second.data] == ["C", "D"]
    assert second.continuation_token == ""


def test_get_paged_installations_without_validation(app, connector):
    _seed(app.store, make_reference("GONE"))
    connector.member_errors["GONE"] = roster_error()
    page = asyncio.run(app.bot.get_paged_installations(validation_enabled=False))
    assert len(page.data) == 1
    assert connector.member_queries == []


def test_find_member_respects_scope(app, connector):
    _seed(
        app.store,
        make_reference("P1", conversation_type="personal"),
        make_reference("G1", conversation_type="groupChat"),
        make_reference("TEAM1", conversation_type="channel"),
    )
    connector.members = {
        "P1": [{"id": "p-user"}],
        "G1": [{"id": "g-user"}],
        "TEAM1": [{"id": "t-user"}],
    }
    seen = []

    async def predicate(member):
        seen.append((member.parent.type, member.account.id))
        return False

    assert asyncio.run(app.bot.find_member(predicate, SearchScope.PERSON)) is None
    assert seen == [("personal", "p-user")]

    seen.clear()
    asyncio.run(app.bot.find_member(predicate, SearchScope.PERSON | SearchScope.GROUP))
    assert sorted(t for t, _ in seen) == ["groupChat", "personal"]


def test_find_member_returns_first_match_across_pages(app, connector):
    _seed(app.store, make_reference("TEAM1", conversation_type="channel"))
    connector.members["TEAM1"] = [{"id": f"u{i}", "email": f"u{i}@contoso.com"} for i in range(5)]

    async def predicate(member):
        return member.account.email == "u4@contoso.com"

    found = asyncio.run(app.bot.find_member(predicate))
    assert found.account.id == "u4"


def test_find_all_members(app, connector):
    _seed(app.store, make_reference("P1"), make_reference("G1", conversation_type="groupChat"))
    connector.members = {"P1": [{"id": "a"}, {"id": "b"}, {"id": "c"}], "G1": [{"id": "a"}]}

    async def predicate(member):
        return member.account.id == "a"

    found = asyncio.run(app.bot.find_all_members(predicate))
    assert sorted(m.parent.conversation_reference["conversation"]["id"] for m in found) == ["G1", "P1"]
    assert asyncio.run(app.bot.find_all_members(predicate, SearchScope.CHANNEL)) == []


def test_find_channels(app, connector):
    _seed(
        app.store,
        make_reference("TEAM1", conversation_type="channel"),
        make_reference("TEAM2", conversation_type="channel"),
        make_reference("P1"),
    )
    connector.channels = {
        "TEAM1": [{"id": "TEAM1"}, {"id": "CH-ops", "name": "Ops"}],
        "TEAM2": [{"id": "TEAM2"}, {"id": "CH-ops2", "name": "Ops"}],
    }
    connector.teams = {"TEAM1": {"id": "TEAM1", "name": "Alpha"}, "TEAM2": {"id": "TEAM2", "name": "Beta"}}

    async def ops_channel(channel, team_details):
        return channel.info.name == "Ops"

    async def beta_ops(channel, team_details):
        return channel.info.name == "Ops" and team_details.name == "Beta"

    first = asyncio.run(app.bot.find_channel(ops_channel))
    assert first.info.id == "CH-ops"
    assert asyncio.run(app.bot.find_channel(beta_ops)).info.id == "CH-ops2"
    all_ops = asyncio.run(app.bot.find_all_channels(ops_channel))
    assert [c.info.id for c in all_ops] == ["CH-ops", "CH-ops2"]


def test_search_scope_flags():
    assert SearchScope.PERSON in SearchScope.ALL
    assert SearchScope.CHANNEL not in (SearchScope.PERSON | SearchScope.GROUP)
