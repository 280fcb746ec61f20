import pytest

from notify_core.api.service import build_notification_app
from notify_core.domain.exceptions import ApiError
from notify_core.infrastructure.storage.json_store import LocalConversationReferenceStore

SERVICE_URL = "https://smba.example.com/teams/"


class FakeConnector:
    """内存版 Connector，记录所有调用。"""

    def __init__(self, service_url=SERVICE_URL):
        self.service_url = service_url
        self.sent = []
        self.created = []
        self.member_queries = []
        self.members = {}
        self.channels = {}
        self.teams = {}
        self.member_errors = {}
        self.send_errors = {}
        self.default_page_size = 2

    async def create_conversation(self, parameters):
        self.created.append(parameters)
        return {"id": f"dm-{parameters['members'][0]['id']}-{len(self.created)}"}

    async def send_to_conversation(self, conversation_id, activity):
        if conversation_id in self.send_errors:
            raise self.send_errors[conversation_id]
        self.sent.append((conversation_id, activity))
        return {"id": f"activity-{len(self.sent)}"}

    async def get_paged_members(self, conversation_id, page_size=None, continuation_token=None):
        self.member_queries.append((conversation_id, page_size, continuation_token))
        if conversation_id in self.member_errors:
            raise self.member_errors[conversation_id]
        members = self.members.get(conversation_id, [])
        start = int(continuation_token or 0)
        end = start + (page_size or self.default_page_size)
        return {
            "members": members[start:end],
            "continuationToken": str(end) if end < len(members) else None,
        }

    async def get_team_channels(self, team_id):
        return {"conversations": self.channels.get(team_id, [])}

    async def get_team_details(self, team_id):
        return self.teams.get(team_id, {"id": team_id})


def roster_error():
    return ApiError(code="BotNotInConversationRoster", message="bot removed", http_status=403)


def make_activity(
    activity_type="message",
    conversation_id="C1",
    tenant_id="T1",
    conversation_type="personal",
    action=None,
    channel_data=None,
    conversation_name=None,
    members_added=None,
):
    conversation = {"id": conversation_id, "tenantId": tenant_id, "conversationType": conversation_type}
    if conversation_name is not None:
        conversation["name"] = conversation_name
    body = {
        "type": activity_type,
        "id": "incoming-1",
        "channelId": "msteams",
        "serviceUrl": SERVICE_URL,
        "from": {"id": "user-1", "name": "Alice"},
        "recipient": {"id": "bot-1", "name": "Notifier"},
        "conversation": conversation,
    }
    if action is not None:
        body["action"] = action
    if channel_data is not None:
        body["channelData"] = channel_data
    if members_added is not None:
        body["membersAdded"] = members_added
    return body


def make_reference(conversation_id="C1", tenant_id="T1", conversation_type="personal", name=None):
    conversation = {"id": conversation_id, "tenantId": tenant_id, "conversationType": conversation_type}
    if name is not None:
        conversation["name"] = name
    return {
        "activityId": "incoming-1",
        "user": {"id": "user-1"},
        "bot": {"id": "bot-1"},
        "conversation": conversation,
        "channelId": "msteams",
        "serviceUrl": SERVICE_URL,
    }


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def store(tmp_path):
    return LocalConversationReferenceStore(tmp_path)


@pytest.fixture
def app(connector, store):
    return build_notification_app(connector_factory=lambda service_url: connector, store=store)
