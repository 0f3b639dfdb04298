import os
import uuid
from types import SimpleNamespace

os.environ.setdefault("SUPABASE_URL", "http://supabase.test")
os.environ.setdefault("SUPABASE_KEY", "anon-test-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-test-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from fellowship.main import app  # noqa: E402
from fellowship.database.supabase_client import get_supabase, get_service_supabase  # noqa: E402
from fellowship.modules.auth import service as auth_service  # noqa: E402
from fellowship.modules.notifications.push import get_push_gateway  # noqa: E402
from tests.fake_supabase import FakeSupabase  # noqa: E402

TENANT_ID = "11111111-1111-4111-8111-111111111111"
OTHER_TENANT_ID = "22222222-2222-4222-8222-222222222222"


class RecordingGateway:
    def __init__(self):
        self.requests = []

    def send(self, request):
        self.requests.append(request)


@pytest.fixture
def supabase():
    return FakeSupabase()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def client(supabase, gateway):
    auth_service.token_cache.clear()
    app.dependency_overrides[get_supabase] = lambda: supabase
    app.dependency_overrides[get_service_supabase] = lambda: supabase
    app.dependency_overrides[get_push_gateway] = lambda: gateway
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    auth_service.token_cache.clear()


def add_member(supabase, name, tenant_id=TENANT_ID, role="member", status="active",
               locale="en", small_group_id=None, user_id=None):
    """Create a user with a token and a membership; returns a namespace with ids and auth header."""
    user_id = user_id or str(uuid.uuid4())
    token = f"token-{name}-{user_id[:8]}"
    if user_id not in supabase.auth.users:
        supabase.auth.add_user(user_id, token)
        supabase.add("users", {"id": user_id, "display_name": name, "locale": locale})
    else:
        token = next(t for t, uid in supabase.auth.tokens.items() if uid == user_id)
    membership = supabase.add("memberships", {
        "user_id": user_id,
        "tenant_id": tenant_id,
        "role": role,
        "status": status,
        "small_group_id": small_group_id,
    })
    return SimpleNamespace(
        name=name,
        user_id=user_id,
        membership_id=membership["id"],
        token=token,
        headers={"Authorization": f"Bearer {token}"},
    )


def add_conversation(supabase, members, tenant_id=TENANT_ID, type="church_wide", **extra):
    conversation = supabase.add("conversations", {"tenant_id": tenant_id, "type": type, "name": type, **extra})
    for member in members:
        supabase.add("conversation_participants", {
            "conversation_id": conversation["id"],
            "membership_id": member.membership_id,
        })
    return conversation


@pytest.fixture
def church(supabase):
    """Five active members of one church sharing a church-wide conversation"""
    members = {name: add_member(supabase, name) for name in ("alice", "bob", "carol", "dave", "erin")}
    conversation = add_conversation(supabase, members.values())
    return SimpleNamespace(conversation=conversation, **members)


def messages_url(conversation_id, tenant_id=TENANT_ID):
    return f"/api/v1/tenants/{tenant_id}/conversations/{conversation_id}/messages"
