import pytest

from fellowship.core.exceptions import ValidationError
from fellowship.modules.messages import visibility


def test_normalize_drops_blanks_and_duplicates_in_order():
    assert visibility.normalize_ids(["b", " a ", "", "b", None, "c"]) == ["b", "a", "c"]
    assert visibility.normalize_ids(None) == []


def test_validate_send_returns_trimmed_content():
    content, excluded = visibility.validate_send("  hi  ", "me", ["x", "y"])
    assert content == "hi"
    assert excluded == ["x", "y"]


def test_validate_send_checks_cap_before_self_exclusion():
    with pytest.raises(ValidationError) as exc:
        visibility.validate_send("hi", "me", ["me", "a", "b", "c", "d", "e"])
    assert exc.value.message == "cannot exclude more than 5 users"


def test_validate_send_respects_configured_cap():
    with pytest.raises(ValidationError):
        visibility.validate_send("hi", "me", ["a", "b", "c"], max_exclusions=2)


def test_validate_send_rejects_self():
    with pytest.raises(ValidationError) as exc:
        visibility.validate_send("hi", "me", ["me"])
    assert exc.value.message == "cannot exclude yourself"
    assert exc.value.status_code == 400


@pytest.mark.parametrize("content", [None, "", "   ", "\n\t"])
def test_validate_content_rejects_blank(content):
    with pytest.raises(ValidationError):
        visibility.validate_content(content)


def test_hidden_ids_ignore_unrestricted_and_own_messages():
    rows = [
        {"id": "m1", "sender_id": "alice", "is_event_chat": True},
        {"id": "m2", "sender_id": "alice", "is_event_chat": False},
        {"id": "m3", "sender_id": "bob", "is_event_chat": True},
    ]
    assert visibility.hidden_message_ids(rows, "bob") == {"m1"}


def test_filter_visible():
    messages = [
        {"id": "m1", "sender_id": "alice", "is_event_chat": True},
        {"id": "m2", "sender_id": "alice", "is_event_chat": False},
        {"id": "m3", "sender_id": "bob", "is_event_chat": True},
    ]
    # Stray ids for unrestricted or own messages never hide them
    hidden = {"m1", "m2", "m3"}
    assert [m["id"] for m in visibility.filter_visible(messages, "bob", hidden)] == ["m2", "m3"]
    assert [m["id"] for m in visibility.filter_visible(messages, "carol", set())] == ["m1", "m2", "m3"]


def test_reply_under_hidden_parent_is_hidden():
    reply = {"id": "r1", "parent_id": "m1", "sender_id": "carol", "is_event_chat": False}
    assert not visibility.is_visible(reply, "bob", {"m1"})
    assert visibility.is_visible(reply, "dave", set())
