"""
Event Chat visibility rules.

A restricted message (is_event_chat) is hidden from the memberships listed in
event_chat_exclusions and visible to everyone else with conversation access,
its sender always included. Replies inherit the visibility of their parent:
a reply under a message hidden from the reader is hidden as well.
Other unrestricted messages are never hidden, whatever exclusion rows may
exist for them.
"""

from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from fellowship.core.exceptions import ValidationError


def normalize_ids(membership_ids: Optional[Iterable[str]]) -> List[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: Set[str] = set()
    result = []
    for membership_id in membership_ids or []:
        membership_id = (membership_id or "").strip()
        if membership_id and membership_id not in seen:
            seen.add(membership_id)
            result.append(membership_id)
    return result


def validate_content(content: Optional[str]) -> str:
    if content is None or not content.strip():
        raise ValidationError("message content cannot be empty")
    return content.strip()


def validate_send(
    content: Optional[str],
    sender_membership_id: str,
    excluded_membership_ids: Optional[Iterable[str]],
    max_exclusions: int = 5,
) -> Tuple[str, List[str]]:
    """Check a send request before anything is written.

    Returns the trimmed content and the normalized exclusion list.
    """
    excluded = normalize_ids(excluded_membership_ids)
    if len(excluded) > max_exclusions:
        raise ValidationError(f"cannot exclude more than {max_exclusions} users")
    if sender_membership_id in excluded:
        raise ValidationError("cannot exclude yourself")
    return validate_content(content), excluded


def hidden_message_ids(restricted_rows: Iterable[Dict[str, Any]], reader_membership_id: str) -> Set[str]:
    """Ids the reader must not see.

    restricted_rows are the messages paired with the reader in
    event_chat_exclusions, carrying at least id, sender_id and is_event_chat.
    """
    return {
        row["id"]
        for row in restricted_rows
        if row.get("is_event_chat") and row.get("sender_id") != reader_membership_id
    }


def is_visible(message: Dict[str, Any], reader_membership_id: str, excluded_message_ids: Set[str]) -> bool:
    if message.get("parent_id") and message["parent_id"] in excluded_message_ids:
        return False
    if not message.get("is_event_chat"):
        return True
    if message.get("sender_id") == reader_membership_id:
        return True
    return message["id"] not in excluded_message_ids


def filter_visible(
    messages: Iterable[Dict[str, Any]],
    reader_membership_id: str,
    excluded_message_ids: Set[str],
) -> List[Dict[str, Any]]:
    return [m for m in messages if is_visible(m, reader_membership_id, excluded_message_ids)]
