"""
New-message push fan-out.

Recipients are the active participants of the conversation, minus the
sender, minus anyone excluded from the Event Chat message at the root of the
thread. Mentioned recipients get their own high-priority "mention" push and
are left out of the regular batch. Everyone else is grouped by locale and
each group becomes one request to the push gateway, which owns delivery.
"""

import logging
from collections import defaultdict
from typing import Any, Dict, List, Optional, Set

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from fellowship.config import settings
from fellowship.config.permissions_config import MembershipStatus
from fellowship.modules.notifications.schemas import (
    FanOutResult, PushOptions, PushPayload, PushRecipients, PushRequest
)

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"

PLACEHOLDERS = {
    "en": {
        "image": "[Photo]",
        "video": "[Video]",
        "file": "[Attachment]",
        "prayer_card": "[Prayer Card]",
        "system": "[System]",
        "someone": "Someone",
        "mention": "Mentioned by {sender}",
    },
    "ko": {
        "image": "[사진]",
        "video": "[동영상]",
        "file": "[첨부파일]",
        "prayer_card": "[기도 카드]",
        "system": "[시스템]",
        "someone": "누군가",
        "mention": "{sender}님이 멘션함",
    },
}

CONTENT_PLACEHOLDERS = ("image", "video", "file", "prayer_card", "system")


def _text(key: str, locale: str) -> str:
    return PLACEHOLDERS.get(locale, {}).get(key) or PLACEHOLDERS[DEFAULT_LOCALE][key]


def build_body(content: Optional[str], content_type: str, locale: str = DEFAULT_LOCALE,
               preview_length: int = 100) -> str:
    if content_type != "text":
        return _text(content_type if content_type in CONTENT_PLACEHOLDERS else "file", locale)
    content = content or ""
    if len(content) > preview_length:
        return content[:preview_length] + "..."
    return content


def build_title(sender_name: Optional[str], locale: str = DEFAULT_LOCALE, mention: bool = False) -> str:
    name = sender_name or _text("someone", locale)
    if mention:
        return _text("mention", locale).format(sender=name)
    return name


def select_recipients(
    participants: List[Dict[str, Any]],
    sender_membership_id: Optional[str],
    excluded_membership_ids: Set[str],
) -> List[Dict[str, Any]]:
    """Active participant memberships that should hear about a message"""
    return [
        p for p in participants
        if p.get("status") == MembershipStatus.ACTIVE.value
        and p["id"] != sender_membership_id
        and p["id"] not in excluded_membership_ids
    ]


class PushGatewayClient:
    def __init__(self, url: str, service_key: Optional[str], timeout: float = 10.0):
        self.url = url
        self.service_key = service_key
        self.timeout = timeout

    def send(self, request: PushRequest) -> None:
        headers = {"Content-Type": "application/json"}
        if self.service_key:
            headers["Authorization"] = f"Bearer {self.service_key}"
        with httpx.Client(timeout=self.timeout) as client:
            response = client.post(self.url, json=request.model_dump(exclude_none=True), headers=headers)
            response.raise_for_status()


def get_push_gateway() -> PushGatewayClient:
    return PushGatewayClient(
        settings.get_push_gateway_url(),
        settings.supabase_service_role_key,
        settings.push_gateway_timeout,
    )


class MessageNotifier:
    def __init__(self, supabase: Client, gateway: PushGatewayClient):
        self.supabase = supabase
        self.gateway = gateway

    def _participants(self, conversation_id: str) -> List[Dict[str, Any]]:
        rows = self.supabase.table("conversation_participants")\
            .select("membership_id")\
            .eq("conversation_id", conversation_id)\
            .execute()
        membership_ids = [r["membership_id"] for r in rows.data or []]
        if not membership_ids:
            return []
        memberships = self.supabase.table("memberships")\
            .select("id, user_id, status")\
            .in_("id", membership_ids)\
            .execute()
        return memberships.data or []

    def _users(self, user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        if not user_ids:
            return {}
        result = self.supabase.table("users")\
            .select("id, display_name, locale")\
            .in_("id", user_ids)\
            .execute()
        return {u["id"]: u for u in result.data or []}

    def _excluded(self, message: Dict[str, Any]) -> Set[str]:
        """Exclusions of the Event Chat message at the root of the thread, if any"""
        root_id = message.get("parent_id")
        if root_id:
            root = self.supabase.table("messages")\
                .select("id, is_event_chat")\
                .eq("id", root_id)\
                .limit(1)\
                .execute()
            if not root.data or not root.data[0].get("is_event_chat"):
                return set()
        elif message.get("is_event_chat"):
            root_id = message["id"]
        else:
            return set()
        result = self.supabase.table("event_chat_exclusions")\
            .select("excluded_membership_id")\
            .eq("message_id", root_id)\
            .execute()
        return {r["excluded_membership_id"] for r in result.data or []}

    def _mentioned(self, message_id: str) -> Set[str]:
        result = self.supabase.table("mentions")\
            .select("membership_id")\
            .eq("message_id", message_id)\
            .execute()
        return {r["membership_id"] for r in result.data or []}

    def _send(self, request: PushRequest, message_id: str, outcome: FanOutResult) -> None:
        try:
            self.gateway.send(request)
        except httpx.HTTPError as e:
            logger.error("Push gateway rejected %s push for message %s: %s",
                         request.notification_type, message_id, e)
            outcome.errors.append(str(e))
            return
        outcome.requests += 1
        outcome.notified += len(request.recipients.user_ids)

    def notify_message_sent(self, message: Dict[str, Any], sender: Dict[str, Any]) -> FanOutResult:
        """Fan a new message out to the push gateway. Failures are logged and reported, never raised."""
        outcome = FanOutResult()
        try:
            participants = self._participants(message["conversation_id"])
            excluded = self._excluded(message)
            recipients = select_recipients(participants, message.get("sender_id"), excluded)
            if not recipients:
                return outcome
            mentioned = self._mentioned(message["id"])
            users = self._users([r["user_id"] for r in recipients] + [sender["user_id"]])
        except APIError as e:
            logger.error("Push fan-out for message %s failed to load recipients: %s", message["id"], e.message)
            outcome.errors.append(e.message)
            return outcome

        sender_name = (users.get(sender["user_id"]) or {}).get("display_name")
        content_type = message.get("content_type", "text")
        data = {
            "conversation_id": message["conversation_id"],
            "tenant_id": message["tenant_id"],
            "message_id": message["id"],
        }
        if message.get("parent_id"):
            data["thread_id"] = message["parent_id"]

        def locale_of(recipient):
            return (users.get(recipient["user_id"]) or {}).get("locale") or DEFAULT_LOCALE

        def request_for(user_ids, locale, mention):
            return PushRequest(
                tenant_id=message["tenant_id"],
                notification_type="mention" if mention else "new_message",
                recipients=PushRecipients(user_ids=user_ids, conversation_id=message["conversation_id"]),
                payload=PushPayload(
                    title=build_title(sender_name, locale, mention),
                    body=build_body(message.get("content"), content_type, locale, settings.push_body_preview_length),
                    data=data,
                ),
                options=PushOptions(priority="high", sound="default") if mention else None,
            )

        by_locale: Dict[str, List[str]] = defaultdict(list)
        for recipient in recipients:
            if recipient["id"] in mentioned:
                self._send(request_for([recipient["user_id"]], locale_of(recipient), True), message["id"], outcome)
            else:
                by_locale[locale_of(recipient)].append(recipient["user_id"])

        for locale, user_ids in by_locale.items():
            self._send(request_for(user_ids, locale, False), message["id"], outcome)

        logger.info("Message %s notified %d recipient(s)", message["id"], outcome.notified)
        return outcome
