import logging
from collections import Counter
from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Dict, List, Optional, Set

from fellowship.config import settings
from fellowship.core.exceptions import DependencyFailure, NotFoundError, ValidationError
from fellowship.modules.conversations.service import ConversationService
from fellowship.modules.memberships.service import MembershipService
from fellowship.modules.messages import visibility
from fellowship.modules.messages.schemas import (
    MessageCreate, ReplyCreate, MessageResponse, ExclusionResponse
)

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(
        self,
        supabase: Client,
        conversations: Optional[ConversationService] = None,
        memberships: Optional[MembershipService] = None,
    ):
        self.supabase = supabase
        self.conversations = conversations or ConversationService(supabase)
        self.memberships = memberships or MembershipService(supabase)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------

    def excluded_message_ids(self, tenant_id: str, reader_membership_id: str) -> Set[str]:
        """Ids the reader must not see: restricted messages they are excluded from
        plus every reply under those. Evaluated on every read."""
        try:
            exclusions = self.supabase.table("event_chat_exclusions")\
                .select("message_id")\
                .eq("tenant_id", tenant_id)\
                .eq("excluded_membership_id", reader_membership_id)\
                .execute()
            message_ids = list({e["message_id"] for e in exclusions.data or []})
            if not message_ids:
                return set()
            restricted = self.supabase.table("messages")\
                .select("id, sender_id, is_event_chat")\
                .in_("id", message_ids)\
                .execute()
            hidden = visibility.hidden_message_ids(restricted.data or [], reader_membership_id)
            if not hidden:
                return hidden
            replies = self.supabase.table("messages")\
                .select("id")\
                .in_("parent_id", sorted(hidden))\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to load message visibility: {e.message}")
        return hidden | {r["id"] for r in replies.data or []}

    @staticmethod
    def _without(query, hidden: Set[str]):
        if hidden:
            query = query.not_.in_("id", sorted(hidden))
        return query

    def _get_visible_message(self, tenant_id: str, message_id: str, membership: Dict[str, Any],
                             conversation_id: Optional[str] = None) -> Dict[str, Any]:
        try:
            query = self.supabase.table("messages")\
                .select("*")\
                .eq("id", message_id)\
                .eq("tenant_id", tenant_id)\
                .is_("deleted_at", "null")
            if conversation_id is not None:
                query = query.eq("conversation_id", conversation_id)
            result = query.limit(1).execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to load message: {e.message}")
        if not result.data:
            raise NotFoundError("Message not found")
        message = result.data[0]
        hidden = self.excluded_message_ids(tenant_id, membership["id"])
        if not visibility.is_visible(message, membership["id"], hidden):
            raise NotFoundError("Message not found")
        return message

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def send_message(
        self,
        tenant_id: str,
        conversation_id: str,
        membership: Dict[str, Any],
        message_data: MessageCreate,
    ) -> MessageResponse:
        """Send a message; a non-empty exclusion list makes it an Event Chat message.

        Nothing is written if validation fails. If the exclusion rows cannot be
        saved the message is deleted again so no restricted message is left
        without its exclusions.
        """
        content, excluded = visibility.validate_send(
            message_data.content,
            membership["id"],
            message_data.excluded_membership_ids,
            settings.max_event_chat_exclusions,
        )
        is_event_chat = bool(excluded)

        self.memberships.require_capability(membership, "messages:send")
        if is_event_chat:
            self.memberships.require_capability(membership, "messages:send_event_chat")
        self.conversations.require_access(tenant_id, conversation_id, membership)

        if is_event_chat:
            valid_ids = self.memberships.active_membership_ids(tenant_id, excluded)
            if len(valid_ids) != len(excluded):
                raise ValidationError("excluded members must be active members of this church")

        mentioned = [m for m in visibility.normalize_ids(message_data.mentioned_membership_ids)
                     if m != membership["id"]]
        if set(mentioned) & set(excluded):
            raise ValidationError("cannot mention an excluded member")
        if mentioned:
            active = self.memberships.active_membership_ids(tenant_id, mentioned)
            mentioned = [m for m in mentioned if m in active]

        if message_data.quoted_message_id:
            try:
                self._get_visible_message(tenant_id, message_data.quoted_message_id, membership, conversation_id)
            except NotFoundError:
                raise ValidationError("quoted message not found")

        try:
            result = self.supabase.table("messages").insert({
                "tenant_id": tenant_id,
                "conversation_id": conversation_id,
                "sender_id": membership["id"],
                "content": content,
                "content_type": message_data.content_type.value,
                "is_event_chat": is_event_chat,
                "quoted_message_id": message_data.quoted_message_id,
            }).execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to send message: {e.message}")
        if not result.data:
            raise DependencyFailure("Failed to send message")
        message = result.data[0]

        if is_event_chat:
            self._insert_exclusions(tenant_id, message["id"], excluded)
            logger.info(
                "Event chat message %s in conversation %s excludes %d member(s)",
                message["id"], conversation_id, len(excluded),
            )
        if mentioned:
            self._insert_mentions(tenant_id, message["id"], mentioned)

        self.conversations.touch(conversation_id)
        return MessageResponse(**message)

    def _insert_exclusions(self, tenant_id: str, message_id: str, excluded: List[str]) -> None:
        rows = [
            {"message_id": message_id, "excluded_membership_id": membership_id, "tenant_id": tenant_id}
            for membership_id in excluded
        ]
        try:
            self.supabase.table("event_chat_exclusions").insert(rows).execute()
        except APIError as e:
            logger.error("Failed to insert event chat exclusions for %s: %s", message_id, e.message)
            self._compensate_message(message_id)
            raise DependencyFailure("Failed to save event chat exclusions; the message was not sent")

    def _insert_mentions(self, tenant_id: str, message_id: str, mentioned: List[str]) -> None:
        rows = [{"message_id": message_id, "membership_id": m, "tenant_id": tenant_id} for m in mentioned]
        try:
            self.supabase.table("mentions").insert(rows).execute()
        except APIError as e:
            # The message stands; mentioned members still get the regular notification
            logger.warning("Failed to record mentions for %s: %s", message_id, e.message)

    def _compensate_message(self, message_id: str) -> None:
        try:
            self.supabase.table("messages").delete().eq("id", message_id).execute()
        except APIError as e:
            # Leaves is_event_chat=true with incomplete exclusions; needs manual cleanup
            logger.critical("Failed to remove message %s after exclusion failure: %s", message_id, e.message)

    def send_reply(
        self,
        tenant_id: str,
        conversation_id: str,
        parent_id: str,
        membership: Dict[str, Any],
        reply_data: ReplyCreate,
    ) -> MessageResponse:
        """Reply in a thread. Threads are one level deep."""
        content = visibility.validate_content(reply_data.content)
        self.memberships.require_capability(membership, "messages:send")
        self.conversations.require_access(tenant_id, conversation_id, membership)

        parent = self._get_visible_message(tenant_id, parent_id, membership, conversation_id)
        if parent.get("parent_id"):
            raise ValidationError("cannot reply to a reply")

        try:
            result = self.supabase.table("messages").insert({
                "tenant_id": tenant_id,
                "conversation_id": conversation_id,
                "sender_id": membership["id"],
                "parent_id": parent_id,
                "content": content,
                "content_type": reply_data.content_type.value,
                "is_event_chat": False,
            }).execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to send reply: {e.message}")
        if not result.data:
            raise DependencyFailure("Failed to send reply")

        self.conversations.touch(conversation_id)
        return MessageResponse(**result.data[0])

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def list_messages(
        self,
        tenant_id: str,
        conversation_id: str,
        membership: Dict[str, Any],
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[MessageResponse]:
        """Top-level messages visible to the reader, newest page first, returned oldest-first"""
        limit = limit or settings.message_page_size
        self.conversations.require_access(tenant_id, conversation_id, membership)
        hidden = self.excluded_message_ids(tenant_id, membership["id"])
        try:
            query = self.supabase.table("messages")\
                .select("*")\
                .eq("conversation_id", conversation_id)\
                .eq("tenant_id", tenant_id)\
                .is_("parent_id", "null")\
                .is_("deleted_at", "null")
            result = self._without(query, hidden)\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list messages: {e.message}")

        messages = list(reversed(result.data or []))
        reply_counts = self._reply_counts([m["id"] for m in messages], hidden)
        return [MessageResponse(**m, reply_count=reply_counts.get(m["id"], 0)) for m in messages]

    def _reply_counts(self, parent_ids: List[str], hidden: Set[str]) -> Dict[str, int]:
        if not parent_ids:
            return {}
        try:
            query = self.supabase.table("messages")\
                .select("id, parent_id")\
                .in_("parent_id", parent_ids)\
                .is_("deleted_at", "null")
            result = self._without(query, hidden).execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to count replies: {e.message}")
        return dict(Counter(r["parent_id"] for r in result.data or []))

    def list_replies(
        self,
        tenant_id: str,
        conversation_id: str,
        parent_id: str,
        membership: Dict[str, Any],
    ) -> List[MessageResponse]:
        self.conversations.require_access(tenant_id, conversation_id, membership)
        self._get_visible_message(tenant_id, parent_id, membership, conversation_id)
        hidden = self.excluded_message_ids(tenant_id, membership["id"])
        try:
            query = self.supabase.table("messages")\
                .select("*")\
                .eq("parent_id", parent_id)\
                .eq("tenant_id", tenant_id)\
                .is_("deleted_at", "null")
            result = self._without(query, hidden).order("created_at").execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list replies: {e.message}")
        return [MessageResponse(**m) for m in result.data or []]

    def count_messages(self, tenant_id: str, conversation_id: str, membership: Dict[str, Any]) -> int:
        """Number of messages (replies included) the reader can see in a conversation"""
        self.conversations.require_access(tenant_id, conversation_id, membership)
        hidden = self.excluded_message_ids(tenant_id, membership["id"])
        try:
            query = self.supabase.table("messages")\
                .select("id", count="exact")\
                .eq("conversation_id", conversation_id)\
                .eq("tenant_id", tenant_id)\
                .is_("deleted_at", "null")
            result = self._without(query, hidden).execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to count messages: {e.message}")
        return result.count or 0

    def search_messages(
        self,
        tenant_id: str,
        membership: Dict[str, Any],
        text: str,
        limit: Optional[int] = None,
    ) -> List[MessageResponse]:
        """Case-insensitive content search across the reader's conversations"""
        text = (text or "").strip()
        if not text:
            raise ValidationError("search query cannot be empty")
        limit = limit or settings.search_result_limit

        conversation_ids = [c["id"] for c in self.conversations.list_accessible(tenant_id, membership)]
        if not conversation_ids:
            return []
        hidden = self.excluded_message_ids(tenant_id, membership["id"])
        pattern = "%" + text.replace("%", r"\%").replace("_", r"\_") + "%"
        try:
            query = self.supabase.table("messages")\
                .select("*")\
                .eq("tenant_id", tenant_id)\
                .in_("conversation_id", conversation_ids)\
                .ilike("content", pattern)\
                .is_("deleted_at", "null")
            result = self._without(query, hidden)\
                .order("created_at", desc=True)\
                .limit(limit)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to search messages: {e.message}")
        return [MessageResponse(**m) for m in result.data or []]

    def list_exclusions(self, tenant_id: str, message_id: str, membership: Optional[Dict[str, Any]]) -> List[ExclusionResponse]:
        """Who was excluded from a message. Only its sender gets the list; everyone else gets []."""
        if membership is None:
            return []
        try:
            message = self.supabase.table("messages")\
                .select("id, sender_id, is_event_chat")\
                .eq("id", message_id)\
                .eq("tenant_id", tenant_id)\
                .limit(1)\
                .execute()
            if not message.data or message.data[0].get("sender_id") != membership["id"]:
                return []
            result = self.supabase.table("event_chat_exclusions")\
                .select("message_id, excluded_membership_id, created_at")\
                .eq("message_id", message_id)\
                .order("created_at")\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list exclusions: {e.message}")
        return [ExclusionResponse(**row) for row in result.data or []]
