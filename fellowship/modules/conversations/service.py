import logging
from datetime import datetime, timezone
from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Dict, List, Set

from fellowship.core.exceptions import AuthorizationError, DependencyFailure, NotFoundError
from fellowship.modules.conversations.schemas import ConversationResponse, ConversationType

logger = logging.getLogger(__name__)


class ConversationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_conversation(self, tenant_id: str, conversation_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("conversations")\
                .select("*")\
                .eq("id", conversation_id)\
                .eq("tenant_id", tenant_id)\
                .limit(1)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to load conversation: {e.message}")
        if not result.data:
            raise NotFoundError("Conversation not found")
        return result.data[0]

    def _ministry_ids(self, membership_id: str) -> Set[str]:
        result = self.supabase.table("ministry_memberships")\
            .select("ministry_id")\
            .eq("membership_id", membership_id)\
            .execute()
        return {r["ministry_id"] for r in result.data or []}

    def _participant_conversation_ids(self, membership_id: str) -> Set[str]:
        result = self.supabase.table("conversation_participants")\
            .select("conversation_id")\
            .eq("membership_id", membership_id)\
            .execute()
        return {r["conversation_id"] for r in result.data or []}

    def can_access(self, conversation: Dict[str, Any], membership: Dict[str, Any]) -> bool:
        """Whether an active membership may read and post in a conversation"""
        if conversation.get("tenant_id") != membership.get("tenant_id"):
            return False
        conversation_type = conversation.get("type")
        try:
            if conversation_type == ConversationType.CHURCH_WIDE.value:
                return True
            if conversation_type == ConversationType.SMALL_GROUP.value:
                return bool(membership.get("small_group_id")) and \
                    membership.get("small_group_id") == conversation.get("small_group_id")
            if conversation_type == ConversationType.MINISTRY.value:
                return conversation.get("ministry_id") in self._ministry_ids(membership["id"])
            if conversation_type == ConversationType.DIRECT.value:
                return conversation["id"] in self._participant_conversation_ids(membership["id"])
        except APIError as e:
            raise DependencyFailure(f"Failed to check conversation access: {e.message}")
        return False

    def require_access(self, tenant_id: str, conversation_id: str, membership: Dict[str, Any]) -> Dict[str, Any]:
        conversation = self.get_conversation(tenant_id, conversation_id)
        if not self.can_access(conversation, membership):
            raise AuthorizationError("You do not have access to this conversation")
        return conversation

    def list_accessible(self, tenant_id: str, membership: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Conversations the membership can access, most recently active first"""
        try:
            result = self.supabase.table("conversations")\
                .select("*")\
                .eq("tenant_id", tenant_id)\
                .order("updated_at", desc=True)\
                .execute()
            ministry_ids = self._ministry_ids(membership["id"])
            participant_ids = self._participant_conversation_ids(membership["id"])
        except APIError as e:
            raise DependencyFailure(f"Failed to list conversations: {e.message}")

        accessible = []
        for conversation in result.data or []:
            conversation_type = conversation.get("type")
            if conversation_type == ConversationType.CHURCH_WIDE.value:
                accessible.append(conversation)
            elif conversation_type == ConversationType.SMALL_GROUP.value:
                if membership.get("small_group_id") and membership["small_group_id"] == conversation.get("small_group_id"):
                    accessible.append(conversation)
            elif conversation_type == ConversationType.MINISTRY.value:
                if conversation.get("ministry_id") in ministry_ids:
                    accessible.append(conversation)
            elif conversation["id"] in participant_ids:
                accessible.append(conversation)
        return accessible

    def list_conversations(self, tenant_id: str, membership: Dict[str, Any]) -> List[ConversationResponse]:
        return [ConversationResponse(**c) for c in self.list_accessible(tenant_id, membership)]

    def touch(self, conversation_id: str) -> None:
        """Bump updated_at so the conversation sorts to the top of lists"""
        try:
            self.supabase.table("conversations")\
                .update({"updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", conversation_id)\
                .execute()
        except APIError as e:
            logger.warning("Failed to bump conversation %s: %s", conversation_id, e.message)
