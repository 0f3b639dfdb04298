from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Dict, List, Optional

from fellowship.core.exceptions import DependencyFailure
from fellowship.modules.attachments.schemas import AttachmentResponse
from fellowship.modules.messages.service import MessageService

IMAGE_MIME_PATTERN = "image/%"


class AttachmentService:
    def __init__(self, supabase: Client, messages: Optional[MessageService] = None):
        self.supabase = supabase
        self.messages = messages or MessageService(supabase)

    def _list(self, tenant_id: str, membership: Dict[str, Any], conversation_id: Optional[str],
              images: bool, limit: int, offset: int) -> List[AttachmentResponse]:
        """Attachments of live messages in the reader's conversations, minus those they are excluded from.

        Filters through the embedded message so the request stays small however
        many messages the conversations hold; only the hidden ids are listed.
        """
        conversations = self.messages.conversations
        if conversation_id:
            conversation_ids = [conversations.require_access(tenant_id, conversation_id, membership)["id"]]
        else:
            conversation_ids = [c["id"] for c in conversations.list_accessible(tenant_id, membership)]
        if not conversation_ids:
            return []
        hidden = self.messages.excluded_message_ids(tenant_id, membership["id"])
        try:
            query = self.supabase.table("attachments")\
                .select("*, messages!inner(conversation_id, deleted_at)")\
                .eq("tenant_id", tenant_id)\
                .in_("messages.conversation_id", conversation_ids)\
                .is_("messages.deleted_at", "null")
            if hidden:
                query = query.not_.in_("message_id", sorted(hidden))
            if images:
                query = query.like("file_type", IMAGE_MIME_PATTERN)
            else:
                query = query.not_.like("file_type", IMAGE_MIME_PATTERN)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list attachments: {e.message}")
        attachments = []
        for a in result.data or []:
            message = a.pop("messages", None) or {}
            attachments.append(AttachmentResponse(**{**a, "conversation_id": message.get("conversation_id")}))
        return attachments

    def list_images(self, tenant_id: str, membership: Dict[str, Any], conversation_id: Optional[str] = None,
                    limit: int = 30, offset: int = 0) -> List[AttachmentResponse]:
        """Image gallery, newest first, limited to messages the reader can see"""
        return self._list(tenant_id, membership, conversation_id, True, limit, offset)

    def list_files(self, tenant_id: str, membership: Dict[str, Any], conversation_id: Optional[str] = None,
                   limit: int = 30, offset: int = 0) -> List[AttachmentResponse]:
        """Non-image attachments, newest first"""
        return self._list(tenant_id, membership, conversation_id, False, limit, offset)
