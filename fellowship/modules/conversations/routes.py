from fastapi import APIRouter, Depends
from fellowship.database.supabase_client import get_service_supabase
from fellowship.modules.conversations.schemas import ConversationResponse
from fellowship.modules.conversations.service import ConversationService
from fellowship.core.dependencies import get_current_membership
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/tenants/{tenant_id}/conversations", tags=["conversations"])


def get_conversation_service(supabase: Client = Depends(get_service_supabase)) -> ConversationService:
    return ConversationService(supabase)


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    tenant_id: str,
    membership: Dict = Depends(get_current_membership),
    service: ConversationService = Depends(get_conversation_service)
):
    """List conversations the caller can access, most recently active first"""
    return service.list_conversations(tenant_id, membership)
