from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fellowship.database.supabase_client import get_service_supabase
from fellowship.modules.messages.schemas import (
    MessageCreate, ReplyCreate, MessageResponse, MessageCountResponse, ExclusionResponse
)
from fellowship.modules.messages.service import MessageService
from fellowship.modules.memberships.service import MembershipService
from fellowship.modules.notifications.push import MessageNotifier, PushGatewayClient, get_push_gateway
from fellowship.core.dependencies import get_current_membership, get_current_user_id, get_membership_service
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["messages"])


def get_message_service(supabase: Client = Depends(get_service_supabase)) -> MessageService:
    return MessageService(supabase)


def get_message_notifier(
    supabase: Client = Depends(get_service_supabase),
    gateway: PushGatewayClient = Depends(get_push_gateway),
) -> MessageNotifier:
    return MessageNotifier(supabase, gateway)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=201,
)
async def send_message(
    tenant_id: str,
    conversation_id: str,
    message_data: MessageCreate,
    background_tasks: BackgroundTasks,
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
    notifier: MessageNotifier = Depends(get_message_notifier),
):
    """Send a message; pass excluded_membership_ids (max 5) to make it an Event Chat message"""
    message = service.send_message(tenant_id, conversation_id, membership, message_data)
    background_tasks.add_task(notifier.notify_message_sent, message.model_dump(mode="json"), membership)
    return message


@router.get("/conversations/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    tenant_id: str,
    conversation_id: str,
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
):
    """List top-level messages visible to the caller, oldest first within the page"""
    return service.list_messages(tenant_id, conversation_id, membership, limit=limit, offset=offset)


@router.get("/conversations/{conversation_id}/messages/count", response_model=MessageCountResponse)
async def count_messages(
    tenant_id: str,
    conversation_id: str,
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
):
    """Count messages visible to the caller"""
    return MessageCountResponse(count=service.count_messages(tenant_id, conversation_id, membership))


@router.get(
    "/conversations/{conversation_id}/messages/{message_id}/replies",
    response_model=List[MessageResponse],
)
async def list_replies(
    tenant_id: str,
    conversation_id: str,
    message_id: str,
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
):
    return service.list_replies(tenant_id, conversation_id, message_id, membership)


@router.post(
    "/conversations/{conversation_id}/messages/{message_id}/replies",
    response_model=MessageResponse,
    status_code=201,
)
async def send_reply(
    tenant_id: str,
    conversation_id: str,
    message_id: str,
    reply_data: ReplyCreate,
    background_tasks: BackgroundTasks,
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
    notifier: MessageNotifier = Depends(get_message_notifier),
):
    """Reply to a top-level message"""
    reply = service.send_reply(tenant_id, conversation_id, message_id, membership, reply_data)
    background_tasks.add_task(notifier.notify_message_sent, reply.model_dump(mode="json"), membership)
    return reply


@router.get("/messages/search", response_model=List[MessageResponse])
async def search_messages(
    tenant_id: str,
    q: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=200),
    membership: Dict = Depends(get_current_membership),
    service: MessageService = Depends(get_message_service),
):
    """Search message content across the caller's conversations"""
    return service.search_messages(tenant_id, membership, q, limit=limit)


@router.get("/messages/{message_id}/exclusions", response_model=List[ExclusionResponse])
async def list_exclusions(
    tenant_id: str,
    message_id: str,
    user_data: Dict = Depends(get_current_user_id),
    memberships: MembershipService = Depends(get_membership_service),
    service: MessageService = Depends(get_message_service),
):
    """Excluded members of an Event Chat message; empty for anyone but the sender"""
    membership = memberships.get_active_membership(user_data["id"], tenant_id)
    return service.list_exclusions(tenant_id, message_id, membership)
