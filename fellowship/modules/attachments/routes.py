from fastapi import APIRouter, Depends, Query
from fellowship.database.supabase_client import get_service_supabase
from fellowship.modules.attachments.schemas import AttachmentResponse
from fellowship.modules.attachments.service import AttachmentService
from fellowship.core.dependencies import get_current_membership
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/tenants/{tenant_id}", tags=["attachments"])


def get_attachment_service(supabase: Client = Depends(get_service_supabase)) -> AttachmentService:
    return AttachmentService(supabase)


@router.get("/images", response_model=List[AttachmentResponse])
async def list_images(
    tenant_id: str,
    conversation_id: Optional[str] = None,
    limit: int = Query(30, ge=1, le=100),
    offset: int = Query(0, ge=0),
    membership: Dict = Depends(get_current_membership),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Image gallery across the caller's conversations, or one conversation"""
    return service.list_images(tenant_id, membership, conversation_id, limit=limit, offset=offset)


@router.get("/files", response_model=List[AttachmentResponse])
async def list_files(
    tenant_id: str,
    conversation_id: Optional[str] = None,
    limit: int = Query(30, ge=1, le=100),
    offset: int = Query(0, ge=0),
    membership: Dict = Depends(get_current_membership),
    service: AttachmentService = Depends(get_attachment_service)
):
    """Non-image attachments across the caller's conversations, or one conversation"""
    return service.list_files(tenant_id, membership, conversation_id, limit=limit, offset=offset)
