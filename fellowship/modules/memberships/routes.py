from fastapi import APIRouter, Depends
from fellowship.modules.memberships.schemas import MembershipResponse
from fellowship.modules.memberships.service import MembershipService
from fellowship.core.dependencies import get_current_user_id, get_membership_service, require_capability
from fellowship.config.permissions_config import get_capability_matrix
from typing import List, Dict

router = APIRouter(tags=["memberships"])


@router.get("/memberships", response_model=List[MembershipResponse])
async def list_my_memberships(
    user_data: Dict = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service)
):
    """List the caller's memberships in every church"""
    return service.list_user_memberships(user_data["id"])


@router.get("/tenants/{tenant_id}/members", response_model=List[MembershipResponse])
async def list_members(
    tenant_id: str,
    membership: Dict = Depends(require_capability("members:read")),
    service: MembershipService = Depends(get_membership_service)
):
    """List active members of a church (caller must be an active member)"""
    return service.list_tenant_members(tenant_id)


@router.get("/capabilities")
async def capability_matrix(user_data: Dict = Depends(get_current_user_id)):
    """Which role holds which capability (for frontend UI)"""
    return get_capability_matrix()
