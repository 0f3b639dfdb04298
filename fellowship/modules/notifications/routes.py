from fastapi import APIRouter, Depends
from fellowship.database.supabase_client import get_service_supabase
from fellowship.modules.notifications.schemas import DeviceTokenRegister, DeviceTokenResponse
from fellowship.modules.notifications.service import DeviceTokenService
from fellowship.core.dependencies import get_current_membership
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/tenants/{tenant_id}/device-tokens", tags=["notifications"])


def get_device_token_service(supabase: Client = Depends(get_service_supabase)) -> DeviceTokenService:
    return DeviceTokenService(supabase)


@router.post("", response_model=DeviceTokenResponse, status_code=201)
async def register_device_token(
    tenant_id: str,
    token_data: DeviceTokenRegister,
    membership: Dict = Depends(get_current_membership),
    service: DeviceTokenService = Depends(get_device_token_service)
):
    """Register a push token for the caller in this church"""
    return service.register(membership["user_id"], tenant_id, token_data)


@router.delete("/{token}", status_code=204)
async def unregister_device_token(
    tenant_id: str,
    token: str,
    membership: Dict = Depends(get_current_membership),
    service: DeviceTokenService = Depends(get_device_token_service)
):
    """Remove one of the caller's push tokens"""
    service.unregister(membership["user_id"], tenant_id, token)
    return None
