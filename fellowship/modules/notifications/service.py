import logging
from datetime import datetime, timezone
from postgrest.exceptions import APIError
from supabase import Client
from fellowship.core.exceptions import DependencyFailure, ValidationError
from fellowship.modules.notifications.schemas import DeviceTokenRegister, DeviceTokenResponse

logger = logging.getLogger(__name__)


class DeviceTokenService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def register(self, user_id: str, tenant_id: str, token_data: DeviceTokenRegister) -> DeviceTokenResponse:
        """Register (or re-claim) a push token for the caller in one church"""
        token = token_data.token.strip()
        if not token:
            raise ValidationError("device token cannot be empty")
        try:
            result = self.supabase.table("device_tokens").upsert({
                "user_id": user_id,
                "tenant_id": tenant_id,
                "token": token,
                "platform": token_data.platform.value,
                "last_used_at": datetime.now(timezone.utc).isoformat(),
            }, on_conflict="tenant_id,token").execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to register device token: {e.message}")
        if not result.data:
            raise DependencyFailure("Failed to register device token")
        return DeviceTokenResponse(**result.data[0])

    def unregister(self, user_id: str, tenant_id: str, token: str) -> int:
        """Remove a push token; only the owner's rows are touched"""
        try:
            result = self.supabase.table("device_tokens")\
                .delete()\
                .eq("user_id", user_id)\
                .eq("tenant_id", tenant_id)\
                .eq("token", token)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to remove device token: {e.message}")
        return len(result.data or [])
