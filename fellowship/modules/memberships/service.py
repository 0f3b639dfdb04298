import logging
from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Dict, Iterable, List, Optional, Set

from fellowship.config.permissions_config import MembershipStatus, has_capability
from fellowship.core.exceptions import AuthorizationError, DependencyFailure
from fellowship.modules.memberships.schemas import MembershipResponse

logger = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_active_membership(self, user_id: str, tenant_id: str) -> Optional[Dict[str, Any]]:
        """Return the caller's active membership row in a tenant, or None"""
        try:
            result = self.supabase.table("memberships")\
                .select("*")\
                .eq("user_id", user_id)\
                .eq("tenant_id", tenant_id)\
                .eq("status", MembershipStatus.ACTIVE.value)\
                .limit(1)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to load membership: {e.message}")
        return result.data[0] if result.data else None

    def require_active_membership(self, user_id: str, tenant_id: str) -> Dict[str, Any]:
        membership = self.get_active_membership(user_id, tenant_id)
        if membership is None:
            raise AuthorizationError("You are not an active member of this church")
        return membership

    def require_capability(self, membership: Dict[str, Any], capability: str) -> Dict[str, Any]:
        if not has_capability(membership.get("role"), capability, membership.get("status")):
            raise AuthorizationError(f"Insufficient permissions. Required: {capability}")
        return membership

    def list_user_memberships(self, user_id: str) -> List[MembershipResponse]:
        """All memberships of a user across tenants"""
        try:
            result = self.supabase.table("memberships")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at")\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list memberships: {e.message}")
        return [MembershipResponse(**m) for m in result.data or []]

    def list_tenant_members(self, tenant_id: str, status: Optional[MembershipStatus] = MembershipStatus.ACTIVE) -> List[MembershipResponse]:
        try:
            query = self.supabase.table("memberships")\
                .select("*")\
                .eq("tenant_id", tenant_id)
            if status is not None:
                query = query.eq("status", status.value)
            result = query.order("created_at").execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to list members: {e.message}")
        return [MembershipResponse(**m) for m in result.data or []]

    def active_membership_ids(self, tenant_id: str, membership_ids: Iterable[str]) -> Set[str]:
        """Subset of membership_ids that are active members of tenant_id"""
        ids = list(membership_ids)
        if not ids:
            return set()
        try:
            result = self.supabase.table("memberships")\
                .select("id")\
                .eq("tenant_id", tenant_id)\
                .eq("status", MembershipStatus.ACTIVE.value)\
                .in_("id", ids)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to verify memberships: {e.message}")
        return {m["id"] for m in result.data or []}
