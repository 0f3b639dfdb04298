"""
Core dependencies for route protection and tenant membership resolution
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from fellowship.database.supabase_client import get_supabase, get_service_supabase
from fellowship.modules.auth.service import AuthService
from fellowship.modules.memberships.service import MembershipService
from supabase import Client
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is a 401 rather than FastAPI's default
security = HTTPBearer(auto_error=False)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin: Client = Depends(get_service_supabase),
) -> AuthService:
    return AuthService(supabase, admin)


def get_membership_service(supabase: Client = Depends(get_service_supabase)) -> MembershipService:
    return MembershipService(supabase)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user_id(
    token: str = Depends(get_bearer_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Request-scoped cache so nested dependencies resolve the membership once."""
    if not hasattr(request.state, "membership_cache"):
        request.state.membership_cache = {}
    return request.state.membership_cache


def get_current_membership(
    tenant_id: str,
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    service: MembershipService = Depends(get_membership_service),
) -> Dict[str, Any]:
    """Active membership of the caller in the tenant named by the path"""
    cache = _get_request_cache(request)
    if tenant_id not in cache:
        cache[tenant_id] = service.require_active_membership(user_data["id"], tenant_id)
    return cache[tenant_id]


def require_capability(capability: str):
    """Factory function to create capability check dependency"""
    def check_capability(
        membership: Dict[str, Any] = Depends(get_current_membership),
        service: MembershipService = Depends(get_membership_service),
    ) -> Dict[str, Any]:
        return service.require_capability(membership, capability)
    return check_capability
