from fastapi import APIRouter, Depends
from fellowship.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse,
    MeResponse, MeMembership
)
from fellowship.modules.auth.service import AuthService
from fellowship.modules.memberships.service import MembershipService
from fellowship.core.dependencies import get_auth_service, get_bearer_token, get_current_user_id, get_membership_service
from fellowship.config.permissions_config import capabilities_for
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_bearer_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    memberships: MembershipService = Depends(get_membership_service),
):
    """Get current authenticated user with memberships and their capabilities (for frontend UI)."""
    return MeResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        memberships=[
            MeMembership(
                id=m.id,
                tenant_id=m.tenant_id,
                role=m.role.value,
                status=m.status.value,
                capabilities=capabilities_for(m.role, m.status),
            )
            for m in memberships.list_user_memberships(current_user["id"])
        ],
    )
