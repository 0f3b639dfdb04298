from pydantic import BaseModel, EmailStr
from typing import Literal, Optional, List


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None
    locale: Literal["en", "ko"] = "en"


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class MeMembership(BaseModel):
    id: str
    tenant_id: str
    role: str
    status: str
    capabilities: List[str]


class MeResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: dict = {}
    memberships: List[MeMembership] = []
