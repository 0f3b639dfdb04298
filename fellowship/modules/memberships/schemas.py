from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from fellowship.config.permissions_config import MembershipRole, MembershipStatus


class MembershipResponse(BaseModel):
    id: str
    user_id: str
    tenant_id: str
    role: MembershipRole
    status: MembershipStatus
    small_group_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
