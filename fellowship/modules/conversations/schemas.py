from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ConversationType(str, Enum):
    DIRECT = "direct"
    SMALL_GROUP = "small_group"
    MINISTRY = "ministry"
    CHURCH_WIDE = "church_wide"


class ConversationResponse(BaseModel):
    id: str
    tenant_id: str
    type: ConversationType
    name: Optional[str] = None
    small_group_id: Optional[str] = None
    ministry_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
