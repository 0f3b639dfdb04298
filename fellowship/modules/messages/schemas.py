from enum import Enum
from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime


class ContentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"


class MessageCreate(BaseModel):
    content: str
    content_type: ContentType = ContentType.TEXT
    # Event Chat: members who must not see this message
    excluded_membership_ids: Optional[List[str]] = None
    mentioned_membership_ids: Optional[List[str]] = None
    quoted_message_id: Optional[str] = None


class ReplyCreate(BaseModel):
    content: str
    content_type: ContentType = ContentType.TEXT


class MessageResponse(BaseModel):
    id: str
    tenant_id: str
    conversation_id: str
    sender_id: Optional[str] = None
    parent_id: Optional[str] = None
    quoted_message_id: Optional[str] = None
    content: Optional[str] = None
    content_type: str
    is_event_chat: bool = False
    reply_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageCountResponse(BaseModel):
    count: int


class ExclusionResponse(BaseModel):
    message_id: str
    excluded_membership_id: str
    created_at: Optional[datetime] = None
