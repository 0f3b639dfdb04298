from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class AttachmentResponse(BaseModel):
    id: str
    tenant_id: str
    message_id: Optional[str] = None
    conversation_id: Optional[str] = None
    url: str
    file_name: str
    file_type: str
    file_size: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
