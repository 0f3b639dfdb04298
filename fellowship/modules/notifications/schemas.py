from enum import Enum
from pydantic import BaseModel
from typing import Dict, List, Literal, Optional
from datetime import datetime


class DevicePlatform(str, Enum):
    IOS = "ios"
    ANDROID = "android"


class DeviceTokenRegister(BaseModel):
    token: str
    platform: DevicePlatform


class DeviceTokenResponse(BaseModel):
    id: str
    user_id: str
    tenant_id: str
    token: str
    platform: DevicePlatform
    last_used_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PushPayload(BaseModel):
    title: str
    body: str
    data: Dict[str, str]


class PushRecipients(BaseModel):
    user_ids: List[str]
    conversation_id: Optional[str] = None


class PushOptions(BaseModel):
    priority: Literal["normal", "high"] = "normal"
    sound: Optional[str] = None


class PushRequest(BaseModel):
    """Body accepted by the push gateway"""
    tenant_id: str
    notification_type: Literal["new_message", "mention"] = "new_message"
    recipients: PushRecipients
    payload: PushPayload
    options: Optional[PushOptions] = None


class FanOutResult(BaseModel):
    notified: int = 0
    requests: int = 0
    errors: List[str] = []
