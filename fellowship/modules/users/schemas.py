from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime


class UserUpdate(BaseModel):
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    locale: Optional[Literal["en", "ko"]] = None


class UserResponse(BaseModel):
    id: str
    display_name: Optional[str] = None
    photo_url: Optional[str] = None
    locale: str = "en"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
