from pydantic import BaseModel
from typing import Any, Optional


class DeleteAccountRequest(BaseModel):
    # Untyped so a missing or non-string value is reported as 400 by the service, not 422
    user_id: Optional[Any] = None


class DeletedCounts(BaseModel):
    memberships: int = 0
    device_tokens: int = 0
    notifications: int = 0
    profile_photo_deleted: bool = False


class DeleteAccountResponse(BaseModel):
    success: bool
    message: str
    deleted_counts: DeletedCounts = DeletedCounts()
