"""
Account deletion.

Removes every trace of a user in dependency order:

1. profile photos in storage (best effort)
2. device tokens (all tenants)
3. notifications (all tenants)
4. memberships, one at a time; the database cascades each into
   conversation participation, exclusions, mentions and ministry
   membership
5. the auth identity, last

The steps are sequential and not atomic. A failure in steps 2-4 halts the
sequence and reports what was removed so far; a failure in step 5 leaves a
data-less identity behind and is reported the same way.
"""

import logging
import re
from postgrest.exceptions import APIError
from supabase import Client
from typing import Any, Optional

from fellowship.config import settings
from fellowship.core.exceptions import DependencyFailure, ValidationError
from fellowship.modules.account.schemas import DeleteAccountResponse, DeletedCounts
from fellowship.modules.auth.service import AuthService

logger = logging.getLogger(__name__)

UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

OWN_ACCOUNT_ONLY = "you can only delete your own account"


def validate_user_id(user_id: Any) -> str:
    if user_id is None or user_id == "":
        raise ValidationError("Missing required field: user_id")
    if not isinstance(user_id, str) or not UUID_PATTERN.match(user_id):
        raise ValidationError("Invalid user_id format")
    return user_id


class AccountDeletionService:
    def __init__(self, supabase: Client, auth: AuthService):
        self.supabase = supabase
        self.auth = auth

    def authorize(self, user_id: str, authenticated_user_id: str) -> Optional[DeleteAccountResponse]:
        """Structured failure when the caller targets someone else's account, else None"""
        if user_id != authenticated_user_id:
            logger.warning("User %s attempted to delete account %s", authenticated_user_id, user_id)
            return DeleteAccountResponse(success=False, message=OWN_ACCOUNT_ONLY)
        return None

    def delete_account(self, user_id: str, authenticated_user_id: str) -> DeleteAccountResponse:
        denied = self.authorize(user_id, authenticated_user_id)
        if denied is not None:
            return denied

        counts = DeletedCounts()
        try:
            counts.profile_photo_deleted = self._delete_profile_photos(user_id)
            counts.device_tokens = self._delete_user_rows("device_tokens", user_id)
            counts.notifications = self._delete_user_rows("notifications", user_id)
            self._delete_memberships(user_id, counts)
        except DependencyFailure as e:
            logger.error("Account deletion for %s halted: %s (counts=%s)", user_id, e.message, counts.model_dump())
            return DeleteAccountResponse(
                success=False,
                message="Account deletion did not complete; some data may remain",
                deleted_counts=counts,
            )

        if not self.auth.delete_identity(user_id):
            return DeleteAccountResponse(
                success=False,
                message="Failed to delete auth user record",
                deleted_counts=counts,
            )

        logger.info("Deleted account %s (counts=%s)", user_id, counts.model_dump())
        return DeleteAccountResponse(
            success=True,
            message="Account deleted successfully",
            deleted_counts=counts,
        )

    def _delete_profile_photos(self, user_id: str) -> bool:
        """Remove every object under <user_id>/ in the profile photo bucket"""
        bucket = self.supabase.storage.from_(settings.profile_photos_bucket)
        folder = f"{user_id}/"
        deleted = False
        previous = None
        while True:
            try:
                files = bucket.list(folder, {"limit": settings.profile_photos_list_limit})
            except Exception as e:
                # Missing bucket or folder means there is nothing to delete
                logger.info("No profile photos listed for %s: %s", user_id, e)
                return deleted
            # Sub-folders are listed without an id
            paths = [f"{folder}{f['name']}" for f in files or [] if f.get("name") and f.get("id")]
            if not paths:
                return deleted
            if paths == previous:
                logger.warning("Profile photos for %s were listed again after removal; stopping", user_id)
                return deleted
            previous = paths
            try:
                removed = bucket.remove(paths)
            except Exception as e:
                logger.error("Failed to delete profile photos for %s: %s", user_id, e)
                return deleted
            if not removed:
                return deleted
            deleted = True
            logger.info("Deleted %d profile photo(s) for user %s", len(paths), user_id)
            if len(files) < settings.profile_photos_list_limit:
                return deleted

    def _delete_user_rows(self, table: str, user_id: str) -> int:
        try:
            result = self.supabase.table(table)\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to delete {table}: {e.message}")
        deleted = len(result.data or [])
        logger.info("Deleted %d %s row(s) for user %s", deleted, table, user_id)
        return deleted

    def _delete_memberships(self, user_id: str, counts: DeletedCounts) -> None:
        """Delete memberships one at a time so the count stays exact if one fails"""
        try:
            result = self.supabase.table("memberships")\
                .select("id, tenant_id")\
                .eq("user_id", user_id)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to fetch memberships: {e.message}")

        for membership in result.data or []:
            try:
                deleted = self.supabase.table("memberships")\
                    .delete()\
                    .eq("id", membership["id"])\
                    .execute()
            except APIError as e:
                raise DependencyFailure(f"Failed to delete membership {membership['id']}: {e.message}")
            if deleted.data:
                counts.memberships += 1
                logger.info("Deleted membership %s in tenant %s", membership["id"], membership["tenant_id"])
