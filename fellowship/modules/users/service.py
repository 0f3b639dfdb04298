from datetime import datetime, timezone
from postgrest.exceptions import APIError
from supabase import Client
from fellowship.core.exceptions import DependencyFailure, NotFoundError
from fellowship.modules.users.schemas import UserUpdate, UserResponse


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_user_by_id(self, user_id: str) -> UserResponse:
        """Get user profile by ID"""
        try:
            result = self.supabase.table("users")\
                .select("*")\
                .eq("id", user_id)\
                .limit(1)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to load profile: {e.message}")

        if not result.data:
            raise NotFoundError("User not found")

        return UserResponse(**result.data[0])

    def update_user(self, user_id: str, user_data: UserUpdate) -> UserResponse:
        """Update user profile"""
        update_data = {"updated_at": datetime.now(timezone.utc).isoformat()}
        if user_data.display_name is not None:
            update_data["display_name"] = user_data.display_name.strip() or None
        if user_data.photo_url is not None:
            update_data["photo_url"] = user_data.photo_url or None
        if user_data.locale is not None:
            update_data["locale"] = user_data.locale

        try:
            result = self.supabase.table("users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except APIError as e:
            raise DependencyFailure(f"Failed to update profile: {e.message}")

        if not result.data:
            raise NotFoundError("User not found")

        return UserResponse(**result.data[0])
