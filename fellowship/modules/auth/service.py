import hashlib
import logging
import time
from supabase import Client
from fellowship.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from fastapi import HTTPException
from typing import Dict, Any, Optional, Tuple

logger = logging.getLogger(__name__)


class TokenCache:
    """Short-lived map of token hash -> resolved user, so bursts of requests
    with one token hit the auth API once."""

    def __init__(self, ttl_seconds: int = 60, max_size: int = 500):
        self.ttl_seconds = ttl_seconds
        self.max_size = max_size
        self._entries: Dict[str, Tuple[Dict[str, Any], float]] = {}

    @staticmethod
    def _key(token: str) -> str:
        return hashlib.sha256(token.encode()).hexdigest()

    def get(self, token: str) -> Optional[Dict[str, Any]]:
        key = self._key(token)
        entry = self._entries.get(key)
        if entry is None:
            return None
        user_data, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return user_data

    def put(self, token: str, user_data: Dict[str, Any]) -> None:
        if len(self._entries) < self.max_size:
            self._entries[self._key(token)] = (user_data, time.monotonic() + self.ttl_seconds)

    def discard(self, token: str) -> None:
        self._entries.pop(self._key(token), None)

    def forget_user(self, user_id: str) -> None:
        stale = [k for k, (data, _) in self._entries.items() if data.get("id") == user_id]
        for key in stale:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()


token_cache = TokenCache()


class AuthService:
    def __init__(self, supabase: Client, admin: Optional[Client] = None):
        self.supabase = supabase
        # service_role client for auth.admin calls
        self.admin = admin or supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Sign up with Supabase Auth. The profile row is created by the auth.users trigger from metadata."""
        metadata = {"locale": register_data.locale}
        if register_data.display_name:
            metadata["display_name"] = register_data.display_name.strip()
        try:
            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {"data": metadata},
            })
        except Exception as e:
            if "already" in str(e).lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error("Sign-up failed for %s: %s", register_data.email, e)
            raise HTTPException(status_code=500, detail="Registration failed")

        if not auth_response.user:
            raise HTTPException(status_code=400, detail="Failed to register user")
        logger.info("Registered user %s", auth_response.user.id)
        return RegisterResponse(
            user_id=auth_response.user.id,
            email=auth_response.user.email or register_data.email,
            message="User registered successfully",
        )

    def login(self, login_data: LoginRequest) -> TokenResponse:
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })
        except Exception as e:
            message = str(e).lower()
            if "invalid" in message or "credentials" in message:
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error("Sign-in failed: %s", e)
            raise HTTPException(status_code=500, detail="Login failed")

        if not auth_response.user or not auth_response.session:
            raise HTTPException(status_code=401, detail="Invalid email or password")
        return TokenResponse(
            access_token=auth_response.session.access_token,
            user_id=auth_response.user.id,
            email=auth_response.user.email or login_data.email,
        )

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve a bearer token to the auth user. Any failure is a 401."""
        cached = token_cache.get(token)
        if cached is not None:
            return cached
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            logger.info("Token rejected by auth API: %s", e)
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        user = user_response.user if user_response else None
        if user is None:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
        }
        token_cache.put(token, user_data)
        return user_data

    def logout(self, token: str) -> bool:
        token_cache.discard(token)
        try:
            # JWTs stay valid until expiry; this only ends the server-side session
            self.supabase.auth.sign_out()
        except Exception as e:
            logger.warning("Sign-out failed: %s", e)
            return False
        return True

    def delete_identity(self, user_id: str) -> bool:
        """Delete the auth.users record via the admin API; public.users goes with it"""
        try:
            self.admin.auth.admin.delete_user(user_id)
        except Exception as e:
            logger.error("Failed to delete auth user %s: %s", user_id, e)
            return False
        token_cache.forget_user(user_id)
        logger.info("Deleted auth user %s", user_id)
        return True
