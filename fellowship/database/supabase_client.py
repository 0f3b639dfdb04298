import logging
from typing import Optional

from supabase import create_client, Client
from fellowship.config import settings

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Process-wide Supabase clients, created on first use."""

    _anon: Optional[Client] = None
    _service: Optional[Client] = None

    @classmethod
    def anon(cls) -> Client:
        if cls._anon is None:
            cls._anon = create_client(settings.supabase_url, settings.supabase_key)
        return cls._anon

    @classmethod
    def service(cls) -> Client:
        """service_role client. Tenant, access and visibility checks happen in the services."""
        if cls._service is None:
            if not settings.supabase_service_role_key:
                # Admin calls (identity deletion) will fail without it
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; using the anon key for data access")
                return cls.anon()
            cls._service = create_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls._service

    @classmethod
    def reset(cls):
        cls._anon = None
        cls._service = None


def get_supabase() -> Client:
    return SupabaseClient.anon()


def get_service_supabase() -> Client:
    return SupabaseClient.service()
