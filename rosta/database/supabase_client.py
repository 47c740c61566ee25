"""
Data service clients.

The anon client serves reads made on behalf of a request. The service-role
client carries the hierarchy writes and audit rows, which the rank checks gate
before anything reaches it. Without a service-role key the admin client falls
back to the anon one and team_members writes then run under RLS.
"""

import logging
from typing import Dict, Optional

from supabase import create_client, Client
from rosta.config import settings

logger = logging.getLogger(__name__)

ANON = "anon"
SERVICE_ROLE = "service_role"


class SupabaseClient:
    _clients: Dict[str, Client] = {}

    @classmethod
    def _key_for(cls, role: str) -> Optional[str]:
        if role == SERVICE_ROLE:
            return settings.supabase_service_role_key or None
        return settings.supabase_key or None

    @classmethod
    def _create(cls, role: str) -> Client:
        key = cls._key_for(role)
        if not settings.supabase_url or not key:
            raise RuntimeError(f"Supabase {role} client is not configured: set SUPABASE_URL and the {role} key")
        logger.info("Creating Supabase %s client", role)
        return create_client(settings.supabase_url, key)

    @classmethod
    def get_client(cls) -> Client:
        if ANON not in cls._clients:
            cls._clients[ANON] = cls._create(ANON)
        return cls._clients[ANON]

    @classmethod
    def get_admin_client(cls) -> Client:
        if SERVICE_ROLE not in cls._clients:
            if cls.has_service_role():
                cls._clients[SERVICE_ROLE] = cls._create(SERVICE_ROLE)
            else:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; hierarchy writes will go through the anon client")
                cls._clients[SERVICE_ROLE] = cls.get_client()
        return cls._clients[SERVICE_ROLE]

    @classmethod
    def has_service_role(cls) -> bool:
        return bool(settings.supabase_service_role_key)

    @classmethod
    def status(cls) -> Dict[str, bool]:
        """Configuration flags for the readiness endpoint. Nothing is contacted."""
        return {
            "supabase_configured": bool(settings.supabase_url and settings.supabase_key),
            "service_role_configured": cls.has_service_role()
        }

    @classmethod
    def reset_client(cls):
        cls._clients.clear()


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_supabase_admin() -> Client:
    """Service-role client. Only for writes already authorised by the hierarchy checks."""
    return SupabaseClient.get_admin_client()
