import hashlib
import logging
import time
from supabase import Client
from rosta.modules.auth.schemas import MembershipResponse
from rosta.modules.hierarchy.levels import HierarchyLevel, level_or_default, rank_of
from fastapi import HTTPException
from typing import Dict, Any, List

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            logger.warning(f"Token validation failed: {error_msg}")
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def get_memberships(self, user_id: str) -> List[MembershipResponse]:
        """Organisations the user belongs to, with their level in each. Owned organisations count as employer."""
        try:
            owned = self.supabase.table("organisations")\
                .select("id")\
                .eq("owner_id", user_id)\
                .execute()
            members = self.supabase.table("team_members")\
                .select("id, organisation_id, hierarchy_level")\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error loading memberships for {user_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load memberships")

        owned_ids = {org["id"] for org in (owned.data or [])}
        memberships = []
        seen = set()
        for member in members.data or []:
            org_id = member["organisation_id"]
            is_owner = org_id in owned_ids
            level = HierarchyLevel.EMPLOYER if is_owner else level_or_default(member.get("hierarchy_level"))
            memberships.append(MembershipResponse(
                team_member_id=member["id"],
                organisation_id=org_id,
                hierarchy_level=level.value,
                rank=rank_of(level),
                is_owner=is_owner
            ))
            seen.add(org_id)
        for org_id in sorted(owned_ids - seen):
            memberships.append(MembershipResponse(
                organisation_id=org_id,
                hierarchy_level=HierarchyLevel.EMPLOYER.value,
                rank=rank_of(HierarchyLevel.EMPLOYER),
                is_owner=True
            ))
        return memberships
