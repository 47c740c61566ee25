"""
Core dependencies for route protection and hierarchy checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from rosta.database.supabase_client import get_supabase, get_supabase_admin
from rosta.modules.auth.service import AuthService
from rosta.modules.hierarchy.levels import HierarchyLevel, is_at_least
from rosta.modules.hierarchy.service import HierarchyService
from supabase import Client
from typing import Any, Dict
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def _get_request_cache(request: Request) -> Dict[str, Any]:
    """Return request-scoped cache of resolved actors, keyed by organisation id."""
    if not hasattr(request.state, "actor_cache"):
        request.state.actor_cache = {}
    return request.state.actor_cache


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_hierarchy_service(
    supabase: Client = Depends(get_supabase),
    admin: Client = Depends(get_supabase_admin)
) -> HierarchyService:
    return HierarchyService(supabase, admin)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    token = credentials.credentials
    user_data = auth_service.get_current_user(token)
    return user_data


def get_org_actor(
    organisation_id: str,
    request: Request,
    user_data: dict = Depends(get_current_user_id),
    hierarchy: HierarchyService = Depends(get_hierarchy_service)
) -> Dict[str, Any]:
    """Resolve the caller's level in the organisation from the path. 403 if not a member."""
    cache = _get_request_cache(request)
    if organisation_id not in cache:
        actor = hierarchy.get_actor(user_data["id"], organisation_id)
        cache[organisation_id] = {**actor, "user": user_data}
    return cache[organisation_id]


def require_level(required_level: HierarchyLevel):
    """Factory for a dependency that requires at least the given level in the path's organisation"""
    def check_level(actor: Dict[str, Any] = Depends(get_org_actor)) -> Dict[str, Any]:
        if not is_at_least(actor["level"], required_level):
            logger.warning(
                "Level check failed: user %s is %s, needs %s",
                actor["user"]["id"], actor["level"].value, required_level.value
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Insufficient level. Required: {required_level.value}"
            )
        return actor
    return check_level
