from fastapi import APIRouter, Depends
from rosta.database.supabase_client import get_supabase
from rosta.modules.auth.schemas import CurrentUserResponse
from rosta.modules.auth.service import AuthService
from rosta.core.dependencies import get_current_user_id
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    service: AuthService = Depends(get_auth_service),
):
    """Get current authenticated user and their hierarchy level in each organisation (for frontend UI)."""
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        user_metadata=current_user.get("user_metadata") or {},
        memberships=service.get_memberships(current_user["id"])
    )
