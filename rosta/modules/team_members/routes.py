from fastapi import APIRouter, Depends
from rosta.database.supabase_client import get_supabase
from rosta.modules.team_members.schemas import (
    TeamMemberResponse, TeamMemberUpdate, TeamMemberUpdateResponse
)
from rosta.modules.team_members.service import TeamMemberService
from rosta.modules.hierarchy.levels import HierarchyLevel
from rosta.modules.hierarchy.service import HierarchyService
from rosta.core.dependencies import get_current_user_id, get_hierarchy_service, require_level
from supabase import Client
from typing import List, Dict

router = APIRouter(tags=["team-members"])


def get_team_member_service(
    supabase: Client = Depends(get_supabase),
    hierarchy: HierarchyService = Depends(get_hierarchy_service)
) -> TeamMemberService:
    return TeamMemberService(supabase, hierarchy)


@router.get("/organisations/{organisation_id}/team-members", response_model=List[TeamMemberResponse])
async def list_team_members(
    organisation_id: str,
    actor: Dict = Depends(require_level(HierarchyLevel.SHIFT_LEADER)),
    service: TeamMemberService = Depends(get_team_member_service)
):
    """List the organisation's team (shift_leader and above)"""
    return service.list_members(organisation_id)


@router.get("/team-members/{member_id}", response_model=TeamMemberResponse)
async def get_team_member(
    member_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamMemberService = Depends(get_team_member_service)
):
    """Get a team member (caller must belong to the same organisation)"""
    member = service.get_member(member_id)
    service.hierarchy.get_actor(user_data["id"], member.organisation_id)
    return member


@router.patch("/team-members/{member_id}", response_model=TeamMemberUpdateResponse)
async def update_team_member(
    member_id: str,
    changes: TeamMemberUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: TeamMemberService = Depends(get_team_member_service)
):
    """Update a team member below the caller's level"""
    return service.update_member(user_data["id"], member_id, changes)
