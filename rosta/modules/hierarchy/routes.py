from fastapi import APIRouter, Depends
from rosta.config.hierarchy_config import HIERARCHY_RULES, RULES_MATRIX
from rosta.modules.hierarchy.levels import (
    HIERARCHY_ORDER,
    allowed_assignable_levels,
    allowed_subordinate_levels,
    can_act_on,
    level_or_default,
    rank_of,
)
from rosta.modules.hierarchy.schemas import (
    LevelInfo, LevelRulesResponse, LevelSetResponse, CanActResponse,
    HierarchyLevelUpdate, HierarchyUpdateResponse, TeamHierarchyResponse,
    MyHierarchyResponse, PermissionCheckResponse,
    InviteAuthorizeRequest, InviteAuthorizeResponse
)
from rosta.modules.hierarchy.service import HierarchyService
from rosta.core.dependencies import get_current_user_id, get_hierarchy_service, get_org_actor
from typing import Dict, List

router = APIRouter(tags=["hierarchy"])


@router.get("/hierarchy/levels", response_model=List[LevelInfo])
async def list_levels():
    """All hierarchy levels, most senior first"""
    return [
        LevelInfo(level=level.value, rank=rank, description=HIERARCHY_RULES[level.value]["description"])
        for rank, level in enumerate(HIERARCHY_ORDER)
    ]


@router.get("/hierarchy/rules", response_model=List[LevelRulesResponse])
async def list_rules():
    """Invite, rota and venue rules per level, with default permission flags"""
    return RULES_MATRIX


@router.get("/hierarchy/levels/{level}/subordinates", response_model=LevelSetResponse)
async def get_subordinate_levels(level: str):
    """Levels strictly below the given one. Unknown levels are treated as worker."""
    return LevelSetResponse(
        level=level_or_default(level).value,
        rank=rank_of(level),
        levels=[l.value for l in allowed_subordinate_levels(level)]
    )


@router.get("/hierarchy/levels/{level}/assignable", response_model=LevelSetResponse)
async def get_assignable_levels(level: str):
    """Levels the given level may assign to others (never employer)"""
    return LevelSetResponse(
        level=level_or_default(level).value,
        rank=rank_of(level),
        levels=[l.value for l in allowed_assignable_levels(level)]
    )


@router.get("/hierarchy/can-act", response_model=CanActResponse)
async def check_can_act(actor: str, target: str):
    """Whether the actor level may edit, promote or assign the target level"""
    return CanActResponse(
        actor=actor,
        target=target,
        actor_rank=rank_of(actor),
        target_rank=rank_of(target),
        allowed=can_act_on(actor, target)
    )


@router.get("/organisations/{organisation_id}/hierarchy", response_model=TeamHierarchyResponse)
async def get_team_hierarchy(
    organisation_id: str,
    actor: Dict = Depends(get_org_actor),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """Team members grouped by level (members only)"""
    return service.get_team_hierarchy(organisation_id)


@router.get("/organisations/{organisation_id}/hierarchy/me", response_model=MyHierarchyResponse)
async def get_my_hierarchy(
    organisation_id: str,
    actor: Dict = Depends(get_org_actor),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """Caller's level plus the levels they may act on, assign and invite (for selection controls)"""
    return service.get_my_hierarchy(actor["user"]["id"], organisation_id, actor)


@router.get("/organisations/{organisation_id}/permissions/{action}", response_model=PermissionCheckResponse)
async def check_permission(
    organisation_id: str,
    action: str,
    user_data: Dict = Depends(get_current_user_id),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """Whether the caller holds a permission flag (e.g. can_edit_rota) in the organisation"""
    return PermissionCheckResponse(
        organisation_id=organisation_id,
        action=action,
        allowed=service.check_permission(user_data["id"], organisation_id, action)
    )


@router.post("/organisations/{organisation_id}/invites/authorize", response_model=InviteAuthorizeResponse)
async def authorize_invite(
    organisation_id: str,
    invite: InviteAuthorizeRequest,
    actor: Dict = Depends(get_org_actor),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """Check whether the caller may invite someone at the given level (403 if not)"""
    return service.authorize_invite(actor["user"]["id"], organisation_id, invite.hierarchy_level, actor)


@router.patch("/team-members/{member_id}/hierarchy", response_model=HierarchyUpdateResponse)
async def update_hierarchy_level(
    member_id: str,
    update: HierarchyLevelUpdate,
    user_data: Dict = Depends(get_current_user_id),
    service: HierarchyService = Depends(get_hierarchy_service)
):
    """Change a member's level and venue scope (caller must outrank both the current and new level)"""
    return service.update_hierarchy_level(user_data["id"], member_id, update.hierarchy_level, update.venue_ids)
