from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from rosta.modules.hierarchy.levels import HierarchyLevel


class LevelInfo(BaseModel):
    level: str
    rank: int
    description: str


class LevelRulesResponse(BaseModel):
    level: str
    rank: int
    description: str
    can_invite: List[str]
    can_edit_rota: str
    can_manage_venue: str
    default_permissions: Dict[str, bool]


class LevelSetResponse(BaseModel):
    level: str
    rank: int
    levels: List[str]


class CanActResponse(BaseModel):
    actor: str
    target: str
    actor_rank: int
    target_rank: int
    allowed: bool


class HierarchyLevelUpdate(BaseModel):
    hierarchy_level: HierarchyLevel
    venue_ids: List[str] = []


class HierarchyUpdateResponse(BaseModel):
    success: bool = True
    member_id: str
    old_level: str
    new_level: str
    change: str


class HierarchyGroup(BaseModel):
    level: str
    rank: int
    members: List[Dict[str, Any]]


class TeamHierarchyResponse(BaseModel):
    organisation_id: str
    total: int
    levels: List[HierarchyGroup]


class MyHierarchyResponse(BaseModel):
    organisation_id: str
    team_member_id: Optional[str] = None
    hierarchy_level: str
    rank: int
    is_owner: bool
    subordinate_levels: List[str]
    assignable_levels: List[str]
    invitable_levels: List[str]


class PermissionCheckResponse(BaseModel):
    organisation_id: str
    action: str
    allowed: bool


class InviteAuthorizeRequest(BaseModel):
    hierarchy_level: HierarchyLevel


class InviteAuthorizeResponse(BaseModel):
    allowed: bool = True
    inviter_level: str
    hierarchy_level: str
