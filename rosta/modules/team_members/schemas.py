from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from rosta.modules.hierarchy.levels import HierarchyLevel


class TeamMemberResponse(BaseModel):
    id: str
    user_id: Optional[str] = None
    organisation_id: str
    hierarchy_level: str
    rank: int
    full_name: Optional[str] = None
    status: Optional[str] = None
    primary_venue_id: Optional[str] = None
    member_type: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None
    roles: List[Dict[str, Any]] = []
    venues: List[Dict[str, Any]] = []


class TeamMemberUpdate(BaseModel):
    full_name: Optional[str] = None
    hierarchy_level: Optional[HierarchyLevel] = None
    status: Optional[str] = None
    primary_venue_id: Optional[str] = None
    role_ids: Optional[List[str]] = None
    venue_ids: Optional[List[str]] = None


class TeamMemberUpdateResponse(BaseModel):
    success: bool = True
    member_id: str
    audit_entries: int
    change: Optional[str] = None
    message: str
