from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class MembershipResponse(BaseModel):
    team_member_id: Optional[str] = None
    organisation_id: str
    hierarchy_level: str
    rank: int
    is_owner: bool = False


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = {}
    memberships: List[MembershipResponse] = []
