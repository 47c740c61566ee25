import logging
from datetime import datetime, timezone
from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, List, Optional, Tuple

from rosta.config.hierarchy_config import PERMISSION_FLAGS, default_permissions
from rosta.modules.hierarchy.levels import (
    HIERARCHY_ORDER,
    HierarchyLevel,
    LevelLike,
    allowed_assignable_levels,
    allowed_subordinate_levels,
    can_act_on,
    can_invite,
    change_direction,
    invitable_levels,
    level_or_default,
    rank_of,
)
from rosta.modules.hierarchy.schemas import (
    HierarchyGroup,
    HierarchyUpdateResponse,
    InviteAuthorizeResponse,
    MyHierarchyResponse,
    TeamHierarchyResponse,
)

logger = logging.getLogger(__name__)


def _first(result) -> Optional[Dict[str, Any]]:
    if result is None or not result.data:
        return None
    return result.data[0]


def member_type_for(level: LevelLike) -> str:
    return "employee" if level_or_default(level) == HierarchyLevel.WORKER else "manager"


class HierarchyService:
    """
    Hierarchy checks around the data service.

    Lookups and writes use the admin client: RLS on team_members hides rows
    above the caller, so the rank checks here gate every write instead.
    """

    def __init__(self, supabase: Client, admin: Optional[Client] = None):
        self.supabase = supabase
        self.admin = admin or supabase

    def get_organisation(self, organisation_id: str) -> Dict[str, Any]:
        try:
            result = self.admin.table("organisations")\
                .select("id, owner_id, name")\
                .eq("id", organisation_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to fetch organisation {organisation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch organisation")
        org = _first(result)
        if not org:
            raise HTTPException(status_code=404, detail="Organisation not found")
        return org

    def get_actor(self, actor_id: str, organisation_id: str) -> Dict[str, Any]:
        """
        Resolve the actor's level in an organisation.
        The owner is always employer, whatever their team_members row says.
        Returns {"level", "is_owner", "member"}.
        """
        org = self.get_organisation(organisation_id)
        try:
            result = self.admin.table("team_members")\
                .select("id, user_id, organisation_id, hierarchy_level, can_invite_managers, venue_scope")\
                .eq("organisation_id", organisation_id)\
                .eq("user_id", actor_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to fetch actor membership: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch actor membership")
        member = _first(result)

        if org.get("owner_id") == actor_id:
            return {"level": HierarchyLevel.EMPLOYER, "is_owner": True, "member": member}
        if not member:
            raise HTTPException(status_code=403, detail="You are not a member of this organisation")
        return {
            "level": level_or_default(member.get("hierarchy_level")),
            "is_owner": False,
            "member": member
        }

    def get_actor_level(self, actor_id: str, organisation_id: str) -> Tuple[HierarchyLevel, bool]:
        actor = self.get_actor(actor_id, organisation_id)
        return actor["level"], actor["is_owner"]

    def get_target_member(self, member_id: str) -> Dict[str, Any]:
        try:
            result = self.admin.table("team_members")\
                .select("id, user_id, organisation_id, hierarchy_level, full_name, status, primary_venue_id")\
                .eq("id", member_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to fetch team member {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch team member")
        member = _first(result)
        if not member:
            raise HTTPException(status_code=404, detail="Team member not found")
        return member

    def authorize_level_change(
        self,
        actor_level: LevelLike,
        current_level: LevelLike,
        requested_level: LevelLike = None
    ) -> None:
        """Raise 403 unless the actor outranks both the target's current level and the requested one."""
        actor = level_or_default(actor_level)
        current = level_or_default(current_level)
        if not can_act_on(actor, current):
            logger.warning("Hierarchy denied: %s cannot modify %s", actor.value, current.value)
            raise HTTPException(
                status_code=403,
                detail=f"Permission denied: {actor.value} cannot modify {current.value}"
            )
        if requested_level is not None and not can_act_on(actor, requested_level):
            requested = level_or_default(requested_level)
            logger.warning("Hierarchy denied: %s cannot assign %s", actor.value, requested.value)
            raise HTTPException(
                status_code=403,
                detail=f"Cannot promote to {requested.value}: would exceed your authority as {actor.value}"
            )

    def write_audit(
        self,
        organisation_id: str,
        actor_id: str,
        record_id: str,
        old_data: Dict[str, Any],
        new_data: Dict[str, Any],
        table_name: str = "team_members"
    ) -> bool:
        """Insert one audit row. Failures are logged, never raised."""
        try:
            self.admin.table("organisation_audit_logs").insert({
                "organisation_id": organisation_id,
                "user_id": actor_id,
                "table_name": table_name,
                "record_id": record_id,
                "action": "UPDATE",
                "old_data": old_data,
                "new_data": new_data
            }).execute()
            return True
        except Exception as e:
            logger.error(f"Audit log failed for {table_name}/{record_id}: {e}")
            return False

    def update_hierarchy_level(
        self,
        actor_id: str,
        member_id: str,
        new_level: HierarchyLevel,
        venue_ids: Optional[List[str]] = None
    ) -> HierarchyUpdateResponse:
        """Change a member's level and venue scope. Only strictly senior actors may do this."""
        target = self.get_target_member(member_id)
        organisation_id = target["organisation_id"]
        actor_level, _ = self.get_actor_level(actor_id, organisation_id)
        current_level = level_or_default(target.get("hierarchy_level"))

        self.authorize_level_change(actor_level, current_level, new_level)

        new_level = level_or_default(new_level)
        try:
            self.admin.table("team_members")\
                .update({
                    "hierarchy_level": new_level.value,
                    "venue_scope": venue_ids or None,
                    "member_type": member_type_for(new_level),
                    "updated_at": datetime.now(timezone.utc).isoformat()
                })\
                .eq("id", member_id)\
                .execute()
        except Exception as e:
            logger.error(f"Hierarchy update failed for {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update hierarchy level")

        change = change_direction(current_level, new_level)
        self.write_audit(
            organisation_id,
            actor_id,
            member_id,
            {"hierarchy_level": current_level.value},
            {"hierarchy_level": new_level.value, "venue_scope": venue_ids or None}
        )
        logger.info(
            "Member %s %s from %s to %s by %s",
            member_id, change, current_level.value, new_level.value, actor_id
        )
        return HierarchyUpdateResponse(
            member_id=member_id,
            old_level=current_level.value,
            new_level=new_level.value,
            change=change
        )

    def get_team_hierarchy(self, organisation_id: str) -> TeamHierarchyResponse:
        """All members of an organisation grouped by level, most senior first."""
        try:
            result = self.admin.table("team_members")\
                .select("id, user_id, organisation_id, hierarchy_level, full_name, status")\
                .eq("organisation_id", organisation_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load team hierarchy for {organisation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to load team hierarchy")

        members = result.data or []
        grouped: Dict[HierarchyLevel, List[Dict[str, Any]]] = {level: [] for level in HIERARCHY_ORDER}
        for member in members:
            grouped[level_or_default(member.get("hierarchy_level"))].append(member)

        return TeamHierarchyResponse(
            organisation_id=organisation_id,
            total=len(members),
            levels=[
                HierarchyGroup(level=level.value, rank=rank_of(level), members=grouped[level])
                for level in HIERARCHY_ORDER
            ]
        )

    def get_my_hierarchy(
        self, user_id: str, organisation_id: str, actor: Optional[Dict[str, Any]] = None
    ) -> MyHierarchyResponse:
        """Optional actor dict (from get_actor) avoids a second lookup."""
        if actor is None:
            actor = self.get_actor(user_id, organisation_id)
        level = actor["level"]
        member = actor["member"] or {}
        return MyHierarchyResponse(
            organisation_id=organisation_id,
            team_member_id=member.get("id"),
            hierarchy_level=level.value,
            rank=rank_of(level),
            is_owner=actor["is_owner"],
            subordinate_levels=[l.value for l in allowed_subordinate_levels(level)],
            assignable_levels=[l.value for l in allowed_assignable_levels(level)],
            invitable_levels=[l.value for l in invitable_levels(level)]
        )

    def check_permission(self, user_id: str, organisation_id: str, action: str) -> bool:
        """
        Whether a user holds a permission flag in an organisation.
        An explicit permissions row granting the flag wins; otherwise the level default applies.
        """
        if action not in PERMISSION_FLAGS:
            logger.warning("Unknown permission requested: %s", action)
            return False
        try:
            actor = self.get_actor(user_id, organisation_id)
        except HTTPException as e:
            if e.status_code in (403, 404):
                return False
            raise
        if actor["is_owner"]:
            return True

        member = actor["member"]
        try:
            result = self.admin.table("permissions")\
                .select("*")\
                .eq("team_member_id", member["id"])\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to load permissions for member {member['id']}: {e}")
            result = None
        explicit = _first(result)
        if explicit and explicit.get(action):
            return True
        return default_permissions(actor["level"].value)[action]

    def authorize_invite(
        self,
        actor_id: str,
        organisation_id: str,
        level: HierarchyLevel,
        actor: Optional[Dict[str, Any]] = None
    ) -> InviteAuthorizeResponse:
        if actor is None:
            actor = self.get_actor(actor_id, organisation_id)
        inviter_level = actor["level"]
        level = level_or_default(level)
        if not can_invite(inviter_level, level):
            logger.warning("Invite denied: %s cannot invite %s", inviter_level.value, level.value)
            raise HTTPException(
                status_code=403,
                detail=f"Your role ({inviter_level.value}) cannot invite {level.value}."
            )
        member = actor["member"] or {}
        if (
            level == HierarchyLevel.GM
            and inviter_level != HierarchyLevel.EMPLOYER
            and not member.get("can_invite_managers")
        ):
            raise HTTPException(status_code=403, detail="You do not have permission to invite managers.")
        return InviteAuthorizeResponse(inviter_level=inviter_level.value, hierarchy_level=level.value)
