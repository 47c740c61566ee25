import logging
from datetime import datetime, timezone
from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, List

from rosta.modules.hierarchy.levels import change_direction, level_or_default, rank_of
from rosta.modules.hierarchy.service import HierarchyService, member_type_for
from rosta.modules.team_members.schemas import (
    TeamMemberResponse, TeamMemberUpdate, TeamMemberUpdateResponse
)

logger = logging.getLogger(__name__)

MEMBER_SELECT = """
    *,
    profile:profiles(full_name, email, worker_status),
    roles:team_member_roles(is_primary, role:roles(*)),
    venues:team_member_venues(is_primary, venue:venues(id, name))
"""

AUDITED_FIELDS = ("full_name", "hierarchy_level", "status", "primary_venue_id")


def _to_response(row: Dict[str, Any]) -> TeamMemberResponse:
    level = level_or_default(row.get("hierarchy_level"))
    return TeamMemberResponse(
        id=row["id"],
        user_id=row.get("user_id"),
        organisation_id=row["organisation_id"],
        hierarchy_level=level.value,
        rank=rank_of(level),
        full_name=row.get("full_name"),
        status=row.get("status"),
        primary_venue_id=row.get("primary_venue_id"),
        member_type=row.get("member_type"),
        profile=row.get("profile"),
        roles=[{**(r.get("role") or {}), "is_primary": r.get("is_primary", False)} for r in row.get("roles") or []],
        venues=[{**(v.get("venue") or {}), "is_primary": v.get("is_primary", False)} for v in row.get("venues") or []]
    )


class TeamMemberService:
    def __init__(self, supabase: Client, hierarchy: HierarchyService):
        self.supabase = supabase
        self.hierarchy = hierarchy

    def list_members(self, organisation_id: str) -> List[TeamMemberResponse]:
        """Members of an organisation with profile, job roles and venues, newest first"""
        try:
            result = self.supabase.table("team_members")\
                .select(MEMBER_SELECT)\
                .eq("organisation_id", organisation_id)\
                .order("created_at", desc=True)\
                .execute()
            return [_to_response(row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing team members for {organisation_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to list team members")

    def get_member(self, member_id: str) -> TeamMemberResponse:
        try:
            result = self.supabase.table("team_members")\
                .select(MEMBER_SELECT)\
                .eq("id", member_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Error fetching team member {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch team member")
        if not result.data:
            raise HTTPException(status_code=404, detail="Team member not found")
        return _to_response(result.data[0])

    def update_member(self, actor_id: str, member_id: str, changes: TeamMemberUpdate) -> TeamMemberUpdateResponse:
        """
        Partial update of a team member. The actor must outrank the member, and
        the requested level when one is given, even for non-level changes.
        Changed scalar fields are written to a single audit entry.
        """
        admin = self.hierarchy.admin
        target = self.hierarchy.get_target_member(member_id)
        organisation_id = target["organisation_id"]
        actor_level, _ = self.hierarchy.get_actor_level(actor_id, organisation_id)
        self.hierarchy.authorize_level_change(actor_level, target.get("hierarchy_level"), changes.hierarchy_level)

        requested = changes.model_dump(exclude_unset=True)
        # An explicit null level means "leave it as is"
        if requested.get("hierarchy_level") is None:
            requested.pop("hierarchy_level", None)
        else:
            requested["hierarchy_level"] = level_or_default(requested["hierarchy_level"]).value
        if "full_name" in requested:
            requested["full_name"] = (requested["full_name"] or "").strip() or None

        old_data, new_data = {}, {}
        for field in AUDITED_FIELDS:
            if field in requested and requested[field] != target.get(field):
                old_data[field] = target.get(field)
                new_data[field] = requested[field]

        team_updates: Dict[str, Any] = {"updated_at": datetime.now(timezone.utc).isoformat()}
        for field in AUDITED_FIELDS:
            if field in requested:
                team_updates[field] = requested[field]
        if "hierarchy_level" in team_updates:
            team_updates["member_type"] = member_type_for(team_updates["hierarchy_level"])

        try:
            admin.table("team_members")\
                .update(team_updates)\
                .eq("id", member_id)\
                .execute()

            if target.get("user_id") and "full_name" in requested:
                admin.table("profiles")\
                    .update({"full_name": requested["full_name"]})\
                    .eq("id", target["user_id"])\
                    .execute()

            if changes.role_ids is not None:
                self._replace_roles(member_id, changes.role_ids)

            if changes.venue_ids is not None:
                primary_id = requested.get("primary_venue_id") or (changes.venue_ids[0] if changes.venue_ids else None)
                self._replace_venues(member_id, changes.venue_ids, primary_id)
        except Exception as e:
            logger.error(f"Team member update failed for {member_id}: {e}")
            raise HTTPException(status_code=500, detail=f"Team member update failed: {e}")

        if new_data:
            self.hierarchy.write_audit(organisation_id, actor_id, member_id, old_data, new_data)

        change = None
        if "hierarchy_level" in new_data:
            change = change_direction(old_data["hierarchy_level"], new_data["hierarchy_level"])
            logger.info("Member %s %s to %s by %s", member_id, change, new_data["hierarchy_level"], actor_id)

        name = requested.get("full_name") or target.get("full_name") or "member"
        return TeamMemberUpdateResponse(
            member_id=member_id,
            audit_entries=len(new_data),
            change=change,
            message=f"Updated {name} successfully"
        )

    def _replace_roles(self, member_id: str, role_ids: List[str]):
        self._replace_links("team_member_roles", member_id, [
            {"team_member_id": member_id, "role_id": role_id, "is_primary": idx == 0}
            for idx, role_id in enumerate(role_ids)
        ])

    def _replace_venues(self, member_id: str, venue_ids: List[str], primary_id):
        self._replace_links("team_member_venues", member_id, [
            {"team_member_id": member_id, "venue_id": venue_id, "is_primary": venue_id == primary_id}
            for venue_id in venue_ids
        ])

    def _replace_links(self, table: str, member_id: str, rows: List[Dict[str, Any]]):
        """
        Delete a member's rows in a link table, then insert the new set.
        The two writes are not atomic: if the insert fails, the rows read
        beforehand are put back and the original error is re-raised.
        """
        admin = self.hierarchy.admin
        try:
            previous = admin.table(table).select("*").eq("team_member_id", member_id).execute().data or []
        except Exception as e:
            logger.error(f"Reading {table} for {member_id} failed: {e}")
            raise
        try:
            admin.table(table).delete().eq("team_member_id", member_id).execute()
        except Exception as e:
            logger.error(f"Deleting {table} for {member_id} failed, links unchanged: {e}")
            raise
        if not rows:
            return
        try:
            admin.table(table).insert(rows).execute()
        except Exception as e:
            logger.error(f"Inserting {table} for {member_id} failed after delete: {e}")
            self._restore_links(table, member_id, previous)
            raise

    def _restore_links(self, table: str, member_id: str, previous: List[Dict[str, Any]]):
        if not previous:
            return
        admin = self.hierarchy.admin
        try:
            admin.table(table).insert(previous).execute()
            logger.warning(f"Restored {len(previous)} {table} rows for {member_id}")
        except Exception as e:
            lost = [row.get("id") for row in previous]
            logger.error(f"Could not restore {table} for {member_id}, lost rows {lost}: {e}")
