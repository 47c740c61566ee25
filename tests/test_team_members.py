"""
Tests for team member listing and guarded updates.
"""

import logging

import pytest
from fastapi import HTTPException

from rosta.modules.hierarchy.service import HierarchyService
from rosta.modules.team_members.schemas import TeamMemberUpdate
from rosta.modules.team_members.service import TeamMemberService

API = "/api/v1"


@pytest.fixture
def service(db):
    return TeamMemberService(db, HierarchyService(db))


class TestListMembers:
    def test_shift_leader_can_list(self, client, auth):
        resp = client.get(f"{API}/organisations/org-1/team-members", headers=auth("user-sl"))
        assert resp.status_code == 200
        ids = [m["id"] for m in resp.json()]
        assert ids == ["tm-odd", "tm-worker", "tm-sl", "tm-agm", "tm-gm"]

    def test_unknown_level_is_reported_as_worker(self, client, auth):
        members = client.get(f"{API}/organisations/org-1/team-members", headers=auth("owner")).json()
        odd = next(m for m in members if m["id"] == "tm-odd")
        assert odd["hierarchy_level"] == "worker"
        assert odd["rank"] == 4

    def test_worker_cannot_list(self, client, auth):
        resp = client.get(f"{API}/organisations/org-1/team-members", headers=auth("user-worker"))
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Insufficient level. Required: shift_leader"

    def test_outsider_cannot_list(self, client, auth):
        resp = client.get(f"{API}/organisations/org-1/team-members", headers=auth("user-other"))
        assert resp.status_code == 403


class TestGetMember:
    def test_same_org_member(self, client, auth):
        resp = client.get(f"{API}/team-members/tm-gm", headers=auth("user-worker"))
        assert resp.status_code == 200
        assert resp.json()["hierarchy_level"] == "gm"

    def test_other_org_member_is_forbidden(self, client, auth):
        resp = client.get(f"{API}/team-members/tm-gm", headers=auth("user-other"))
        assert resp.status_code == 403

    def test_missing(self, client, auth):
        resp = client.get(f"{API}/team-members/tm-404", headers=auth("owner"))
        assert resp.status_code == 404


class TestUpdateMember:
    def test_updates_fields_and_audits_once(self, service, db):
        result = service.update_member("user-agm", "tm-worker", TeamMemberUpdate(
            full_name="  Sam Worker ",
            status="inactive",
            hierarchy_level="shift_leader",
        ))

        assert result.audit_entries == 3
        assert result.change == "promoted"
        assert result.message == "Updated Sam Worker successfully"
        row = db.row("team_members", "tm-worker")
        assert row["full_name"] == "Sam Worker"
        assert row["status"] == "inactive"
        assert row["hierarchy_level"] == "shift_leader"
        assert row["member_type"] == "manager"
        audit = db.rows("organisation_audit_logs")
        assert len(audit) == 1
        assert audit[0]["new_data"] == {
            "full_name": "Sam Worker", "hierarchy_level": "shift_leader", "status": "inactive"
        }

    def test_unchanged_values_are_not_audited(self, service, db):
        result = service.update_member("user-gm", "tm-sl", TeamMemberUpdate(status="active"))
        assert result.audit_entries == 0
        assert db.rows("organisation_audit_logs") == []

    def test_profile_name_follows_member_name(self, service, db):
        db.tables["profiles"] = [{"id": "user-worker", "full_name": "Old"}]
        service.update_member("user-sl", "tm-worker", TeamMemberUpdate(full_name="New"))
        assert db.row("profiles", "user-worker")["full_name"] == "New"

    def test_replaces_roles_and_venues(self, service, db):
        db.tables["team_member_roles"] = [{"id": "r0", "team_member_id": "tm-worker", "role_id": "old"}]
        service.update_member("owner", "tm-worker", TeamMemberUpdate(
            role_ids=["chef", "porter"],
            venue_ids=["v1", "v2"],
            primary_venue_id="v2",
        ))
        roles = db.rows("team_member_roles")
        assert [(r["role_id"], r["is_primary"]) for r in roles] == [("chef", True), ("porter", False)]
        venues = db.rows("team_member_venues")
        assert [(v["venue_id"], v["is_primary"]) for v in venues] == [("v1", False), ("v2", True)]

    def test_first_venue_is_primary_by_default(self, service, db):
        service.update_member("owner", "tm-worker", TeamMemberUpdate(venue_ids=["v1", "v2"]))
        venues = db.rows("team_member_venues")
        assert [v["is_primary"] for v in venues] == [True, False]

    def test_cannot_edit_peer_even_without_level_change(self, service):
        with pytest.raises(HTTPException) as exc:
            service.update_member("user-agm", "tm-agm", TeamMemberUpdate(full_name="Me"))
        assert exc.value.status_code == 403

    def test_cannot_promote_past_own_authority(self, service):
        with pytest.raises(HTTPException) as exc:
            service.update_member("user-gm", "tm-worker", TeamMemberUpdate(hierarchy_level="gm"))
        assert exc.value.status_code == 403

    def test_write_failure_is_500(self, service, db):
        db.failing_tables.add("team_member_roles")
        with pytest.raises(HTTPException) as exc:
            service.update_member("owner", "tm-worker", TeamMemberUpdate(role_ids=["chef"]))
        assert exc.value.status_code == 500

    def test_null_level_leaves_level_alone(self, service, db):
        result = service.update_member("owner", "tm-worker", TeamMemberUpdate(hierarchy_level=None))

        assert result.audit_entries == 0
        assert result.change is None
        assert db.rows("organisation_audit_logs") == []
        row = db.row("team_members", "tm-worker")
        assert row["hierarchy_level"] == "worker"
        assert "member_type" not in row

    def test_null_level_with_other_changes_audits_only_those(self, service, db):
        result = service.update_member("owner", "tm-gm", TeamMemberUpdate(hierarchy_level=None, status="inactive"))

        assert result.audit_entries == 1
        assert result.change is None
        audit = db.rows("organisation_audit_logs")
        assert audit[0]["old_data"] == {"status": "active"}
        assert audit[0]["new_data"] == {"status": "inactive"}
        assert db.row("team_members", "tm-gm")["hierarchy_level"] == "gm"

    def test_failed_role_insert_restores_previous_roles(self, service, db, caplog):
        db.tables["team_member_roles"] = [
            {"id": "r0", "team_member_id": "tm-worker", "role_id": "old", "is_primary": True}
        ]
        db.fail_once.add(("insert", "team_member_roles"))
        with caplog.at_level(logging.WARNING, logger="rosta.modules.team_members.service"):
            with pytest.raises(HTTPException) as exc:
                service.update_member("owner", "tm-worker", TeamMemberUpdate(role_ids=["chef"]))

        assert exc.value.status_code == 500
        assert [(r["id"], r["role_id"]) for r in db.rows("team_member_roles")] == [("r0", "old")]
        assert "Inserting team_member_roles for tm-worker failed after delete" in caplog.text
        assert "Restored 1 team_member_roles rows for tm-worker" in caplog.text

    def test_failed_venue_delete_leaves_venues_untouched(self, service, db, caplog):
        db.tables["team_member_venues"] = [{"id": "v0", "team_member_id": "tm-worker", "venue_id": "old"}]
        db.fail_once.add(("delete", "team_member_venues"))
        with caplog.at_level(logging.ERROR, logger="rosta.modules.team_members.service"):
            with pytest.raises(HTTPException) as exc:
                service.update_member("owner", "tm-worker", TeamMemberUpdate(venue_ids=["v1"]))

        assert exc.value.status_code == 500
        assert [v["venue_id"] for v in db.rows("team_member_venues")] == ["old"]
        assert "Deleting team_member_venues for tm-worker failed" in caplog.text

    def test_route(self, client, auth, db):
        resp = client.patch(
            f"{API}/team-members/tm-worker",
            json={"status": "inactive"},
            headers=auth("user-sl"),
        )
        assert resp.status_code == 200
        assert resp.json()["audit_entries"] == 1
        assert db.row("team_members", "tm-worker")["status"] == "inactive"

    def test_route_rejects_senior_target(self, client, auth):
        resp = client.patch(
            f"{API}/team-members/tm-gm",
            json={"status": "inactive"},
            headers=auth("user-sl"),
        )
        assert resp.status_code == 403
