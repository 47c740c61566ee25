# Supabase tables: organisations, team_members, permissions, organisation_audit_logs
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

organisations:
- id: uuid (primary key)
- owner_id: uuid (references auth.users.id) - always treated as employer
- name: text

team_members:
- id: uuid (primary key)
- user_id: uuid (nullable until an invite is accepted)
- organisation_id: uuid (foreign key to organisations.id)
- hierarchy_level: text - employer | gm | agm | shift_leader | worker
- member_type: text - manager | employee
- venue_scope: uuid[] (nullable) - venues a manager is limited to
- can_invite_managers: boolean (default false)
- full_name: text (nullable)
- status: text - active | inactive | pending
- primary_venue_id: uuid (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

permissions:
- id: uuid (primary key)
- team_member_id: uuid (foreign key to team_members.id, unique)
- can_edit_rota, can_invite_managers, can_invite_workers,
  can_approve_timesheets, can_view_cross_branch_analytics,
  can_manage_venue_settings: boolean

organisation_audit_logs:
- id: uuid (primary key)
- organisation_id: uuid
- user_id: uuid - actor
- table_name: text
- record_id: uuid
- action: text - e.g. UPDATE
- old_data: jsonb
- new_data: jsonb
- created_at: timestamp (default: now())

Hierarchy order is not stored; it is fixed in rosta.config.hierarchy_config.
"""
