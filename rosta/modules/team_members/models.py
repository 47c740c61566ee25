# Supabase tables: team_members, team_member_roles, team_member_venues, profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# team_members itself is documented in rosta/modules/hierarchy/models.py

"""
Expected Supabase table structure:

team_member_roles:
- id: uuid (primary key)
- team_member_id: uuid (foreign key to team_members.id, not null)
- role_id: uuid (foreign key to roles.id, not null) - job role (bartender, chef, ...)
- is_primary: boolean (default false)

team_member_venues:
- id: uuid (primary key)
- team_member_id: uuid (foreign key to team_members.id, not null)
- venue_id: uuid (foreign key to venues.id, not null)
- is_primary: boolean (default false)

profiles:
- id: uuid (primary key, references auth.users.id)
- full_name: text (nullable)
- email: text
- worker_status: text (nullable)

Job roles are unrelated to hierarchy levels; a worker and a gm can both hold
the same job role.
"""
