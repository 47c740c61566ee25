# Supabase Auth
# Authentication is handled entirely by Supabase Auth (auth.users table).
# This service only validates bearer tokens issued by the frontend's session.

"""
Supabase Auth provides:
- auth.get_user(jwt=...) - Resolve the user behind an access token

Registration, login, password reset and session refresh happen in the
frontend against Supabase directly and are not proxied through this API.
"""
