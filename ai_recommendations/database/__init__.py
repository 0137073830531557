"""
Supabase access layer.

Responsibilities:
- Hold project URL and key configuration.
- Build the service-role client used for read-only catalog queries.
- Build the anon client used to verify caller access tokens.
"""
