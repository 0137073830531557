"""Bearer-token authentication against Supabase Auth."""
