from typing import Optional

from supabase import Client, create_client

from app.config import SUPABASE_KEY, SUPABASE_URL

_supabase: Optional[Client] = None


def get_supabase() -> Client:
    """Get the shared Supabase client (service role)"""
    global _supabase
    if _supabase is None:
        if not SUPABASE_URL or not SUPABASE_KEY:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
        _supabase = create_client(SUPABASE_URL, SUPABASE_KEY)
    return _supabase
