# =====================================
# backend/database/supabase_client.py - Database Layer
# =====================================
from fastapi import Request
from supabase import create_client, Client
import logging

logger = logging.getLogger(__name__)


def create_supabase_client(url: str, key: str) -> Client:
    """
    Builds the Supabase client once at startup.
    The app keeps it on app.state; handlers get it through get_db.
    """
    if not url or not key:
        raise ValueError("SUPABASE_URL and SUPABASE_ANON_KEY are required in .env")

    return create_client(url, key)


def ping(client: Client) -> None:
    """Cheap query to fail fast when the store is unreachable. Raises on error."""
    client.table('users').select('id').limit(1).execute()


def get_db(request: Request) -> Client:
    """FastAPI dependency returning the client built in the lifespan"""
    return request.app.state.supabase
