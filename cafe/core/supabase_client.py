from functools import lru_cache
from supabase import create_client, Client

from cafe.core.config import get_settings

settings = get_settings()


@lru_cache
def supabase_public() -> Client:
    """
    Create a Supabase client with the anon/public key.

    Use cases:
      - guest reads (menu, comments)

    Note: This client still respects RLS. It is shared, so it must never
    carry a user's token.
    """
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)


def supabase_for_token(access_token: str) -> Client:
    """
    Create a fresh Supabase client that sends the caller's access token.

    Every PostgREST call made through it runs as that user, so the RLS
    policies on cart_items / comments / profiles apply on top of the
    filters the services add themselves.
    """
    client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    client.postgrest.auth(access_token)
    return client


@lru_cache
def supabase_admin() -> Client:
    """
    Create a Supabase client with the service role key.

    Use cases:
      - uploading product images
      - admin Auth operations (deleting users)

    WARNING:
      - Never expose service role key to frontend.
      - Only backend should call this.

    Raises:
        RuntimeError: if SUPABASE_SERVICE_ROLE_KEY is not set.
    """
    if not settings.SUPABASE_SERVICE_ROLE_KEY:
        raise RuntimeError("Missing SUPABASE_SERVICE_ROLE_KEY in .env")
    return create_client(settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY)


def get_admin_client() -> Client:
    """FastAPI dependency wrapper around the cached service-role client."""
    return supabase_admin()
