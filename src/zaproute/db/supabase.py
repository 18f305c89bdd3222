"""Outbox client used to queue driver notifications in Supabase."""

import logging
from functools import lru_cache

from supabase import Client, create_client

from ..config import settings


@lru_cache()
def get_supabase_client() -> Client | None:
    """Return the shared outbox client, or None when notifications have no backend.

    Creating the client does not contact Supabase; delivery errors surface
    on the first insert and are handled by the notifier.
    """
    if not settings.supabase_url or not settings.supabase_key:
        logging.info("Driver notifications disabled: ZAPROUTE_SUPABASE_URL or ZAPROUTE_SUPABASE_KEY is not set")
        return None

    try:
        client = create_client(settings.supabase_url, settings.supabase_key)
    except Exception as e:
        logging.error(f"Notification outbox unavailable, could not create Supabase client: {e}")
        return None
    logging.info(f"Notification outbox ready at {settings.supabase_url} (table '{settings.notifications_table}')")
    return client
