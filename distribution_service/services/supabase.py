"""
Supabase client for database access.
"""
import logging
from functools import lru_cache

from supabase import create_client, Client

from distribution_service.core.config import settings
from distribution_service.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@lru_cache()
def get_supabase_client() -> Client:
    """
    Cached Supabase client.
    Uses the service key for full table access.
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
        raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")

    logger.info("Supabase client created")
    return create_client(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_KEY
    )
