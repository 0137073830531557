from __future__ import annotations

import logging
from functools import lru_cache

from supabase import Client, create_client

from .config import DEFAULT_SUPABASE_CONFIG, SupabaseConfig

logger = logging.getLogger(__name__)


def _require(config: SupabaseConfig, key: str, key_env: str) -> None:
    if not config.url or not key:
        raise ValueError(
            f"SUPABASE_URL and {key_env} are required. "
            "Set them in the environment or .env file."
        )


def create_service_client(config: SupabaseConfig = DEFAULT_SUPABASE_CONFIG) -> Client:
    """Client with the service role key, used for catalog and profile reads."""
    _require(config, config.service_role_key, "SUPABASE_SERVICE_ROLE_KEY")
    client = create_client(config.url, config.service_role_key)
    logger.info("Supabase service client initialised for %s", config.url)
    return client


def create_auth_client(config: SupabaseConfig = DEFAULT_SUPABASE_CONFIG) -> Client:
    """Client with the anon key, used only to verify caller tokens."""
    _require(config, config.anon_key, "SUPABASE_ANON_KEY")
    return create_client(config.url, config.anon_key)


@lru_cache
def get_service_client() -> Client:
    return create_service_client()


@lru_cache
def get_auth_client() -> Client:
    return create_auth_client()
