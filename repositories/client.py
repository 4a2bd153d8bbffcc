"""
Supabase client initialization.

This module contains *only* the backend connection setup and exposes
`get_supabase()`, which returns a single shared client for the repository
modules. The client is created on first use so that modules importing the
repositories (tests, the in-memory backend) never need credentials.

Environment variables required when the Supabase backend is used:
- SUPABASE_URL: Your Supabase project URL
- SUPABASE_KEY: Your Supabase service key (server-side only, never shipped to browsers)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv
from supabase import Client, create_client  # type: ignore[import-not-found]

# Load environment variables from the .env file at the project root.
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Return the shared Supabase client, creating it on first call."""

    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_KEY")

    if not supabase_url:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_URL. "
            "Set SUPABASE_URL to your Supabase project URL."
        )

    if not supabase_key:
        raise RuntimeError(
            "Missing environment variable: SUPABASE_KEY. "
            "Set SUPABASE_KEY to your Supabase service key."
        )

    return create_client(supabase_url, supabase_key)


__all__ = ["get_supabase"]
