"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    get_blob_store: Function to get the storage-backed blob store
    check_connection: Health check function
"""

from config.settings import settings, get_settings, Settings
from config.storage import (
    BlobStore,
    get_blob_store,
    get_supabase_client,
    check_connection,
    credentials_status,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Storage
    "BlobStore",
    "get_blob_store",
    "get_supabase_client",
    "check_connection",
    "credentials_status",
]
