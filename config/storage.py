"""
Blob store connection management.

Wraps a Supabase Storage bucket behind the three verbs the scanner needs:
list(prefix), get(key) and set(key, data, content_type).
"""

from supabase import create_client, Client
from functools import lru_cache
from typing import Optional
import structlog

from config.settings import settings
from exceptions import BlobStoreError

logger = structlog.get_logger(__name__)

LIST_PAGE_SIZE = 1000


def _is_not_found(error: Exception) -> bool:
    """Storage reports missing objects as a 400/404 with a 'not found' message."""
    text = str(error).lower()
    return "not found" in text or "not_found" in text or "404" in text


class BlobStore:
    """
    Key/value blob store backed by one storage bucket.

    Keys are slash-separated paths ("{namespace}/{file}").
    """

    def __init__(self, client: Client, bucket: str):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def list(self, prefix: str) -> list[dict]:
        """
        List objects directly under a prefix.

        Folders (e.g. "scans/") are skipped.

        Returns:
            List of {"key", "size", "uploaded_at"} dicts
        """
        folder = prefix.strip("/")
        try:
            entries = self._bucket().list(
                folder,
                {
                    "limit": LIST_PAGE_SIZE,
                    "offset": 0,
                    "sortBy": {"column": "updated_at", "order": "desc"},
                },
            )
        except Exception as e:
            logger.error("blob_list_failed", prefix=prefix, error=str(e))
            raise BlobStoreError("list", str(e), key=prefix)

        files = []
        for entry in entries or []:
            # Folder placeholders have no id
            if not entry.get("id"):
                continue
            metadata = entry.get("metadata") or {}
            files.append({
                "key": f"{folder}/{entry['name']}" if folder else entry["name"],
                "size": metadata.get("size"),
                "uploaded_at": entry.get("created_at") or entry.get("updated_at"),
            })

        logger.debug("blob_list_complete", prefix=prefix, count=len(files))
        return files

    def get(self, key: str) -> Optional[bytes]:
        """
        Fetch an object's bytes.

        Returns:
            The stored bytes, or None if nothing is stored under key

        Raises:
            BlobStoreError: If the store fails for any other reason
        """
        try:
            data = self._bucket().download(key)
        except Exception as e:
            if _is_not_found(e):
                logger.debug("blob_not_found", key=key)
                return None
            logger.error("blob_get_failed", key=key, error=str(e))
            raise BlobStoreError("get", str(e), key=key)

        logger.debug("blob_get_complete", key=key, size=len(data))
        return data

    def set(self, key: str, data: bytes, content_type: str) -> None:
        """Store bytes under key, replacing any existing object."""
        try:
            self._bucket().upload(
                key,
                data,
                {"content-type": content_type, "upsert": "true"},
            )
        except Exception as e:
            logger.error("blob_set_failed", key=key, error=str(e))
            raise BlobStoreError("set", str(e), key=key)

        logger.debug(
            "blob_set_complete",
            key=key,
            size=len(data),
            content_type=content_type
        )


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses the service key when configured so storage writes bypass
    row-level policies.
    Call get_supabase_client.cache_clear() to reconnect.

    Raises:
        BlobStoreError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )
        return create_client(settings.supabase_url, settings.storage_key)
    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise BlobStoreError("connect", str(e))


def get_blob_store() -> BlobStore:
    """Get a blob store bound to the configured bucket."""
    return BlobStore(get_supabase_client(), settings.storage_bucket)


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check blob store health.

    Returns:
        dict: Connection status with details
    """
    try:
        store = get_blob_store()
        files = store.list(settings.default_namespace)
        return {
            "status": "healthy",
            "bucket": settings.storage_bucket,
            "default_namespace_files": len(files)
        }
    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }


def credentials_status() -> dict:
    """Report which credentials are configured, never their values."""
    return {
        "SUPABASE_URL": bool(settings.supabase_url),
        "SUPABASE_KEY": bool(settings.supabase_key),
        "SUPABASE_SERVICE_KEY": bool(settings.supabase_service_key),
        "STORAGE_BUCKET": settings.storage_bucket,
        "ENVIRONMENT": settings.environment,
    }
