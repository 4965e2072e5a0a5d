"""Profile media resolution against Google Cloud Storage.

Profiles store media as references: a full ``http(s)`` URL (returned as-is),
a ``gs://bucket/path`` URI, or a bare object path in the default bucket.
References that need signing get a V4 signed GET URL.
"""

import asyncio
import datetime
from functools import lru_cache
from typing import Optional

import structlog
from google.cloud import storage as gcs_storage

from matchfeed.config import get_settings

logger = structlog.get_logger("matchfeed.storage")


@lru_cache(maxsize=1)
def get_storage_client():
    return gcs_storage.Client(project=get_settings().GCP_PROJECT_ID or None)


def get_bucket(bucket_name: Optional[str] = None):
    client = get_storage_client()
    return client.bucket(bucket_name or get_settings().GCS_BUCKET_NAME)


def split_reference(reference: str) -> tuple[Optional[str], str]:
    """Return ``(bucket, object_path)``; bucket is None for bare paths."""
    if reference.startswith("gs://"):
        bucket, _, path = reference[len("gs://"):].partition("/")
        return bucket or None, path
    return None, reference.lstrip("/")


def generate_signed_url(path: str, bucket_name: Optional[str] = None, expiry_minutes: int = 60) -> str:
    """Generate a signed URL for temporary access to a GCS object."""
    bucket = get_bucket(bucket_name)
    blob = bucket.blob(path)
    return blob.generate_signed_url(
        version="v4",
        expiration=datetime.timedelta(minutes=expiry_minutes),
        method="GET",
    )


def resolve_url(reference: Optional[str]) -> Optional[str]:
    """Resolve a stored media reference to a fetchable URL, or ``None``.

    A reference that cannot be signed is logged and resolves to ``None``.
    """
    if not reference or not reference.strip():
        return None
    reference = reference.strip()
    if reference.startswith(("http://", "https://")):
        return reference

    bucket_name, path = split_reference(reference)
    if not path:
        return None

    try:
        return generate_signed_url(
            path,
            bucket_name=bucket_name,
            expiry_minutes=get_settings().SIGNED_URL_EXPIRY_MINUTES,
        )
    except Exception:
        logger.exception("media_url_resolution_failed", reference=reference)
        return None


async def resolve_url_async(reference: Optional[str]) -> Optional[str]:
    """Run :func:`resolve_url` in a worker thread (the GCS SDK blocks)."""
    if not reference:
        return None
    return await asyncio.to_thread(resolve_url, reference)
