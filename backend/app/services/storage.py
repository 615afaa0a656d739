"""
Supabase Storage adapter for newsletter images.
Handles upload to a public bucket, public URL generation, and deletion by
the identifier derived from a stored URL.
"""

import logging
import mimetypes
import os
from typing import Optional
from uuid import uuid4
from urllib.parse import urlparse, urlunparse

from supabase import Client

from app.errors import AssetDeleteFailed, UploadFailed

logger = logging.getLogger(__name__)

DEFAULT_BUCKET = "newsletter-assets"
DEFAULT_FOLDER = "newsletters"

# Extensions an uploaded image may be stored under. Deletion by derived id
# removes every candidate in one call; missing paths are ignored by Storage.
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg")

_EXTENSION_BY_TYPE = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}


def derive_asset_id(image_url: str) -> str:
    """
    Reconstruct the object id from a stored asset URL.

    The id is the last path segment with its file extension removed:
    ``https://x.supabase.co/.../newsletters/abcd123.jpg`` -> ``abcd123``.
    """
    path = urlparse(image_url).path if "://" in image_url else image_url
    last_segment = path.rstrip("/").split("/")[-1]
    return last_segment.split(".")[0]


def _extension_for(filename: Optional[str], content_type: Optional[str]) -> str:
    """Pick a storage extension from the original filename, then the MIME type."""
    if filename:
        ext = os.path.splitext(filename)[1].lower()
        if ext in IMAGE_EXTENSIONS:
            return ext
    if content_type:
        mime = content_type.split(";")[0].strip().lower()
        if mime in _EXTENSION_BY_TYPE:
            return _EXTENSION_BY_TYPE[mime]
    return ".jpg"


def _rewrite_public_url_host(public_url: str) -> str:
    """
    Replace the host in a public URL with the browser-accessible Supabase URL.

    Inside Docker the backend reaches Supabase through an internal host
    (e.g. ``http://host.docker.internal:54321``), and Supabase embeds that
    host in every URL it generates. Email clients cannot reach it, so when
    ``SUPABASE_PUBLIC_URL`` is set its scheme and host are swapped in.
    """
    public_origin = os.getenv("SUPABASE_PUBLIC_URL", "").strip()
    if not public_origin:
        return public_url

    parsed_url = urlparse(public_url)
    parsed_origin = urlparse(public_origin)

    return urlunparse((
        parsed_origin.scheme,
        parsed_origin.netloc,
        parsed_url.path,
        parsed_url.params,
        parsed_url.query,
        parsed_url.fragment,
    ))


class SupabaseAssetStore:
    """Asset store adapter over one public Supabase Storage bucket."""

    def __init__(self, client: Optional[Client], bucket: str = DEFAULT_BUCKET):
        self.client = client
        self.bucket = bucket

    def _bucket(self):
        if not self.client:
            raise ValueError("SUPABASE_SERVICE_KEY is required for storage operations")
        return self.client.storage.from_(self.bucket)

    def upload(
        self,
        data: bytes,
        folder: str = DEFAULT_FOLDER,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> str:
        """
        Upload an image and return its public URL.

        Storage path: {folder}/{uuid hex}{ext}. Paths are random, so uploads
        never overwrite each other and upsert is off.

        Raises:
            UploadFailed: if the store rejects or errors on the upload
        """
        ext = _extension_for(filename, content_type)
        storage_path = f"{folder}/{uuid4().hex}{ext}"
        mime = content_type or mimetypes.types_map.get(ext, "application/octet-stream")

        try:
            bucket = self._bucket()
            bucket.upload(
                storage_path,
                data,
                {
                    "content-type": mime,
                    "upsert": "false",
                },
            )
            public_url = bucket.get_public_url(storage_path)
        except Exception as e:
            raise UploadFailed(f"Failed to upload image to storage: {str(e)}") from e

        if not public_url:
            raise UploadFailed("No public URL returned from storage")

        # storage3 appends a bare "?" when no transform options are given
        public_url = _rewrite_public_url_host(public_url.rstrip("?"))
        logger.info(f"Uploaded newsletter image to {storage_path}")
        return public_url

    def delete_by_derived_id(self, asset_id: str, folder: str = DEFAULT_FOLDER) -> bool:
        """
        Delete an image by the id derived from its URL.

        Returns:
            True if an object was removed, False if nothing matched

        Raises:
            AssetDeleteFailed: on any storage error (callers treat it as non-fatal)
        """
        if not asset_id:
            return False

        candidates = [f"{folder}/{asset_id}{ext}" for ext in IMAGE_EXTENSIONS]
        try:
            result = self._bucket().remove(candidates)
        except Exception as e:
            raise AssetDeleteFailed(f"Failed to delete image {asset_id} from storage: {str(e)}") from e

        # Supabase returns the list of removed objects
        return bool(result)

    def bucket_exists(self) -> bool:
        """Return True if the configured bucket is present."""
        if not self.client:
            raise ValueError("SUPABASE_SERVICE_KEY is required for storage operations")
        return self.bucket in [b.name for b in self.client.storage.list_buckets()]
