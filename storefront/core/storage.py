"""Supabase Storage client for product image uploads."""
import uuid
from datetime import datetime, timezone
from typing import Optional

from supabase import create_client

from storefront.config import settings
from storefront.core.exceptions import ExternalServiceError


class StorageClient:
    """Client for Supabase Storage operations."""

    _client = None

    @classmethod
    def get_client(cls):
        """Get or create Supabase client."""
        if cls._client is None:
            if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_KEY:
                raise ExternalServiceError(
                    "Image upload not configured. "
                    "Set SUPABASE_URL and SUPABASE_SERVICE_KEY environment variables."
                )
            cls._client = create_client(
                settings.SUPABASE_URL,
                settings.SUPABASE_SERVICE_KEY
            )
        return cls._client

    @classmethod
    def get_bucket(cls):
        """Get the storage bucket."""
        client = cls.get_client()
        return client.storage.from_(settings.SUPABASE_STORAGE_BUCKET)

    @classmethod
    def upload(
        cls,
        content: bytes,
        path: str,
        content_type: str
    ) -> str:
        """
        Upload file to Supabase Storage.

        Args:
            content: File content as bytes
            path: Storage path (e.g., "products/1718000000-ab12cd34.webp")
            content_type: MIME type (e.g., "image/webp")

        Returns:
            Public URL of the uploaded file
        """
        bucket = cls.get_bucket()

        bucket.upload(
            path=path,
            file=content,
            file_options={
                "content-type": content_type,
                "cache-control": "31536000",
                "upsert": "true",
            }
        )

        return cls.get_public_url(path)

    @classmethod
    def delete(cls, path: str) -> bool:
        """
        Delete file from Supabase Storage.

        Args:
            path: Storage path or full URL

        Returns:
            True if a delete request was issued
        """
        if path.startswith("http"):
            path = cls.extract_path_from_url(path)

        if not path:
            return False

        cls.get_bucket().remove([path])
        return True

    @classmethod
    def get_public_url(cls, path: str) -> str:
        return cls.get_bucket().get_public_url(path)

    @classmethod
    def extract_path_from_url(cls, url: str) -> Optional[str]:
        """
        Extract storage path from a Supabase Storage URL.

        Returns:
            Storage path or None if not a URL for our bucket
        """
        if not url:
            return None

        # URL format: https://xxx.supabase.co/storage/v1/object/public/<bucket>/path/file.ext
        marker = f"/storage/v1/object/public/{settings.SUPABASE_STORAGE_BUCKET}/"

        if marker in url:
            return url.split(marker)[1].split("?")[0]

        return None

    @classmethod
    def generate_unique_filename(cls, original_filename: str, prefix: str = "products", ext: Optional[str] = None) -> str:
        """
        Generate a collision-free storage key: <prefix>/<timestamp>-<random><ext>.

        Args:
            original_filename: Original file name (extension is reused unless ext is given)
            prefix: Folder inside the bucket
            ext: Forced extension, e.g. ".webp" after optimization
        """
        if ext is None:
            ext = ""
            if "." in original_filename:
                ext = "." + original_filename.rsplit(".", 1)[1].lower()

        timestamp = int(datetime.now(timezone.utc).timestamp() * 1000)
        unique_id = uuid.uuid4().hex[:8]

        if prefix:
            return f"{prefix}/{timestamp}-{unique_id}{ext}"
        return f"{timestamp}-{unique_id}{ext}"
