"""Upload service for product image validation and optimization."""
import io
import logging
from typing import Optional, Tuple

from PIL import Image

from storefront.core.exceptions import ValidationError, ExternalServiceError
from storefront.core.storage import StorageClient


logger = logging.getLogger(__name__)


# Allowed MIME types and the extension used when stored unoptimized
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}

ALLOWED_EXTENSIONS = ["jpg", "jpeg", "png", "webp", "gif"]

# Size limit in bytes
MAX_IMAGE_SIZE = 10 * 1024 * 1024  # 10MB

# Full-size product image bounds and WebP quality
MAX_DIMENSION = 2000
WEBP_QUALITY = 85

OPTIMIZED_CONTENT_TYPE = "image/webp"


class UploadService:
    """Service for handling product image uploads."""

    @staticmethod
    def validate_image(
        content: bytes,
        content_type: str,
        filename: str
    ) -> Tuple[bool, Optional[str]]:
        """
        Validate image file.

        Args:
            content: File content as bytes
            content_type: MIME type
            filename: Original filename

        Returns:
            Tuple of (is_valid, error_message)
        """
        if content_type not in ALLOWED_IMAGE_TYPES:
            return False, f"Invalid file type: {content_type}. Allowed types: {', '.join(ALLOWED_IMAGE_TYPES.keys())}"

        if len(content) > MAX_IMAGE_SIZE:
            max_mb = MAX_IMAGE_SIZE // (1024 * 1024)
            actual_mb = len(content) / (1024 * 1024)
            return False, f"File too large: {actual_mb:.1f}MB. Maximum size: {max_mb}MB"

        try:
            img = Image.open(io.BytesIO(content))
            img.verify()
        except Exception:
            return False, "Invalid or corrupted image file"

        return True, None

    @staticmethod
    def optimize_image(content: bytes) -> bytes:
        """
        Downscale to fit MAX_DIMENSION (never enlarging) and re-encode as WebP.

        Raises:
            OSError / ValueError from Pillow when the image cannot be processed
        """
        img = Image.open(io.BytesIO(content))

        if img.mode in ("P", "LA"):
            img = img.convert("RGBA")
        elif img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGB")

        # thumbnail() keeps the aspect ratio and only ever shrinks
        img.thumbnail((MAX_DIMENSION, MAX_DIMENSION), Image.Resampling.LANCZOS)

        output = io.BytesIO()
        img.save(output, format="WEBP", quality=WEBP_QUALITY, method=4)
        return output.getvalue()

    @staticmethod
    def calculate_savings(original_size: int, optimized_size: int) -> dict:
        saved = original_size - optimized_size
        percent = round(saved / original_size * 100) if original_size else 0
        return {"saved_bytes": saved, "saved_percent": percent}

    @classmethod
    def upload_image(
        cls,
        content: bytes,
        filename: str,
        content_type: str,
        optimize: bool = True
    ) -> dict:
        """
        Validate, optionally optimize and upload a product image.

        Optimization failures fall back to storing the original bytes.

        Returns:
            Dict matching UploadResponse
        """
        is_valid, error = cls.validate_image(content, content_type, filename)
        if not is_valid:
            raise ValidationError(error)

        original_size = len(content)
        final_content = content
        final_type = content_type
        optimized = False
        savings = None
        key = None

        if optimize:
            try:
                final_content = cls.optimize_image(content)
                final_type = OPTIMIZED_CONTENT_TYPE
                optimized = True
                savings = cls.calculate_savings(original_size, len(final_content))
                key = StorageClient.generate_unique_filename(filename, "products", ext=".webp")
                logger.info(
                    f"Image optimized: {filename} - {original_size // 1024}KB -> "
                    f"{len(final_content) // 1024}KB ({savings['saved_percent']}% smaller)"
                )
            except (OSError, ValueError) as e:
                logger.error(f"Image optimization failed, uploading original: {e}")
                final_content = content
                final_type = content_type

        if key is None:
            key = StorageClient.generate_unique_filename(
                filename, "products", ext=ALLOWED_IMAGE_TYPES[content_type]
            )

        try:
            url = StorageClient.upload(final_content, key, final_type)
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Storage upload failed for {key}: {e}")
            raise ExternalServiceError("Failed to upload file. Please try again.") from e

        return {
            "success": True,
            "url": url,
            "key": key,
            "filename": filename,
            "size": len(final_content),
            "original_size": original_size,
            "content_type": final_type,
            "optimized": optimized,
            "savings": savings,
        }

    @staticmethod
    def delete_image(key_or_url: str) -> str:
        """
        Remove a stored image by bucket key or public URL.

        Returns:
            The bucket key that was removed
        """
        key = key_or_url
        if key_or_url.startswith("http"):
            key = StorageClient.extract_path_from_url(key_or_url)
        if not key:
            raise ValidationError("No key provided. Please specify the file key to delete.")

        try:
            StorageClient.delete(key)
        except ExternalServiceError:
            raise
        except Exception as e:
            logger.error(f"Storage delete failed for {key}: {e}")
            raise ExternalServiceError("Failed to delete file. Please try again.") from e

        logger.info(f"Image deleted: {key}")
        return key

    @staticmethod
    def get_config() -> dict:
        return {
            "max_file_size": MAX_IMAGE_SIZE,
            "max_file_size_mb": MAX_IMAGE_SIZE // (1024 * 1024),
            "allowed_types": list(ALLOWED_IMAGE_TYPES.keys()),
            "allowed_extensions": ALLOWED_EXTENSIONS,
        }
