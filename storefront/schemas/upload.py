"""Pydantic schemas for image uploads."""
from typing import Optional, List

from pydantic import Field

from storefront.schemas.base import BaseResponseSchema


class UploadSavings(BaseResponseSchema):
    saved_bytes: int
    saved_percent: int


class UploadResponse(BaseResponseSchema):
    """Response after successful image upload."""
    success: bool = True
    url: str = Field(..., description="Public URL of the uploaded file")
    key: str = Field(..., description="Storage key inside the bucket")
    filename: str = Field(..., description="Original file name")
    size: int = Field(..., description="Stored size in bytes")
    original_size: int
    content_type: str = Field(..., description="MIME type of the stored file")
    optimized: bool
    savings: Optional[UploadSavings] = None


class UploadConfigResponse(BaseResponseSchema):
    """Limits for client-side validation."""
    max_file_size: int
    max_file_size_mb: int
    allowed_types: List[str]
    allowed_extensions: List[str]


class DeleteResponse(BaseResponseSchema):
    success: bool = True
    message: str
    key: str
