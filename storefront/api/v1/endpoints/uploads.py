"""Product image upload endpoints."""
from fastapi import APIRouter, UploadFile, File, Form
from starlette.concurrency import run_in_threadpool

from storefront.api.deps import AdminContext
from storefront.schemas.upload import UploadResponse, UploadConfigResponse, DeleteResponse
from storefront.services.upload_service import UploadService

router = APIRouter(tags=["Uploads"])


@router.post("", response_model=UploadResponse)
async def upload_image(
    ctx: AdminContext,
    file: UploadFile = File(..., description="Image file to upload"),
    optimize: bool = Form(True, description="Resize and convert to WebP"),
):
    """
    Upload a single product image.

    Supported formats: JPEG, PNG, WebP, GIF
    Maximum size: 10MB

    Optimized images are bounded to 2000px and stored as WebP.
    """
    content = await file.read()
    content_type = file.content_type or "application/octet-stream"

    result = await run_in_threadpool(
        UploadService.upload_image,
        content,
        file.filename or "image",
        content_type,
        optimize,
    )
    return UploadResponse(**result)


@router.get("/config", response_model=UploadConfigResponse)
async def get_upload_config():
    """Limits the admin UI validates against before uploading."""
    return UploadConfigResponse(**UploadService.get_config())


@router.delete("/{key:path}", response_model=DeleteResponse)
async def delete_image(key: str, ctx: AdminContext):
    """
    Delete an image from storage.

    The key is the full path after /upload/, e.g. `products/1718000000-ab12cd34.webp`.
    """
    deleted_key = await run_in_threadpool(UploadService.delete_image, key)
    return DeleteResponse(message=f'File "{deleted_key}" deleted successfully.', key=deleted_key)
