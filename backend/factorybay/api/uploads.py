"""
Upload API Endpoints
Admin image uploads to object storage (converted to WebP)

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import List

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from factorybay.core.auth import TokenUser, require_admin
from factorybay.domain.base import GraphModel
from factorybay.services.storage_service import StorageService, validate_image_upload

logger = logging.getLogger(__name__)

router = APIRouter()


class DeleteImageRequest(GraphModel):
    url: str


class DeleteImagesRequest(GraphModel):
    urls: List[str]


def get_storage_service() -> StorageService:
    return StorageService()


@router.post("/image", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    storage: StorageService = Depends(get_storage_service),
    admin: TokenUser = Depends(require_admin),
):
    content = await file.read()
    validate_image_upload([(file.content_type, len(content))])
    try:
        url = storage.upload_file(content, file.filename or "upload", file.content_type)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Image upload failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error uploading image: {str(e)}")
    return {"success": True, "data": {"url": url}}


@router.post("/images", status_code=status.HTTP_201_CREATED)
async def upload_images(
    files: List[UploadFile] = File(...),
    storage: StorageService = Depends(get_storage_service),
    admin: TokenUser = Depends(require_admin),
):
    """Upload up to 10 images in one request; URLs are returned in input order"""
    contents = [await f.read() for f in files]
    validate_image_upload([(f.content_type, len(c)) for f, c in zip(files, contents)])
    try:
        urls = storage.upload_multiple_files(
            [(c, f.filename or "upload", f.content_type) for f, c in zip(files, contents)]
        )
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Image upload failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error uploading images: {str(e)}")
    return {"success": True, "count": len(urls), "data": {"urls": urls}}


@router.delete("/image")
def delete_image(
    body: DeleteImageRequest,
    storage: StorageService = Depends(get_storage_service),
    admin: TokenUser = Depends(require_admin),
):
    try:
        storage.delete_file(body.url)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Image delete failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error deleting image: {str(e)}")
    return {"success": True, "message": "Image deleted"}


@router.delete("/images")
def delete_images(
    body: DeleteImagesRequest,
    storage: StorageService = Depends(get_storage_service),
    admin: TokenUser = Depends(require_admin),
):
    try:
        storage.delete_multiple_files(body.urls)
    except (ClientError, BotoCoreError) as e:
        logger.error(f"Image delete failed: {e}")
        raise HTTPException(status_code=500, detail=f"Error deleting images: {str(e)}")
    return {"success": True, "message": f"{len(body.urls)} images deleted"}
