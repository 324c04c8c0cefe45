"""
Upload URL issuance:
  GET /uploader/signed-upload-url?content_type=image/png
"""
from fastapi import APIRouter, Depends, Query

from postboard.clients.storage_client import StorageClient, get_storage
from postboard.schemas import SignedUploadResponse

router = APIRouter()


@router.get("/signed-upload-url", response_model=SignedUploadResponse)
async def signed_upload_url(
    content_type: str = Query(..., description="MIME type of the file to upload"),
    storage: StorageClient = Depends(get_storage),
):
    return SignedUploadResponse(**storage.signed_upload_url(content_type))
