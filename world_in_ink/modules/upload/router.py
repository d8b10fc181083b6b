from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from world_in_ink.errors import api_error
from world_in_ink.modules.auth.dev_auth import get_current_user
from world_in_ink.modules.upload.storage import Storage, get_storage
from world_in_ink.schemas import CamelModel
from world_in_ink.utils.time import epoch_millis

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])


class UploadResponse(CamelModel):
    url: str


@router.post("", response_model=UploadResponse)
def upload_image(
    file: UploadFile | None = File(default=None),
    storage: Storage = Depends(get_storage),
    user=Depends(get_current_user),
) -> UploadResponse:
    if file is None:
        raise api_error(400, "No file provided")
    if not (file.content_type or "").startswith("image/"):
        raise api_error(400, "File must be an image")

    try:
        url = storage.save_bytes(
            file.file.read(),
            name=f"{epoch_millis()}-{file.filename or 'upload'}",
            content_type=file.content_type,
        )
    except Exception as exc:  # noqa: BLE001
        logger.exception("upload failed for user %s", user["id"])
        raise api_error(500, "Upload failed") from exc
    logger.info("user %s uploaded %s", user["id"], url)
    return UploadResponse(url=url)
