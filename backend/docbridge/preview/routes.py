"""Preview API route: thumbnail of an office document (live or retained version)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import Response

from docbridge.auth.crypt import Crypt
from docbridge.auth.dependencies import get_crypt, get_current_user_id
from docbridge.config import get_settings
from docbridge.documentservice.client import DocumentServiceClient
from docbridge.files.storage import get_storage
from docbridge.files.versions import get_version_history
from docbridge.limiter import limiter
from docbridge.preview.provider import THUMB_MEDIA_TYPE, ThumbnailProvider

router = APIRouter(prefix="/api/files", tags=["preview"])
log = logging.getLogger(__name__)


def get_thumbnail_provider(
    crypt: Annotated[Crypt, Depends(get_crypt)],
) -> ThumbnailProvider:
    settings = get_settings()
    return ThumbnailProvider(
        settings,
        get_storage(),
        get_version_history(),
        crypt,
        DocumentServiceClient(settings),
    )


@router.get("/preview")
@limiter.limit("120/minute")
def preview(
    request: Request,
    user_id: Annotated[str, Depends(get_current_user_id)],
    provider: Annotated[ThumbnailProvider, Depends(get_thumbnail_provider)],
    path: str = Query(..., min_length=1),
    x: int = Query(256, ge=1, le=4096),
    y: int = Query(256, ge=1, le=4096),
) -> Response:
    """
    Thumbnail for path under the current user's home, e.g. files/report.docx
    or files_versions/report.docx.v1700000000. 404 when no preview is possible.
    """
    image = provider.get_thumbnail(user_id, path, x, y, user_id=user_id)
    if image is None:
        log.info("preview user=%s path=%s: no preview", user_id, path)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No preview available",
        )
    return Response(content=image, media_type=THUMB_MEDIA_TYPE)
