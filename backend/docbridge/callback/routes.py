"""Callback routes the document server calls with signed links: download, emptyfile."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import FileResponse, Response

from docbridge.auth.crypt import Crypt
from docbridge.auth.dependencies import get_crypt
from docbridge.callback.templates import DOCX_MEDIA_TYPE, empty_docx
from docbridge.documentservice.links import ACTION_DOWNLOAD, ACTION_EMPTY
from docbridge.files.storage import LocalStorage, get_storage
from docbridge.files.versions import LocalVersionHistory, get_version_history
from docbridge.limiter import limiter

router = APIRouter(prefix="/callback", tags=["callback"])
log = logging.getLogger(__name__)


def _read_token(request: Request, crypt: Crypt) -> dict:
    """Decode the doc query parameter; 403 when it does not verify."""
    data, error = crypt.read_hash(request.query_params.get("doc") or "")
    if data is None:
        log.warning("callback rejected token: %s", error)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )
    return data


@router.get("/download")
@limiter.limit("600/minute")
def download(
    request: Request,
    crypt: Annotated[Crypt, Depends(get_crypt)],
    storage: Annotated[LocalStorage, Depends(get_storage)],
    versions: Annotated[LocalVersionHistory, Depends(get_version_history)],
) -> FileResponse:
    """Serve the bytes of the file (or retained version) named by the signed token."""
    data = _read_token(request, crypt)
    if data.get("action") != ACTION_DOWNLOAD:
        log.warning("download called with action=%r", data.get("action"))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request",
        )
    owner_id = data.get("ownerId")
    path = data.get("path")
    try:
        file_id = int(data.get("fileId"))
        version = int(data.get("version") or 0)
    except (TypeError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request",
        )
    if not owner_id or not path:
        log.warning("download token for file_id=%s carries no file location", file_id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request",
        )
    user_id = data.get("userId")

    identity = None
    if not user_id or user_id == owner_id:
        identity = storage.get_live_file(owner_id, path, file_id)
    if identity is None:
        log.warning("download file_id=%s owner=%s user=%s: not found", file_id, owner_id, user_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )

    relative = identity.path
    if version > 0:
        history = versions.get_versions(identity.owner_id, identity)
        if version > len(history) or not history[version - 1].path:
            log.warning("download file_id=%s: version %d not found", file_id, version)
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Version not found",
            )
        relative = history[version - 1].path

    target = storage.resolve(identity.owner_id, relative)
    if not target.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found",
        )
    log.info("download file_id=%s user=%s version=%d", file_id, user_id, version)
    return FileResponse(
        path=target,
        filename=identity.path.rsplit("/", 1)[-1],
        media_type="application/octet-stream",
    )


@router.get("/emptyfile")
@limiter.limit("60/minute")
async def emptyfile(
    request: Request,
    crypt: Annotated[Crypt, Depends(get_crypt)],
) -> Response:
    """Serve a blank docx for the connectivity check."""
    data = _read_token(request, crypt)
    if data.get("action") != ACTION_EMPTY:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid request",
        )
    log.info("emptyfile served")
    return Response(
        content=empty_docx(),
        media_type=DOCX_MEDIA_TYPE,
        headers={"Content-Disposition": 'attachment; filename="new.docx"'},
    )
