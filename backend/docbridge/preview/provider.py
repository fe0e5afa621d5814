"""Thumbnail previews of office documents rendered by the document server."""

import logging
from typing import AbstractSet, Optional

from docbridge.auth.crypt import Crypt
from docbridge.config import Settings
from docbridge.documentservice.client import DocumentServiceClient
from docbridge.documentservice.errors import DocumentServiceError
from docbridge.documentservice.interfaces import StorageLookup, VersionHistory
from docbridge.documentservice.links import build_download_url
from docbridge.documentservice.resolver import SUPPORTED_EXTENSIONS, resolve, supports_format
from docbridge.files.models import FileIdentity

log = logging.getLogger(__name__)

THUMB_EXTENSION = "jpeg"
THUMB_MEDIA_TYPE = "image/jpeg"

# Keep the page aspect ratio inside the requested box
_THUMB_ASPECT_KEEP = 1


class ThumbnailProvider:
    """Fetches a rendered first page for supported formats; None means "no preview"."""

    def __init__(
        self,
        settings: Settings,
        storage: StorageLookup,
        versions: Optional[VersionHistory],
        crypt: Crypt,
        client: DocumentServiceClient,
        *,
        supported: AbstractSet[str] = SUPPORTED_EXTENSIONS,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._versions = versions
        self._crypt = crypt
        self._client = client
        self._supported = supported

    def is_available(self, info: FileIdentity) -> bool:
        """True if a preview can be requested for this file at all."""
        return self._accepts(info.extension, info.size)

    def _accepts(self, extension: str, size: int) -> bool:
        if not self._settings.preview_enabled or not self._settings.document_server_url:
            return False
        if not supports_format(extension, self._supported):
            return False
        return 0 < size <= self._settings.thumb_size_limit

    def get_thumbnail(
        self,
        owner_id: str,
        path: str,
        max_x: int,
        max_y: int,
        user_id: Optional[str] = None,
    ) -> Optional[bytes]:
        """Return image bytes for path (live or versioned), or None when there is no preview."""
        resolved = resolve(
            path,
            owner_id,
            self._storage,
            self._versions,
            instance_id=self._settings.instance_id,
            supported=self._supported,
        )
        if resolved is None or not self._accepts(resolved.extension, resolved.size):
            return None

        file_url = build_download_url(
            resolved.identity,
            self._crypt,
            self._settings,
            user_id=user_id,
            version=resolved.version,
        )
        thumbnail = {
            "aspect": _THUMB_ASPECT_KEEP,
            "first": True,
            "height": max_y,
            "width": max_x,
        }
        try:
            image_url = self._client.get_converted_uri(
                file_url, resolved.extension, THUMB_EXTENSION, resolved.revision_key,
                thumbnail=thumbnail,
            )
        except DocumentServiceError as e:
            log.error("get_thumbnail conversion failed path=%s: %s", path, e)
            return None
        if not image_url:
            log.info("get_thumbnail path=%s: conversion not finished", path)
            return None

        try:
            image = self._client.request(image_url)
        except DocumentServiceError as e:
            log.error("get_thumbnail download failed path=%s: %s", path, e)
            return None
        log.info("get_thumbnail owner=%s path=%s version=%d size=%d", owner_id, path, resolved.version, len(image))
        return image or None
