"""Signed callback links the document server uses to fetch file bytes."""

import logging
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlencode

from docbridge.auth.crypt import Crypt
from docbridge.config import Settings
from docbridge.files.models import FileIdentity

log = logging.getLogger(__name__)

DOWNLOAD_ROUTE = "/callback/download"
EMPTY_FILE_ROUTE = "/callback/emptyfile"

ACTION_DOWNLOAD = "download"
ACTION_EMPTY = "empty"


@dataclass(frozen=True)
class SignedUrlRequest:
    """Every field that authorizes a download. All of them go into the hash.

    owner_id and path pin the token to one file location; the callback
    rejects it once a different file sits there.
    """

    file_id: int
    user_id: Optional[str] = None
    version: int = 0
    action: str = ACTION_DOWNLOAD
    owner_id: Optional[str] = None
    path: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        # Fixed key order: the token must be reproducible for the same request
        payload: dict[str, Any] = {"action": self.action, "fileId": self.file_id}
        if self.user_id:
            payload["userId"] = self.user_id
        if self.version > 0:
            payload["version"] = self.version
        if self.owner_id:
            payload["ownerId"] = self.owner_id
        if self.path:
            payload["path"] = self.path
        return payload


def egress_url(settings: Settings, url: str) -> str:
    """Rewrite the public origin of url to storage_url when one is configured."""
    if settings.storage_url and url.startswith(settings.public_base_url):
        return settings.storage_url + url[len(settings.public_base_url):]
    return url


def _callback_url(settings: Settings, route: str, token: str) -> str:
    url = f"{settings.public_base_url}{route}?{urlencode({'doc': token})}"
    return egress_url(settings, url)


def build_download_url(
    identity: FileIdentity,
    crypt: Crypt,
    settings: Settings,
    *,
    user_id: Optional[str] = None,
    version: int = 0,
) -> str:
    """Absolute download link for identity, optionally for one retained version."""
    request = SignedUrlRequest(
        file_id=identity.file_id,
        user_id=user_id,
        version=version,
        owner_id=identity.owner_id,
        path=identity.path,
    )
    token = crypt.get_hash(request.to_payload())
    url = _callback_url(settings, DOWNLOAD_ROUTE, token)
    log.debug("build_download_url file_id=%s user=%s version=%d", identity.file_id, user_id, version)
    return url


def build_empty_file_url(crypt: Crypt, settings: Settings) -> str:
    """Link to the blank template document used for connectivity checks."""
    token = crypt.get_hash({"action": ACTION_EMPTY})
    return _callback_url(settings, EMPTY_FILE_ROUTE, token)
