"""Host storage adapter: safe path resolution and file metadata under the base dir."""

import hashlib
import logging
import re
import unicodedata
from pathlib import Path
from typing import Optional

from docbridge.config import get_settings
from docbridge.files.models import FileIdentity

log = logging.getLogger(__name__)

FILES_AREA = "files"
VERSIONS_AREA = "files_versions"

# Safe path segment: letters, numbers, common punctuation. No / \ (traversal).
# Allow: . _ - space ( ) + ~ # ! & ' , ; = [ ] @ for "File (1).docx", "user@host.xlsx", etc.
_SAFE_SEGMENT_ASCII = re.compile(r"^[a-zA-Z0-9_. \-()+~#!&',;=\[\]@]+$")
# User id used as folder name: allow @ and dots
_SAFE_OWNER = re.compile(r"^[a-zA-Z0-9_.@-]+$")

_HASH_CHUNK = 1024 * 1024


def _is_safe_path_char(c: str) -> bool:
    """True if char is allowed in a path segment (no traversal, no control chars)."""
    if len(c) != 1:
        return False
    if c in "/\\%":
        return False
    if ord(c) < 32:
        return False
    if ("a" <= c <= "z") or ("A" <= c <= "Z") or ("0" <= c <= "9") or c in "_. -()+~#!&',;=[]@":
        return True
    cat = unicodedata.category(c)
    return cat.startswith("L") or cat.startswith("N") or cat.startswith("P")


def _sanitize_segment(segment: str) -> Optional[str]:
    """Return segment if safe, else None. Rejects empty, '..', '.', and invalid chars."""
    segment = segment.strip()
    if not segment or segment in (".", ".."):
        return None
    if _SAFE_SEGMENT_ASCII.match(segment):
        return segment
    if not all(_is_safe_path_char(c) for c in segment):
        return None
    return segment


def _sanitize_owner_for_path(owner_id: str) -> Optional[str]:
    """Return owner id if safe for use as a single path segment (no traversal)."""
    owner_id = (owner_id or "").strip()
    if not owner_id or ".." in owner_id or "/" in owner_id or "\\" in owner_id:
        return None
    if not _SAFE_OWNER.match(owner_id):
        return None
    return owner_id


def compute_hash(path: Path) -> str:
    """SHA-256 hex digest of a file's content, read in chunks."""
    digest = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _extension_of(name: str) -> str:
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


class LocalStorage:
    """Files of every owner under one base directory.

    <base>/<owner>/files holds live files; <base>/<owner>/files_versions holds
    retained versions. File ids are inode numbers, stable for the life of a file
    but reusable once it is deleted.
    """

    def __init__(self, base_path: Path) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def owner_path(self, owner_id: str) -> Path:
        """Return the filesystem path of an owner's home (base / owner)."""
        safe_owner = _sanitize_owner_for_path(owner_id)
        if not safe_owner:
            raise ValueError("Invalid owner id for path")
        return self._base / safe_owner

    def resolve(self, owner_id: str, relative_path: str) -> Path:
        """
        Resolve a path relative to the owner's home. Rejects traversal and unsafe names.
        relative_path uses forward slashes; segments are sanitized.
        """
        resolved = self.owner_path(owner_id)
        for part in relative_path.replace("\\", "/").strip("/").split("/"):
            if not part:
                continue
            safe = _sanitize_segment(part)
            if not safe:
                raise ValueError(f"Unsafe path segment: {part!r}")
            resolved = resolved / safe
        return resolved

    def _area_of(self, relative_path: str) -> str:
        return relative_path.replace("\\", "/").strip("/").split("/", 1)[0]

    def get_file_info(self, owner_id: str, relative_path: str) -> FileIdentity:
        """
        Metadata for a file in the owner's files or files_versions area.
        Raises ValueError for invalid path or a path outside both areas;
        raises FileNotFoundError if file does not exist.
        """
        if self._area_of(relative_path) not in (FILES_AREA, VERSIONS_AREA):
            raise ValueError(f"Path outside the files areas: {relative_path!r}")
        target = self.resolve(owner_id, relative_path)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {relative_path}")
        st = target.stat()
        rel = str(target.relative_to(self.owner_path(owner_id))).replace("\\", "/")
        return FileIdentity(
            file_id=st.st_ino,
            path=rel,
            extension=_extension_of(target.name),
            owner_id=owner_id,
            size=st.st_size,
            etag=compute_hash(target),
        )

    def source_path(self, owner_id: str, version_base_path: str) -> Optional[str]:
        """Map a version-area path (without marker) to its primary-area path, or None."""
        parts = version_base_path.replace("\\", "/").strip("/").split("/", 1)
        if len(parts) != 2 or parts[0] != VERSIONS_AREA or not parts[1]:
            return None
        return f"{FILES_AREA}/{parts[1]}"

    def get_live_file(self, owner_id: str, relative_path: str, file_id: int) -> Optional[FileIdentity]:
        """
        The live file at owner/relative_path if it still carries file_id, else None.
        No content hash is computed (etag is empty).
        """
        if self._area_of(relative_path) != FILES_AREA:
            return None
        try:
            target = self.resolve(owner_id, relative_path)
            if not target.is_file():
                return None
            st = target.stat()
        except (OSError, ValueError) as e:
            log.debug("get_live_file owner=%s path=%s: %s", owner_id, relative_path, e)
            return None
        if st.st_ino != file_id:
            log.warning("get_live_file owner=%s path=%s: id %s no longer matches", owner_id, relative_path, file_id)
            return None
        return FileIdentity(
            file_id=st.st_ino,
            path=str(target.relative_to(self.owner_path(owner_id))).replace("\\", "/"),
            extension=_extension_of(target.name),
            owner_id=owner_id,
            size=st.st_size,
        )


def get_storage() -> LocalStorage:
    """Storage adapter rooted at the configured base path."""
    return LocalStorage(get_settings().storage_base_path)
