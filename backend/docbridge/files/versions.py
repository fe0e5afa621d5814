"""Version area naming and the local version history provider.

Historical versions live beside the primary area, under files_versions, as
"<name>.v<revision>" where revision is a decimal token (a unix timestamp when
written by the host).
"""

import logging
import re
from typing import List, Optional

from docbridge.files.models import FileIdentity, VersionDescriptor, VersionReference
from docbridge.files.storage import FILES_AREA, VERSIONS_AREA, LocalStorage, get_storage

log = logging.getLogger(__name__)

_VERSION_MARKER = re.compile(r"^(.+)\.v(\d+)$")


def split_path_version(path: str) -> VersionReference:
    """Split "report.docx.v1700000000" into ("report.docx", "1700000000").

    A path without a trailing marker yields version_token None.
    """
    m = _VERSION_MARKER.match(path or "")
    if not m:
        return VersionReference(base_path=path)
    return VersionReference(base_path=m.group(1), version_token=m.group(2))


def versions_dir_for(path: str) -> Optional[str]:
    """Version-area path of a primary-area file ("files/a/b.docx" -> "files_versions/a/b.docx")."""
    parts = path.replace("\\", "/").strip("/").split("/", 1)
    if len(parts) != 2 or parts[0] != FILES_AREA:
        return None
    return f"{VERSIONS_AREA}/{parts[1]}"


class LocalVersionHistory:
    """Version history read from the owner's files_versions folder."""

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage

    def get_versions(self, owner_id: str, identity: FileIdentity) -> List[VersionDescriptor]:
        """Return retained versions of identity, newest first. Missing folder -> []."""
        rel = versions_dir_for(identity.path)
        if rel is None:
            return []
        parent_rel, _, name = rel.rpartition("/")
        folder = self._storage.resolve(owner_id, parent_rel)
        if not folder.is_dir():
            return []
        found: List[VersionDescriptor] = []
        try:
            for entry in folder.iterdir():
                if not entry.is_file():
                    continue
                ref = split_path_version(entry.name)
                if ref.version_token is None or ref.base_path != name:
                    continue
                try:
                    size = entry.stat().st_size
                except OSError:
                    continue
                found.append(VersionDescriptor(
                    revision_id=ref.version_token,
                    path=f"{parent_rel}/{entry.name}",
                    size=size,
                ))
        except OSError as e:
            log.warning("get_versions could not list %s: %s", folder, e)
            return []
        found.sort(key=lambda v: int(v.revision_id), reverse=True)
        return found


def get_version_history() -> LocalVersionHistory:
    """Version history over the configured storage."""
    return LocalVersionHistory(get_storage())
