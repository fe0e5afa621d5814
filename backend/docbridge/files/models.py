"""Value objects describing files and their retained versions."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class FileIdentity:
    """A resolved file in the primary storage area.

    path is relative to the owner's home (e.g. "files/reports/q1.docx").
    etag is the content fingerprint and changes whenever the bytes change.
    """

    file_id: int
    path: str
    extension: str
    owner_id: str
    size: int = 0
    etag: str = ""


@dataclass(frozen=True)
class VersionDescriptor:
    """One retained historical version of a file."""

    revision_id: str
    path: Optional[str] = None
    size: int = 0


@dataclass(frozen=True)
class VersionReference:
    """A path split on the version marker; version_token is None for live files."""

    base_path: str
    version_token: Optional[str] = None
