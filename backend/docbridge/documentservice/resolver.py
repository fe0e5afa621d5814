"""Resolve a (possibly versioned) path to what the document server needs.

The result names the live file, its extension, the revision key used by the
document server as cache key, and the version ordinal counted from the newest
retained version (0 for the live file). Anything that cannot be previewed
resolves to None instead of raising.
"""

import logging
from dataclasses import dataclass
from typing import AbstractSet, Optional

from docbridge.documentservice.interfaces import StorageLookup, VersionHistory
from docbridge.documentservice.revision import file_key, generate_revision_id, version_key
from docbridge.files.models import FileIdentity, VersionDescriptor
from docbridge.files.versions import split_path_version

log = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset({"docx", "xlsx", "pptx"})


@dataclass(frozen=True)
class ResolvedFile:
    identity: FileIdentity
    extension: str
    revision_key: str
    version: int = 0
    # Size of the requested entry: the retained version for a versioned path
    size: int = 0


def supports_format(extension: str, supported: AbstractSet[str] = SUPPORTED_EXTENSIONS) -> bool:
    """True if the document server is asked to handle files with this extension."""
    return (extension or "").lower() in supported


def resolve(
    path: str,
    owner_id: str,
    storage: StorageLookup,
    versions: Optional[VersionHistory] = None,
    *,
    instance_id: str = "docbridge",
    supported: AbstractSet[str] = SUPPORTED_EXTENSIONS,
) -> Optional[ResolvedFile]:
    """Resolve path under owner_id's home. Returns None when no conversion is possible."""
    ref = split_path_version(path)
    if ref.version_token is not None and versions is None:
        log.debug("resolve path=%s: version history is not available", path)
        return None

    version = 0
    try:
        # The requested entry itself must exist and have content
        requested = storage.get_file_info(owner_id, path)
        if requested.size == 0:
            log.debug("resolve path=%s: empty file", path)
            return None

        if ref.version_token is None:
            identity = requested
            fingerprint = file_key(instance_id, identity)
        else:
            source = storage.source_path(owner_id, ref.base_path)
            if source is None:
                log.debug("resolve path=%s: not in the version area", path)
                return None
            identity = storage.get_file_info(owner_id, source)
            match: Optional[VersionDescriptor] = None
            for descriptor in versions.get_versions(owner_id, identity):
                version += 1
                if descriptor.revision_id == ref.version_token:
                    match = descriptor
                    break
            if match is None:
                log.info(
                    "resolve path=%s: revision %s not in history of file %s",
                    path, ref.version_token, identity.file_id,
                )
                return None
            fingerprint = version_key(instance_id, identity, match)
    except (OSError, ValueError) as e:
        log.debug("resolve path=%s owner=%s failed: %s", path, owner_id, e)
        return None

    extension = identity.extension.lower()
    if not supports_format(extension, supported):
        log.debug("resolve path=%s: unsupported extension %r", path, extension)
        return None

    return ResolvedFile(
        identity=identity,
        extension=extension,
        revision_key=generate_revision_id(fingerprint),
        version=version,
        size=requested.size,
    )
