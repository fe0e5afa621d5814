"""Revision keys: the document server's cache key for one content state of a file."""

import re
import zlib

from docbridge.files.models import FileIdentity, VersionDescriptor

# The document server accepts at most 20 characters from this set
_MAX_KEY_LENGTH = 20
_UNSAFE_KEY_CHARS = re.compile(r"[^0-9\-.a-zA-Z_=]")


def generate_revision_id(expected_key: str) -> str:
    """Normalize any fingerprint into a key the document server accepts.

    Long inputs collapse to their unsigned CRC32 (decimal) before unsafe
    characters are replaced and the result is cut to 20 characters.
    """
    if len(expected_key) > _MAX_KEY_LENGTH:
        expected_key = str(zlib.crc32(expected_key.encode("utf-8")))
    key = _UNSAFE_KEY_CHARS.sub("_", expected_key)
    return key[:_MAX_KEY_LENGTH]


def file_key(instance_id: str, identity: FileIdentity) -> str:
    """Fingerprint of the live content of a file."""
    return f"{instance_id}_{identity.file_id}_{identity.etag}"


def version_key(instance_id: str, identity: FileIdentity, version: VersionDescriptor) -> str:
    """Fingerprint of one retained version of a file."""
    return f"{instance_id}_{identity.file_id}_{identity.etag}_{version.revision_id}"
