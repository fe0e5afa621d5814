from typing import List, Optional, Protocol

from docbridge.files.models import FileIdentity, VersionDescriptor


class StorageLookup(Protocol):
    def get_file_info(self, owner_id: str, relative_path: str) -> FileIdentity:
        """Metadata for a file under the owner's home.

        Raises FileNotFoundError when missing and ValueError for unsafe paths.
        """

    def source_path(self, owner_id: str, version_base_path: str) -> Optional[str]:
        """Primary-area path behind a version-area path, or None if it is not one."""


class VersionHistory(Protocol):
    def get_versions(self, owner_id: str, identity: FileIdentity) -> List[VersionDescriptor]:
        """Retained versions of identity, newest first."""
