"""Tests for the storage adapter: path resolution and file metadata."""

import hashlib
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from docbridge.files.storage import LocalStorage, compute_hash, get_storage


def test_owner_path() -> None:
    """Owner home is base / owner."""
    storage = LocalStorage(Path("/mnt/shared_storage/docbridge"))
    assert storage.owner_path("alice@example.com") == Path("/mnt/shared_storage/docbridge/alice@example.com")


def test_owner_path_rejects_invalid_owner() -> None:
    """Owner id with slash or empty raises ValueError."""
    storage = LocalStorage(Path("/data"))
    with pytest.raises(ValueError, match="Invalid owner"):
        storage.owner_path("")
    with pytest.raises(ValueError):
        storage.owner_path("user/../etc")


def test_resolve_rejects_traversal() -> None:
    """Relative path with .. raises ValueError."""
    with pytest.raises(ValueError):
        LocalStorage(Path("/data")).resolve("alice", "../../etc/passwd")


def test_resolve_rejects_unsafe_segment() -> None:
    """Path segment with invalid characters (e.g. percent, NUL) raises ValueError."""
    storage = LocalStorage(Path("/data"))
    with pytest.raises(ValueError, match="Unsafe path segment"):
        storage.resolve("alice", "file%;.docx")
    with pytest.raises(ValueError, match="Unsafe path segment"):
        storage.resolve("alice", "files/file\x00name.docx")


def test_resolve_accepts_spaces_and_parens() -> None:
    """Safe segment with spaces and parentheses (e.g. 'Report (1).docx') is accepted."""
    got = LocalStorage(Path("/data")).resolve("alice", "files/Report (1).docx")
    assert got == Path("/data/alice/files/Report (1).docx")


def test_get_file_info(tmp_path) -> None:
    """Metadata carries inode id, lower-case extension, size and SHA-256 etag."""
    target = tmp_path / "alice" / "files" / "Report.DOCX"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"content")
    info = LocalStorage(tmp_path).get_file_info("alice", "files/Report.DOCX")
    assert info.file_id == target.stat().st_ino
    assert info.path == "files/Report.DOCX"
    assert info.extension == "docx"
    assert info.owner_id == "alice"
    assert info.size == 7
    assert info.etag == hashlib.sha256(b"content").hexdigest()


def test_get_file_info_missing(tmp_path) -> None:
    """Missing file or a directory raises FileNotFoundError."""
    (tmp_path / "alice" / "files").mkdir(parents=True)
    storage = LocalStorage(tmp_path)
    with pytest.raises(FileNotFoundError):
        storage.get_file_info("alice", "files/nope.docx")
    with pytest.raises(FileNotFoundError):
        storage.get_file_info("alice", "files")


def test_compute_hash(tmp_path) -> None:
    """compute_hash is the SHA-256 of the file body."""
    f = tmp_path / "a.bin"
    f.write_bytes(b"\x00" * 3_000_000)
    assert compute_hash(f) == hashlib.sha256(b"\x00" * 3_000_000).hexdigest()


def test_source_path() -> None:
    """Version-area paths map back to the primary area."""
    storage = LocalStorage(Path("/data"))
    assert storage.source_path("alice", "files_versions/a/report.docx") == "files/a/report.docx"
    assert storage.source_path("alice", "files/report.docx") is None
    assert storage.source_path("alice", "files_versions") is None


def test_get_file_info_outside_areas(tmp_path) -> None:
    """Files directly in the owner's home are outside files and files_versions."""
    home = tmp_path / "alice"
    home.mkdir()
    (home / "report.docx").write_bytes(b"x")
    with pytest.raises(ValueError, match="outside the files areas"):
        LocalStorage(tmp_path).get_file_info("alice", "report.docx")


def test_get_live_file(tmp_path) -> None:
    """get_live_file returns the file only while path and id still match."""
    target = tmp_path / "bob" / "files" / "sub" / "b.xlsx"
    target.parent.mkdir(parents=True)
    target.write_bytes(b"sheet")
    storage = LocalStorage(tmp_path)
    info = storage.get_file_info("bob", "files/sub/b.xlsx")

    live = storage.get_live_file("bob", "files/sub/b.xlsx", info.file_id)
    assert live is not None
    assert live.path == "files/sub/b.xlsx"
    assert live.owner_id == "bob"
    assert live.size == 5
    assert live.etag == ""

    assert storage.get_live_file("bob", "files/sub/b.xlsx", info.file_id + 1) is None
    assert storage.get_live_file("alice", "files/sub/b.xlsx", info.file_id) is None
    assert storage.get_live_file("bob", "files/sub/missing.xlsx", info.file_id) is None
    assert storage.get_live_file("bob", "files_versions/sub/b.xlsx.v1", info.file_id) is None
    assert storage.get_live_file("../etc", "files/sub/b.xlsx", info.file_id) is None


def test_get_storage_uses_settings(monkeypatch) -> None:
    """get_storage is rooted at storage_base_path."""
    from docbridge.files import storage as storage_mod
    mock_settings = MagicMock()
    mock_settings.storage_base_path = Path("/srv/files")
    monkeypatch.setattr(storage_mod, "get_settings", lambda: mock_settings)
    assert get_storage().base_path == Path("/srv/files")
