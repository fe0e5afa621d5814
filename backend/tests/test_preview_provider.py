"""Tests for the thumbnail provider."""

from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import pytest

from docbridge.auth.crypt import Crypt
from docbridge.config import Settings
from docbridge.documentservice.client import DocumentServiceClient
from docbridge.documentservice.errors import ConversionError, DocumentServiceError
from docbridge.files.models import FileIdentity, VersionDescriptor
from docbridge.preview.provider import ThumbnailProvider


def _file(path: str, ext: str = "docx", size: int = 2048) -> FileIdentity:
    return FileIdentity(file_id=42, path=path, extension=ext, owner_id="alice", size=size, etag="etag")


class _Storage:
    def __init__(self, *files: FileIdentity) -> None:
        self.files = {f.path: f for f in files}

    def get_file_info(self, owner_id, relative_path):
        if relative_path not in self.files:
            raise FileNotFoundError(relative_path)
        return self.files[relative_path]

    def source_path(self, owner_id, version_base_path):
        if version_base_path.startswith("files_versions/"):
            return "files/" + version_base_path[len("files_versions/"):]
        return None


class _Versions:
    def get_versions(self, owner_id, identity):
        return [VersionDescriptor(revision_id=r) for r in ("30", "20", "10")]


@pytest.fixture
def settings(secret: str) -> Settings:
    return Settings(
        jwt_secret=secret,
        public_base_url="https://cloud.example.com",
        document_server_url="https://docs.example.com",
        preview_enabled=True,
        thumb_size_limit=10_000,
    )


@pytest.fixture
def client() -> MagicMock:
    c = MagicMock(spec=DocumentServiceClient)
    c.get_converted_uri.return_value = "https://docs.example.com/cache/thumb.jpeg"
    c.request.return_value = b"\xff\xd8jpeg"
    return c


def _provider(settings, client, secret, *files) -> ThumbnailProvider:
    storage = _Storage(*(files or (_file("files/report.docx"),)))
    return ThumbnailProvider(settings, storage, _Versions(), Crypt(secret), client)


def test_get_thumbnail_success(settings, client, secret) -> None:
    """Resolved file is converted to jpeg through a signed download link."""
    image = _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 128, 96, user_id="alice")

    assert image == b"\xff\xd8jpeg"
    args = client.get_converted_uri.call_args.args
    kwargs = client.get_converted_uri.call_args.kwargs
    assert args[0].startswith("https://cloud.example.com/callback/download?doc=")
    assert args[1:3] == ("docx", "jpeg")
    assert args[3]
    assert kwargs["thumbnail"] == {"aspect": 1, "first": True, "height": 96, "width": 128}
    client.request.assert_called_once_with("https://docs.example.com/cache/thumb.jpeg")


def test_versioned_thumbnail_signs_version(settings, client, secret) -> None:
    """A versioned path puts its ordinal into the signed link."""
    provider = _provider(
        settings, client, secret,
        _file("files/report.docx"), _file("files_versions/report.docx.v20"),
    )
    assert provider.get_thumbnail("alice", "files_versions/report.docx.v20", 64, 64, user_id="alice") is not None
    url = client.get_converted_uri.call_args.args[0]
    data, _ = Crypt(secret).read_hash(parse_qs(urlparse(url).query)["doc"][0])
    assert data == {
        "action": "download",
        "fileId": 42,
        "userId": "alice",
        "version": 2,
        "ownerId": "alice",
        "path": "files/report.docx",
    }


@pytest.mark.parametrize("error", [DocumentServiceError("timeout"), ConversionError(-2)])
def test_conversion_failure_degrades_to_no_preview(settings, client, secret, error) -> None:
    """Transport or conversion errors yield None."""
    client.get_converted_uri.side_effect = error
    assert _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 64, 64) is None
    client.request.assert_not_called()


def test_download_failure_degrades_to_no_preview(settings, client, secret) -> None:
    """A failing image download yields None."""
    client.request.side_effect = DocumentServiceError("502 Bad Gateway")
    assert _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 64, 64) is None


def test_unfinished_conversion(settings, client, secret) -> None:
    """An empty result URL yields None without downloading."""
    client.get_converted_uri.return_value = ""
    assert _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 64, 64) is None
    client.request.assert_not_called()


def test_preview_disabled(settings, client, secret) -> None:
    """With previews disabled the document server is never called."""
    settings.preview_enabled = False
    assert _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 64, 64) is None
    client.get_converted_uri.assert_not_called()


def test_document_server_not_configured(settings, client, secret) -> None:
    """Without a document server URL there is no preview."""
    settings.document_server_url = ""
    assert _provider(settings, client, secret).get_thumbnail("alice", "files/report.docx", 64, 64) is None
    client.get_converted_uri.assert_not_called()


def test_size_limit(settings, client, secret) -> None:
    """Files above thumb_size_limit are skipped."""
    provider = _provider(settings, client, secret, _file("files/big.docx", size=20_000))
    assert provider.get_thumbnail("alice", "files/big.docx", 64, 64) is None
    client.get_converted_uri.assert_not_called()


def test_unsupported_format(settings, client, secret) -> None:
    """Formats outside the allow-list are skipped."""
    provider = _provider(settings, client, secret, _file("files/notes.txt", ext="txt"))
    assert provider.get_thumbnail("alice", "files/notes.txt", 64, 64) is None
    client.get_converted_uri.assert_not_called()


def test_is_available(settings, client, secret) -> None:
    """is_available checks format and size bounds."""
    provider = _provider(settings, client, secret)
    assert provider.is_available(_file("files/a.xlsx", ext="xlsx")) is True
    assert provider.is_available(_file("files/a.pdf", ext="pdf")) is False
    assert provider.is_available(_file("files/a.docx", size=0)) is False
    assert provider.is_available(_file("files/a.docx", size=10_000)) is True


def test_version_size_limit_uses_version_size(settings, client, secret) -> None:
    """An oversized retained version is skipped even when the live file is small."""
    provider = _provider(
        settings, client, secret,
        _file("files/report.docx", size=100),
        _file("files_versions/report.docx.v20", size=20_000),
    )
    assert provider.get_thumbnail("alice", "files_versions/report.docx.v20", 64, 64) is None
    client.get_converted_uri.assert_not_called()


def test_small_version_of_large_file(settings, client, secret) -> None:
    """A small retained version is previewed even when the live file exceeds the limit."""
    provider = _provider(
        settings, client, secret,
        _file("files/report.docx", size=20_000),
        _file("files_versions/report.docx.v20", size=100),
    )
    assert provider.get_thumbnail("alice", "files_versions/report.docx.v20", 64, 64) == b"\xff\xd8jpeg"
