"""HTTP client for the document server: conversion, command and health endpoints."""

import logging
import secrets
from typing import Any, Dict, Optional, Tuple

import httpx

from docbridge.auth.crypt import Crypt
from docbridge.config import Settings
from docbridge.documentservice.errors import CommandError, ConversionError, DocumentServiceError
from docbridge.documentservice.revision import generate_revision_id

log = logging.getLogger(__name__)

CONVERT_PATH = "ConvertService.ashx"
COMMAND_PATH = "coauthoring/CommandService.ashx"
HEALTHCHECK_PATH = "healthcheck"

# Document servers at or below this version lack the API used here
_MIN_SUPPORTED_VERSION = 6.0


def _extension_from_url(url: str) -> str:
    name = url.split("?", 1)[0].rsplit("/", 1)[-1]
    return name.rsplit(".", 1)[-1].lower() if "." in name else ""


def _parse_version(version: str) -> float:
    """Leading "major.minor" of a version string as a float; 0.0 if unparsable."""
    parts = version.strip().split(".")
    try:
        return float(".".join(parts[:2]))
    except ValueError:
        return 0.0


class DocumentServiceClient:
    """
    Client for the document server. Every call is a single blocking request;
    retries and backoff are left to the caller.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._signer: Optional[Crypt] = (
            Crypt(settings.document_server_secret) if settings.document_server_secret else None
        )
        log.debug("Document service client base_url=%s", settings.document_server_internal)

    def _base_url(self) -> str:
        base = self._settings.document_server_internal
        if not base:
            raise DocumentServiceError("Document server is not configured")
        return base

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._settings.request_timeout,
            verify=not self._settings.verify_peer_off,
        )

    def _sign(self, body: Dict[str, Any], headers: Dict[str, str]) -> Dict[str, Any]:
        """Add the JWT header and body token when a document server secret is set."""
        if self._signer is None:
            return body
        headers[self._settings.jwt_header] = "Bearer " + self._signer.get_hash({"payload": body})
        return {**body, "token": self._signer.get_hash(body)}

    def _post_json(self, url: str, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        signed = self._sign(body, headers)
        try:
            with self._client() as client:
                r = client.post(url, json=signed, headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPError as e:
            log.warning("POST %s failed: %s", url, e)
            raise DocumentServiceError(f"Request to document server failed: {e}") from e
        except ValueError as e:
            log.warning("POST %s returned invalid JSON: %s", url, e)
            raise DocumentServiceError("Document server returned an invalid response") from e
        if not isinstance(data, dict):
            raise DocumentServiceError("Document server returned an invalid response")
        return data

    def request(self, url: str) -> bytes:
        """GET url and return the body. Non-success status or transport errors raise."""
        log.debug("GET %s", url)
        try:
            with self._client() as client:
                r = client.get(url)
                r.raise_for_status()
                return r.content
        except httpx.HTTPError as e:
            log.warning("GET %s failed: %s", url, e)
            raise DocumentServiceError(f"Request failed: {e}") from e

    def send_request_to_convert_service(
        self,
        document_uri: str,
        from_extension: Optional[str],
        to_extension: str,
        document_revision_id: Optional[str],
        *,
        is_async: bool = False,
        thumbnail: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """POST a conversion job and return the raw JSON answer."""
        url = self._base_url() + CONVERT_PATH
        key = generate_revision_id(document_revision_id or document_uri)
        file_type = (from_extension or "").strip(".").lower() or _extension_from_url(document_uri)
        body: Dict[str, Any] = {
            "async": is_async,
            "url": document_uri,
            "outputtype": to_extension.strip("."),
            "filetype": file_type,
            "title": f"{key}.{file_type}",
            "key": key,
        }
        if thumbnail:
            body["thumbnail"] = thumbnail
        log.debug("convert key=%s %s -> %s", key, file_type, body["outputtype"])
        return self._post_json(url, body)

    def get_converted_uri(
        self,
        document_uri: str,
        from_extension: Optional[str],
        to_extension: str,
        document_revision_id: Optional[str],
        *,
        thumbnail: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Convert synchronously and return the URL of the result.
        Returns "" while the conversion is still running; raises ConversionError on error codes.
        """
        data = self.send_request_to_convert_service(
            document_uri, from_extension, to_extension, document_revision_id,
            thumbnail=thumbnail,
        )
        error = data.get("error")
        if error:
            try:
                code = int(error)
            except (TypeError, ValueError):
                code = -1
            raise ConversionError(code)
        end_convert = data.get("endConvert")
        if end_convert is True or str(end_convert).lower() == "true":
            return str(data.get("fileUrl") or "")
        return ""

    def healthcheck(self) -> bool:
        """True if the document server answers its health endpoint with "true"."""
        url = self._base_url() + HEALTHCHECK_PATH
        return self.request(url).decode("utf-8", errors="replace").strip().lower() == "true"

    def command(self, method: str) -> Dict[str, Any]:
        """Run a command service method (e.g. "version"); non-zero error codes raise."""
        url = self._base_url() + COMMAND_PATH
        data = self._post_json(url, {"c": method})
        try:
            code = int(data.get("error") or 0)
        except (TypeError, ValueError):
            code = 3
        if code:
            raise CommandError(code)
        return data

    def check_doc_service_url(self, empty_file_url: str) -> Tuple[str, str]:
        """
        Check the connection end to end. Returns (error, version); error is "" on success.
        Steps: healthcheck, version command, docx conversion of empty_file_url, result download.
        """
        version = ""
        try:
            if not self.healthcheck():
                raise DocumentServiceError("Bad healthcheck status")
        except DocumentServiceError as e:
            log.error("Healthcheck failed: %s", e)
            return str(e), version

        try:
            data = self.command("version")
            version = str(data.get("version") or "")
            parsed = _parse_version(version)
            if 0.0 < parsed <= _MIN_SUPPORTED_VERSION:
                raise DocumentServiceError("Not supported version")
        except DocumentServiceError as e:
            log.error("Version command failed: %s", e)
            return str(e), version

        try:
            converted = self.get_converted_uri(
                empty_file_url, "docx", "docx", f"check_{secrets.randbelow(10 ** 9)}",
            )
            if not converted:
                raise DocumentServiceError("Conversion did not finish")
            self.request(converted)
        except DocumentServiceError as e:
            log.error("Conversion check failed: %s", e)
            return f"Error occurred in the document service: {e}", version

        return "", version
