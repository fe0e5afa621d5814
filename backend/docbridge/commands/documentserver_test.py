#!/usr/bin/env python3
"""Test the connection to the document server configured in the environment.
Run: docbridge-documentserver-test (exit code 0 when connected)."""

import logging
import sys
from typing import Callable

from docbridge.auth.crypt import Crypt
from docbridge.config import Settings, get_settings
from docbridge.documentservice.client import DocumentServiceClient
from docbridge.documentservice.links import build_empty_file_url
from docbridge.logging_config import setup_logging
from docbridge.settings_state import set_settings_error

log = logging.getLogger(__name__)


def run(
    settings: Settings,
    client: DocumentServiceClient,
    out: Callable[[str], None] = print,
) -> int:
    """Run the check, store its outcome and report it. Returns the process exit code."""
    host = settings.document_server_url
    if not host:
        out("Document server is not configured")
        return 1

    try:
        crypt = Crypt.from_settings(settings)
    except ValueError as e:
        out(f"Error connection: {e}")
        return 1

    error, version = client.check_doc_service_url(build_empty_file_url(crypt, settings))
    try:
        set_settings_error(settings.state_path, error)
    except OSError as e:
        log.warning("Could not store check result in %s: %s", settings.state_path, e)

    if error:
        out(f"Error connection: {error}")
        return 1
    out(f"Document server {host} version {version} is successfully connected")
    return 0


def main() -> None:
    setup_logging()
    settings = get_settings()
    sys.exit(run(settings, DocumentServiceClient(settings)))


if __name__ == "__main__":
    main()
