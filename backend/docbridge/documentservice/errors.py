"""Errors raised while talking to the document server."""

from typing import Optional

# Conversion service "error" codes
CONVERSION_ERRORS = {
    -1: "Unknown error",
    -2: "Timeout conversion error",
    -3: "Conversion error",
    -4: "Error while downloading the document file to be converted",
    -5: "Incorrect password",
    -6: "Error while accessing the conversion result database",
    -7: "Input error",
    -8: "Invalid token",
}

# Command service "error" codes
COMMAND_ERRORS = {
    1: "Document key is missing or no document with such key could be found",
    2: "Callback url not correct",
    3: "Internal server error",
    4: "No changes were applied to the document before the forcesave command was received",
    5: "Command not correct",
    6: "Invalid token",
}


class DocumentServiceError(Exception):
    """Transport or protocol failure talking to the document server."""


class ConversionError(DocumentServiceError):
    """The conversion service answered with an error code."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message or CONVERSION_ERRORS.get(code, f"ErrorCode = {code}"))


class CommandError(DocumentServiceError):
    """The command service answered with an error code."""

    def __init__(self, code: int, message: Optional[str] = None) -> None:
        self.code = code
        super().__init__(message or COMMAND_ERRORS.get(code, f"ErrorCode = {code}"))
