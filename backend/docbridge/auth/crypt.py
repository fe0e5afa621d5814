"""Keyed hash service for signed callback links.

Links handed to the document server carry their authorization inside a
single opaque token instead of relying on a session. The token is an HS256
JWT over the request fields, so it can be verified (and decoded) only with
the shared secret.
"""

import logging
from typing import Any, Mapping, Optional, Tuple

from jose import JWTError, jwt

from docbridge.config import Settings

log = logging.getLogger(__name__)


class Crypt:
    """Produce and read tokens that authenticate a mapping of request fields."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        if not secret:
            raise ValueError("Hash secret is not configured")
        self._secret = secret
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "Crypt":
        return cls(settings.jwt_secret, settings.jwt_algorithm)

    def get_hash(self, data: Mapping[str, Any]) -> str:
        """Sign data. Key order is preserved, so callers control the serialized form."""
        return jwt.encode(dict(data), self._secret, algorithm=self._algorithm)

    def read_hash(self, token: str) -> Tuple[Optional[dict[str, Any]], Optional[str]]:
        """Return (data, None) for a valid token, (None, error) otherwise."""
        if not token:
            return None, "Hash is empty"
        try:
            data = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as e:
            log.debug("read_hash rejected token: %s", e)
            return None, "Invalid hash"
        return data, None
