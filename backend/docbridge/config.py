"""Configuration from environment (no hardcoded secrets)."""

from pathlib import Path
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Bridge settings from env."""

    model_config = SettingsConfigDict(env_prefix="DOCBRIDGE_", extra="ignore")

    # Host storage: <base>/<owner>/files and <base>/<owner>/files_versions
    storage_base_path: Path = Path("/mnt/shared_storage/docbridge")

    # Keyed hash for callback links and host access tokens
    jwt_secret: str = ""
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Absolute origin of this service as seen by end users (used to build callback URLs)
    public_base_url: str = "http://localhost:8080"
    # Origin the document server uses to reach us when it differs from public_base_url
    storage_url: str = ""

    # Document server
    document_server_url: str = ""
    document_server_internal_url: str = ""
    document_server_secret: str = ""
    jwt_header: str = "Authorization"
    verify_peer_off: bool = False
    request_timeout: float = 120.0

    # Previews
    preview_enabled: bool = True
    thumb_size_limit: int = 100 * 1024 * 1024

    # Prefix for revision keys so two installations never share a document server cache entry
    instance_id: str = "docbridge"

    # Comma-separated user ids allowed to use the viewer (empty = everyone)
    allowed_users: str = ""

    # CORS: comma-separated string so pydantic-settings does not try to JSON-decode it
    cors_origins: str = "http://localhost:8080"

    # Result of the last connectivity check (written by documentserver-test)
    state_path: Path = Path("/data/docbridge_state.json")

    # Logging (empty log_file = stderr only; level DEBUG|INFO|WARNING|ERROR)
    log_level: str = "INFO"
    log_file: str = ""

    @field_validator("public_base_url", "storage_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")

    @field_validator("document_server_url", "document_server_internal_url")
    @classmethod
    def _ensure_trailing_slash(cls, v: str) -> str:
        v = (v or "").strip()
        if v and not v.endswith("/"):
            v += "/"
        return v

    @property
    def cors_origins_list(self) -> List[str]:
        """CORS origins as a list (split on comma)."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()] or [
            "http://localhost:8080"
        ]

    @property
    def allowed_users_list(self) -> List[str]:
        """Viewer allow-list as a list; empty means no restriction."""
        return [u.strip() for u in self.allowed_users.split(",") if u.strip()]

    @property
    def document_server_internal(self) -> str:
        """URL used for server-to-server calls; falls back to the public document server URL."""
        return self.document_server_internal_url or self.document_server_url


def get_settings() -> Settings:
    """Return application settings."""
    return Settings()
