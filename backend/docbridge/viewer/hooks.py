"""Viewer extension point: front-end assets and frame policy for the host viewer."""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from docbridge.config import Settings

log = logging.getLogger(__name__)

VIEWER_SCRIPTS = ["viewer", "listener"]
VIEWER_STYLES = ["viewer"]
# The editor opens in a frame served from this origin
FRAME_DOMAINS = ["'self'"]


@dataclass
class ViewerAssets:
    scripts: List[str] = field(default_factory=list)
    styles: List[str] = field(default_factory=list)
    frame_domains: List[str] = field(default_factory=lambda: list(FRAME_DOMAINS))


def is_user_allowed(settings: Settings, user_id: Optional[str]) -> bool:
    allowed = settings.allowed_users_list
    if not allowed:
        return True
    return bool(user_id) and user_id in allowed


def load_viewer(settings: Settings, user_id: Optional[str], settings_error: str = "") -> ViewerAssets:
    """Called by the host when its viewer loads.

    Scripts and styles are injected only for a configured, working document
    server and an allowed user. The frame policy applies regardless.
    """
    assets = ViewerAssets()
    if settings.document_server_url and not settings_error and is_user_allowed(settings, user_id):
        assets.scripts.extend(VIEWER_SCRIPTS)
        assets.styles.extend(VIEWER_STYLES)
    else:
        log.debug("load_viewer user=%s: assets not injected", user_id)
    return assets


def frame_src_policy(frame_domains: List[str]) -> str:
    """Content-Security-Policy value allowing the given frame domains."""
    return "frame-src " + " ".join(frame_domains)
