"""Viewer API route: assets the host should inject for the current user."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from docbridge.auth.dependencies import get_current_user_id
from docbridge.config import get_settings
from docbridge.settings_state import get_settings_error
from docbridge.viewer.hooks import load_viewer

router = APIRouter(prefix="/api/viewer", tags=["viewer"])
log = logging.getLogger(__name__)


@router.get("/assets")
async def viewer_assets(
    user_id: Annotated[str, Depends(get_current_user_id)],
) -> dict:
    """Return {scripts, styles, frame_domains} for the host viewer."""
    settings = get_settings()
    assets = load_viewer(settings, user_id, get_settings_error(settings.state_path))
    return {
        "scripts": assets.scripts,
        "styles": assets.styles,
        "frame_domains": assets.frame_domains,
    }
