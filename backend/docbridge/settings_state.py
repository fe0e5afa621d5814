"""Persisted result of the last document server connectivity check."""

import json
import logging
from pathlib import Path

log = logging.getLogger(__name__)


def get_settings_error(state_path: Path) -> str:
    """Return the stored error of the last check ("" if none or never checked)."""
    if not state_path.exists():
        return ""
    try:
        data = json.loads(state_path.read_text(encoding="utf-8"))
        return str(data.get("settings_error") or "")
    except (json.JSONDecodeError, OSError, AttributeError) as e:
        log.warning("Could not read state file %s: %s", state_path, e)
        return ""


def set_settings_error(state_path: Path, error: str) -> None:
    """Persist the error of the latest check ("" marks the settings as working)."""
    state_path.parent.mkdir(parents=True, exist_ok=True)
    state_path.write_text(json.dumps({"settings_error": error}, indent=2), encoding="utf-8")


def settings_are_successful(state_path: Path) -> bool:
    """True if the last connectivity check did not fail."""
    return not get_settings_error(state_path)
