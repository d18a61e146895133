"""Preferences manager for secrets-browser.

Persistent user preferences live in the XDG config directory:
~/.config/secrets-browser/preferences.json
"""
import json
from pathlib import Path
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

PREFERENCES_DIR = Path.home() / ".config" / "secrets-browser"
PREFERENCES_FILE = PREFERENCES_DIR / "preferences.json"


def _load_preferences() -> Dict[str, Any]:
    """
    Load preferences from JSON file.

    Returns:
        Dictionary of preferences, or empty dict if the file is missing or unreadable
    """
    if not PREFERENCES_FILE.exists():
        return {}

    try:
        with open(PREFERENCES_FILE, 'r') as f:
            preferences = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse preferences file {PREFERENCES_FILE}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Failed to read preferences file {PREFERENCES_FILE}: {e}")
        return {}

    if not isinstance(preferences, dict):
        logger.error(f"Ignoring preferences file {PREFERENCES_FILE}: top level is not an object")
        return {}
    return preferences


def _save_preferences(preferences: Dict[str, Any]) -> None:
    PREFERENCES_DIR.mkdir(parents=True, exist_ok=True)
    try:
        with open(PREFERENCES_FILE, 'w') as f:
            json.dump(preferences, f, indent=2)
    except OSError as e:
        logger.error(f"Failed to save preferences to {PREFERENCES_FILE}: {e}")
        raise


def get_preference(key: str) -> Optional[str]:
    """Get preference value by key, or None if unset."""
    return _load_preferences().get(key)


def set_preference(key: str, value: str) -> None:
    preferences = _load_preferences()
    preferences[key] = value
    _save_preferences(preferences)
    logger.info(f"Preference '{key}' set to: {value}")


def clear_preference(key: str) -> None:
    """Remove a preference. No-op if it is not set."""
    preferences = _load_preferences()
    if key in preferences:
        del preferences[key]
        _save_preferences(preferences)
        logger.info(f"Preference '{key}' cleared")
    else:
        logger.debug(f"Preference '{key}' not found, nothing to clear")


def get_all_preferences() -> Dict[str, Any]:
    return _load_preferences()
