"""Lightweight persistent store for user preferences.

Each key maps to one JSON file under the preferences directory. Values are
read back as decoded JSON; a missing, unreadable or corrupted file reads as
``None`` so callers can fall through to defaults.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from .config import PREFERENCES_DIR, ensure_data_directories

logger = logging.getLogger(__name__)


def _safe_key(key: str) -> str:
    cleaned = ''.join(c for c in key if c.isalnum() or c in {'_', '-', '.'})
    cleaned = cleaned.strip('.')
    if not cleaned:
        raise ValueError(f"Invalid preference key: {key!r}")
    return cleaned


class PreferenceStore:
    """JSON-file backed key/value store."""

    def __init__(self, directory: Optional[Path] = None):
        """Initialize the store.

        Args:
            directory: Optional custom directory for preference files.
                       Defaults to PREFERENCES_DIR from config, which is
                       created along with the other data directories.
        """
        if directory is None:
            ensure_data_directories()
            directory = PREFERENCES_DIR
        self.directory = Path(directory)

    def get_path(self, key: str) -> Path:
        return self.directory / f"{_safe_key(key)}.json"

    def exists(self, key: str) -> bool:
        return self.get_path(key).exists()

    def get(self, key: str) -> Optional[Any]:
        target = self.get_path(key)
        if not target.exists():
            return None
        try:
            with target.open('r', encoding='utf-8') as handle:
                return json.load(handle)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable preference %s: %s", key, e)
            return None

    def set(self, key: str, value: Any) -> None:
        target = self.get_path(key)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            with target.open('w', encoding='utf-8') as handle:
                json.dump(value, handle, indent=2, sort_keys=True)
        except OSError as e:
            raise OSError(f"Failed to save preference to {target}: {e}") from e

    def delete(self, key: str) -> None:
        target = self.get_path(key)
        if not target.exists():
            return
        try:
            target.unlink()
        except OSError as e:
            raise OSError(f"Failed to delete preference file {target}: {e}") from e
