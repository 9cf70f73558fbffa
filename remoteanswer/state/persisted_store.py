"""
Persisted Store.

Synchronous key-value storage for serialized collections. No transactions
and no schema versioning: every write replaces the whole value.
"""

import logging
import os
import re
from typing import Dict, Optional

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryStore:
    """Store kept in a dict. Lost when the process exits."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """
    Store backed by one file per key.

    Handles:
    - <store_root>/<key>.json, holding the raw serialized value
    """

    def __init__(self, store_root: str):
        """
        Initialize file store.

        Args:
            store_root: Directory holding one file per key
        """
        self.store_root = str(store_root)

        # Create directory if it doesn't exist
        os.makedirs(self.store_root, exist_ok=True)

        logger.info(f"Initialized JsonFileStore with store_root={self.store_root}")

    def _path(self, key: str) -> str:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid store key: '{key}'")
        return os.path.join(self.store_root, f"{key}.json")

    def get(self, key: str) -> Optional[str]:
        """
        Read the raw value for a key.

        Returns:
            Stored text, or None if the key has never been written
        """
        filepath = self._path(key)

        if not os.path.exists(filepath):
            logger.debug(f"No stored value for {key}")
            return None

        with open(filepath, 'r', encoding='utf-8') as f:
            return f.read()

    def set(self, key: str, value: str) -> None:
        """
        Replace the value for a key.

        Writes to a temp file and renames it over the old value so a crash
        mid-write leaves the previous value intact.
        """
        filepath = self._path(key)
        temp_path = f"{filepath}.tmp"

        try:
            with open(temp_path, 'w', encoding='utf-8') as f:
                f.write(value)
            os.replace(temp_path, filepath)
            logger.debug(f"Saved {key} ({len(value)} chars)")

        except Exception as e:
            logger.error(f"Failed to save {key}: {e}")
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
