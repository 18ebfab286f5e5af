"""Key-value backends for the form store.

The store persists whole JSON documents under string keys, the way a
browser's local storage does. ``FileBackend`` keeps one JSON file per key;
``MemoryBackend`` keeps everything in a dict.
"""

import logging
import re
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from form_builder.exceptions import FormStorageError

logger = logging.getLogger(__name__)

# Keys become file names, so keep them to a safe character set
_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


@runtime_checkable
class KeyValueBackend(Protocol):
    """Abstract key-value storage used by FormStore.

    Implementations raise FormStorageError when a key cannot be read or
    written.
    """

    def get(self, key: str) -> Optional[str]:
        """Return the stored text, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        """Store text under a key, replacing any previous value."""
        ...

    def delete(self, key: str) -> None:
        """Remove a key; absent keys are ignored."""
        ...


class MemoryBackend:
    """In-process backend, mainly for tests and embedding."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileBackend:
    """Filesystem backend storing each key as ``{root}/{key}.json``.

    Writes go to a temporary file first and are moved into place, so a
    crash never leaves a half-written document behind.
    """

    def __init__(self, root: Path):
        """Initialize FileBackend.

        Args:
            root: Directory holding the key files (created on first write).
        """
        self.root = Path(root)

    def _path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise FormStorageError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FormStorageError(f"Failed to read {path}: {e}", original_error=e)

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(value)
            tmp_path.replace(path)
        except OSError as e:
            raise FormStorageError(f"Failed to write {path}: {e}", original_error=e)
        logger.debug(f"Wrote {len(value)} bytes to {path}")

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise FormStorageError(f"Failed to delete {path}: {e}", original_error=e)
