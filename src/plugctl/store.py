"""Persisted list of explicitly enabled plugins.

The file holds a single JSON list of plugin names. Order carries no meaning;
it is read back as a set and written sorted.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, Set, Union

from .models import PlugctlError

logger = logging.getLogger(__name__)


class StateStoreError(PlugctlError):
    """The enabled plugins file could not be read or written."""
    pass


class EnabledPluginsStore:
    """Reads and writes the enabled plugins file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def read_enabled(self) -> Set[str]:
        """Return the explicitly enabled plugins; empty if the file is absent."""
        if not self.path.exists():
            return set()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StateStoreError(f"Cannot read enabled plugins file {self.path}: {e}")

        if not isinstance(data, list) or not all(isinstance(n, str) for n in data):
            raise StateStoreError(
                f"Malformed enabled plugins file {self.path}: expected a list of names"
            )
        return set(data)

    def write_enabled(self, names: Iterable[str]) -> Path:
        """Replace the file contents with ``names``.

        The new content is written to a sibling temporary file and moved into
        place, so a failed write leaves the old file as it was.
        """
        payload = json.dumps(sorted(set(names)), indent=2) + "\n"
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StateStoreError(f"Cannot write enabled plugins file {self.path}: {e}")

        logger.debug("Wrote enabled plugins to %s: %s", self.path, payload.strip())
        return self.path
