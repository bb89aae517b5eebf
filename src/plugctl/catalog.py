"""Plugin catalog reader.

Scans a plugins directory for manifests. Two layouts are recognised:

- ``<plugins_dir>/<name>/plugin.json``
- ``<plugins_dir>/<name>.json``

A manifest is a JSON object with ``name``, ``version``, ``description`` and
``dependencies`` keys; ``name`` defaults to the directory or file stem.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Union

from .models import Plugin, PlugctlError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "plugin.json"


class CatalogError(PlugctlError):
    """The plugins directory or one of its manifests could not be read."""
    pass


class CatalogReader:
    """Reads the available plugins from a directory.

    Every call to ``list`` rescans the directory.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def _load_manifest(self, path: Path, default_name: str) -> Plugin:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Cannot read plugin manifest {path}: {e}")

        if not isinstance(data, dict):
            raise CatalogError(f"Invalid plugin manifest {path}: expected an object")
        deps = data.get("dependencies", [])
        if not isinstance(deps, list):
            raise CatalogError(f"Invalid plugin manifest {path}: 'dependencies' must be a list")

        return Plugin.from_dict(data, default_name=default_name)

    def list(self) -> List[Plugin]:
        """Return the available plugins sorted by (name, version)."""
        if not self.directory.is_dir():
            logger.warning("Plugins directory %s does not exist", self.directory)
            return []

        plugins: List[Plugin] = []
        try:
            entries = sorted(self.directory.iterdir())
        except OSError as e:
            raise CatalogError(f"Cannot read plugins directory {self.directory}: {e}")

        for entry in entries:
            if entry.is_dir():
                manifest = entry / MANIFEST_NAME
                if manifest.is_file():
                    plugins.append(self._load_manifest(manifest, entry.name))
            elif entry.suffix == ".json":
                plugins.append(self._load_manifest(entry, entry.stem))

        plugins.sort(key=Plugin.sort_key)
        logger.debug("Catalog %s: %d plugin(s)", self.directory, len(plugins))
        return plugins
