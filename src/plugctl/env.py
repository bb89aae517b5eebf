"""Loading PLUGCTL_* settings from .env files.

Only keys carrying the ``PLUGCTL_`` prefix are picked up, so a project's
unrelated .env entries never leak into the process. Variables already set in
the environment always win.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Tuple

logger = logging.getLogger(__name__)

ENV_PREFIX = "PLUGCTL_"


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def iter_env_lines(text: str) -> Iterator[Tuple[str, str]]:
    """Yield (key, value) pairs from .env text.

    Accepts ``KEY=value``, ``export KEY=value``, quoted values, blank lines
    and ``#`` comments.
    """
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        yield key, _unquote(value.strip())


def read_env_file(path: Path) -> Dict[str, str]:
    """Return the PLUGCTL_* entries of one .env file."""
    if not path.is_file():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.warning("Ignoring unreadable env file %s: %s", path, e)
        return {}
    return {k: v for k, v in iter_env_lines(text) if k.startswith(ENV_PREFIX)}


def load_env_files(paths: Iterable[Path]) -> Dict[str, str]:
    """Export PLUGCTL_* entries from ``paths`` into ``os.environ``.

    Later files override earlier ones; existing variables are never
    overwritten. Returns what was exported.
    """
    combined: Dict[str, str] = {}
    for path in paths:
        combined.update(read_env_file(path))

    exported = {}
    for key, value in combined.items():
        if key not in os.environ:
            os.environ[key] = value
            exported[key] = value
    return exported
