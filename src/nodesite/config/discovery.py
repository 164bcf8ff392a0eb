"""Locate the site's ``nodesite.toml``.

Lookup order:

1. ``NODESITE_CONFIG`` names the file explicitly.
2. ``nodesite.toml`` in the start directory, then in each parent.

The walk stops after the first directory holding a ``.git`` entry: a
website checkout never picks up a config from outside itself.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

CONFIG_FILENAME = "nodesite.toml"
CONFIG_ENV_VAR = "NODESITE_CONFIG"
CHECKOUT_MARKER = ".git"

logger = logging.getLogger(__name__)


def _candidates(start: Path) -> Iterator[Path]:
    for directory in (start, *start.parents):
        yield directory / CONFIG_FILENAME
        if (directory / CHECKOUT_MARKER).exists():
            return


def find_config(start: Path | None = None) -> Path | None:
    """Return the resolved config path for a site checkout, or None."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        path = Path(override).expanduser()
        if path.is_file():
            return path.resolve()
        logger.warning("%s=%s is not a file; ignoring it", CONFIG_ENV_VAR, override)
        return None

    origin = (start or Path.cwd()).resolve()
    return next((c for c in _candidates(origin) if c.is_file()), None)
