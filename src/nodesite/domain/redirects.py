"""Redirect table accumulation and locale expansion.

Pairs accumulate in an ordered table where the last write for a path
wins. Expansion turns each pair into one locale-less entry followed by
one entry per locale.

Entries are permanent and browser-redirecting with status 200. Do not
change the status to 301; the hosting CDN loops on it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import TYPE_CHECKING

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

if TYPE_CHECKING:
    from nodesite.config.models import PathsConfig

logger = logging.getLogger(__name__)

_ABSOLUTE_URL_RE = re.compile(r"^//|https?://")

REDIRECT_STATUS_CODE = 200


class RedirectEntry(BaseModel):
    """One registered redirect."""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    from_path: str
    to_path: str
    is_permanent: bool = True
    redirect_in_browser: bool = True
    status_code: int = REDIRECT_STATUS_CODE


class RedirectTable:
    """Ordered ``from -> to`` mapping. Re-adding a path overwrites it in place."""

    def __init__(self) -> None:
        self._pairs: dict[str, str] = {}

    def add(self, from_path: str, to_path: str) -> None:
        previous = self._pairs.get(from_path)
        if previous is not None and previous != to_path:
            logger.debug("Redirect %s overwritten: %s -> %s", from_path, previous, to_path)
        self._pairs[from_path] = to_path

    def update(self, pairs: Mapping[str, str]) -> None:
        for from_path, to_path in pairs.items():
            self.add(from_path, to_path)

    def items(self) -> Iterator[tuple[str, str]]:
        return iter(self._pairs.items())

    def __len__(self) -> int:
        return len(self._pairs)

    def __contains__(self, from_path: object) -> bool:
        return from_path in self._pairs

    def __getitem__(self, from_path: str) -> str:
        return self._pairs[from_path]


def is_absolute_url(url: str) -> bool:
    """Whether *url* points off-site (protocol-relative or http/https)."""
    return _ABSOLUTE_URL_RE.search(url) is not None


def localize_path(locale: str, url: str) -> str:
    """Prefix *url* with ``/<locale>`` unless it is an absolute URL."""
    return url if is_absolute_url(url) else f"/{locale}{url}"


def add_api_redirects(
    table: RedirectTable,
    api_pairs: Iterable[tuple[str, str]],
    *,
    latest: str | None,
    paths: PathsConfig,
) -> None:
    """Register the API landing redirects and the per-page version redirects.

    The API root and the latest version's root both point at the latest
    documentation landing page. Each ``(from, to)`` pair, relative to the
    API root, is registered under its canonical path and under the legacy
    ``.html`` path (trailing slash replaced by ``.html``).
    """
    if latest is None:
        return

    latest_root = f"{paths.api}{latest}/"
    table.add(paths.api, f"{latest_root}documentation/")
    table.add(latest_root, f"{latest_root}documentation/")

    for source, target in api_pairs:
        table.add(f"{paths.api}{source}", f"{paths.api}{target}")
        legacy = source[:-1] if source.endswith("/") else source
        table.add(f"{paths.api}{legacy}.html", f"{paths.api}{target}")


def expand_redirects(table: RedirectTable, locales: Sequence[str]) -> list[RedirectEntry]:
    """Expand every pair into ``1 + len(locales)`` redirect entries.

    Entries are keyed by ``from_path``; a localized path that collides
    with an earlier entry replaces it.
    """
    entries: dict[str, RedirectEntry] = {}
    for from_path, to_path in table.items():
        entries[from_path] = RedirectEntry(from_path=from_path, to_path=to_path)
        for code in locales:
            localized_from = localize_path(code, from_path)
            entries[localized_from] = RedirectEntry(
                from_path=localized_from,
                to_path=localize_path(code, to_path),
            )
    return list(entries.values())
