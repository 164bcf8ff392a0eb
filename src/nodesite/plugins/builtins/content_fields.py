"""Built-in plugin deriving routing fields for every content record.

Attaches ``slug`` (always), ``date`` and ``reading_time`` (blog posts),
``authors`` and ``category_name`` (when the frontmatter carries them).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

from nodesite.config.models import PathsConfig
from nodesite.domain.slugs import derive_fields

if TYPE_CHECKING:
    from nodesite.domain.content import ContentRecord

hookimpl = pluggy.HookimplMarker("nodesite")


class ContentFieldsPlugin:
    """Slug/date/reading-time derivation as an ``on_create_node`` hook."""

    def __init__(self, paths: PathsConfig | None = None) -> None:
        self._paths = paths or PathsConfig()

    @hookimpl
    def on_create_node(self, record: ContentRecord) -> dict[str, Any] | None:
        return derive_fields(record, self._paths)
