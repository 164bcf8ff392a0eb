"""Page records, template classification, and the page registry.

INVARIANT: the registry holds at most one page per path. Registering a
path twice deletes the first page and recreates it from the second
(last write wins); this is idempotent re-registration, not an error.
Post-creation hooks may only add to a page's context, never change its
path or template.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from nodesite.domain.slugs import is_blog_file

if TYPE_CHECKING:
    from nodesite.config.models import PathsConfig
    from nodesite.domain.content import ContentRecord

logger = logging.getLogger(__name__)


class PageTemplate(StrEnum):
    """Template identifiers understood by the presentation layer."""

    LEARN = "learn"
    API = "api"
    BLOG = "blog"
    BLOG_CATEGORY = "blogCategory"
    GENERAL = "general"


class PageRecord(BaseModel):
    """A routable unit: path, template, and context."""

    model_config = {"frozen": True}

    path: str
    template: PageTemplate
    context: dict[str, Any] = Field(default_factory=dict)


def classify(record: ContentRecord, paths: PathsConfig) -> PageTemplate:
    """Pick the template for a content record.

    Learn category first, then API root by slug, then blog root by file
    location; everything else is a general page.
    """
    if record.frontmatter.category == "learn":
        return PageTemplate.LEARN
    if record.slug.startswith(paths.api):
        return PageTemplate.API
    if is_blog_file(record.relative_path, paths):
        return PageTemplate.BLOG
    return PageTemplate.GENERAL


def pagination(ordered: Sequence[tuple[str, str]]) -> dict[str, dict[str, Any]]:
    """``slug -> {"previous": ..., "next": ...}`` for an ordered ``(slug, title)`` list.

    Neighbours are ``{"slug": ..., "title": ...}`` dicts, or None at the ends.
    """
    result: dict[str, dict[str, Any]] = {}
    for i, (slug, _title) in enumerate(ordered):
        prev_item = ordered[i - 1] if i > 0 else None
        next_item = ordered[i + 1] if i + 1 < len(ordered) else None
        result[slug] = {
            "previous": {"slug": prev_item[0], "title": prev_item[1]} if prev_item else None,
            "next": {"slug": next_item[0], "title": next_item[1]} if next_item else None,
        }
    return result


PageHook = Callable[[PageRecord], dict[str, Any]]


class PageRegistry:
    """Ordered ``path -> PageRecord`` registry.

    Parameters:
        on_create: Called after each registration; returns context keys to
            merge into the newly registered page.
    """

    def __init__(self, on_create: PageHook | None = None) -> None:
        self._pages: dict[str, PageRecord] = {}
        self._on_create = on_create

    def create_page(
        self,
        path: str,
        template: PageTemplate,
        context: dict[str, Any] | None = None,
    ) -> PageRecord:
        """Register a page, replacing any page already registered at *path*."""
        page = PageRecord(path=path, template=template, context=dict(context or {}))

        if path in self._pages:
            logger.debug("Replacing page at %s", path)
            self.delete_page(path)

        if self._on_create is not None:
            additions = self._on_create(page)
            if additions:
                page = page.model_copy(update={"context": {**page.context, **additions}})

        self._pages[path] = page
        return page

    def delete_page(self, path: str) -> None:
        self._pages.pop(path, None)

    def get(self, path: str) -> PageRecord | None:
        return self._pages.get(path)

    def __iter__(self) -> Iterator[PageRecord]:
        return iter(self._pages.values())

    def __len__(self) -> int:
        return len(self._pages)

    def __contains__(self, path: object) -> bool:
        return path in self._pages

    def to_list(self) -> list[dict[str, Any]]:
        """JSON-safe page manifest."""
        return [page.model_dump(mode="json") for page in self._pages.values()]
