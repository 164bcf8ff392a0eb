"""Pluggy hook specifications for the nodesite build lifecycle.

Three hooks, run synchronously during a build:

- ``on_create_node``: contribute derived fields to a content record.
- ``on_create_page``: contribute context to a page right after registration.
- ``register_redirects``: contribute static redirect pairs.

Hook failures propagate and abort the build.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from nodesite.domain.content import ContentRecord
    from nodesite.domain.pages import PageRecord

hookspec = pluggy.HookspecMarker("nodesite")


class NodesiteHookSpec:
    """Hook specifications for the nodesite plugin system."""

    @hookspec
    def on_create_node(self, record: ContentRecord) -> dict[str, Any] | None:
        """Return ContentFields updates for a freshly discovered record."""

    @hookspec
    def on_create_page(self, page: PageRecord) -> dict[str, Any] | None:
        """Return context keys to merge into a freshly registered page."""

    @hookspec
    def register_redirects(self) -> dict[str, str] | None:
        """Return ``from -> to`` redirect pairs to add to the static map."""
