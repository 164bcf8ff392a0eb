"""Navigation trees built from YAML descriptors and enriched content.

Descriptor schema (one mapping per navigation root)::

    getting-started:            # section key
      category: getting-started # optional; defaults to first item's category
      items:
        - key: introduction-to-nodejs
        - title: Differences between Node.js and the Browser
        - key: nodejs-file-paths
          children:
            - key: reading-files-with-nodejs

A section may also be a bare list of items, and an item may be a bare
string (shorthand for ``{key: <string>}``).

Items are matched against records by stable key first
(:attr:`ContentRecord.nav_key`), then by exact title. Unmatched items
are dropped unless ``strict`` is set.

INVARIANT: trees are immutable once built.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from nodesite.domain.content import ContentRecord
from nodesite.domain.errors import NavigationError
from nodesite.domain.versions import sort_versions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NavigationNode:
    """One navigation entry."""

    title: str
    slug: str
    category: str
    children: tuple[NavigationNode, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "slug": self.slug,
            "title": self.title,
            "category": self.category,
        }
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


@dataclass(frozen=True)
class NavigationSection:
    """Ordered entries of one section plus the section's category."""

    category: str
    data: tuple[NavigationNode, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [node.to_dict() for node in self.data],
            "category": self.category,
        }


NavigationTree = Mapping[str, NavigationSection]


class _RecordIndex:
    """Lookup of records by navigation key and by title."""

    def __init__(self, records: Iterable[ContentRecord]) -> None:
        self._by_key: dict[str, ContentRecord] = {}
        self._by_title: dict[str, ContentRecord] = {}
        for record in records:
            self._by_key.setdefault(record.nav_key, record)
            if record.title:
                self._by_title.setdefault(record.title, record)

    def find(self, item: Mapping[str, Any]) -> ContentRecord | None:
        key = item.get("key")
        if key is not None and str(key) in self._by_key:
            return self._by_key[str(key)]
        title = item.get("title")
        if title is not None:
            return self._by_title.get(str(title))
        return None


def _normalize_item(section: str, raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, str):
        return {"key": raw}
    if isinstance(raw, Mapping) and ("key" in raw or "title" in raw):
        return raw
    msg = f"Navigation item in section {section!r} needs a 'key' or 'title': {raw!r}"
    raise NavigationError(msg)


def _section_parts(section: str, raw: Any) -> tuple[list[Mapping[str, Any]], str | None]:
    if raw is None:
        return [], None
    if isinstance(raw, Sequence) and not isinstance(raw, str):
        return [_normalize_item(section, item) for item in raw], None
    if isinstance(raw, Mapping):
        items = raw.get("items") or []
        category = raw.get("category")
        return [_normalize_item(section, item) for item in items], category
    msg = f"Navigation section {section!r} must be a list or a mapping, got {type(raw).__name__}"
    raise NavigationError(msg)


def _build_nodes(
    section: str,
    items: Sequence[Mapping[str, Any]],
    index: _RecordIndex,
    category: str,
    missing: list[str],
) -> tuple[NavigationNode, ...]:
    nodes: list[NavigationNode] = []
    for item in items:
        record = index.find(item)
        if record is None:
            missing.append(str(item.get("key", item.get("title"))))
            continue
        children_raw = item.get("children") or []
        children = _build_nodes(
            section,
            [_normalize_item(section, child) for child in children_raw],
            index,
            category,
            missing,
        )
        nodes.append(
            NavigationNode(
                title=record.title,
                slug=record.slug,
                category=str(item.get("category") or category),
                children=children,
            )
        )
    return tuple(nodes)


def build_navigation(
    tree: Mapping[str, Any],
    records: Iterable[ContentRecord],
    *,
    strict: bool = False,
) -> NavigationTree:
    """Build a navigation tree from a parsed YAML descriptor.

    Args:
        tree: Parsed descriptor (section key -> items).
        records: Enriched content records for this navigation root.
        strict: Raise instead of dropping items that match no record.

    Raises:
        NavigationError: malformed descriptor, or unmatched items in strict mode.
    """
    index = _RecordIndex(records)
    sections: dict[str, NavigationSection] = {}

    for section_key, raw in tree.items():
        section = str(section_key)
        items, declared_category = _section_parts(section, raw)
        first_category = items[0].get("category") if items else None
        category = str(declared_category or first_category or section)

        missing: list[str] = []
        data = _build_nodes(section, items, index, category, missing)
        if missing:
            if strict:
                msg = f"Navigation section {section!r} references missing content: {missing}"
                raise NavigationError(msg)
            logger.debug("Dropped unmatched navigation items in %s: %s", section, missing)

        sections[section] = NavigationSection(category=category, data=data)

    return MappingProxyType(sections)


def flatten_navigation(tree: NavigationTree) -> Iterator[NavigationNode]:
    """Yield every node depth-first in declared order."""

    def _walk(nodes: Iterable[NavigationNode]) -> Iterator[NavigationNode]:
        for node in nodes:
            yield node
            yield from _walk(node.children)

    for section in tree.values():
        yield from _walk(section.data)


def navigation_to_dict(tree: NavigationTree) -> dict[str, Any]:
    """JSON-safe ``{section: {"data": [...], "category": ...}}`` view."""
    return {key: section.to_dict() for key, section in tree.items()}


# ---------------------------------------------------------------------------
# API documentation (one tree per version)
# ---------------------------------------------------------------------------


def group_by_version(records: Iterable[ContentRecord]) -> dict[str, list[ContentRecord]]:
    """Group API records by their ``version`` frontmatter."""
    grouped: dict[str, list[ContentRecord]] = {}
    for record in records:
        version = record.frontmatter.version
        if version:
            grouped.setdefault(version, []).append(record)
    return grouped


def build_api_navigation(
    tree: Mapping[str, Any],
    records: Iterable[ContentRecord],
) -> dict[str, NavigationTree]:
    """Build one navigation tree per documented API version.

    Matching is always lenient: older versions naturally lack modules
    the descriptor lists.
    """
    return {
        version: build_navigation(tree, version_records)
        for version, version_records in group_by_version(records).items()
    }


def default_api_redirects(
    records: Iterable[ContentRecord],
    latest: str,
) -> list[tuple[str, str]]:
    """Redirect pairs (relative to the API root) onto the latest version.

    Every older version's ``<version>/<title>/`` maps onto
    ``<latest>/<title>/`` when the latest version documents the same
    title. The unversioned ``<title>/`` also maps onto the latest version.
    """
    grouped = group_by_version(records)
    latest_titles = [r.title for r in grouped.get(latest, []) if r.title]
    latest_set = set(latest_titles)

    pairs: list[tuple[str, str]] = []
    seen: set[str] = set()

    def _add(source: str, target: str) -> None:
        if source not in seen:
            seen.add(source)
            pairs.append((source, target))

    for version in sort_versions(grouped):
        if version == latest:
            continue
        for record in grouped[version]:
            if record.title in latest_set:
                _add(f"{version}/{record.title}/", f"{latest}/{record.title}/")

    for title in latest_titles:
        _add(f"{title}/", f"{latest}/{title}/")

    return pairs
