"""Tests for PluginManager registration and build-time dispatch."""

from __future__ import annotations

from typing import Any

import pluggy

from nodesite.domain.content import ContentRecord, Frontmatter
from nodesite.domain.pages import PageRecord, PageTemplate
from nodesite.plugins.manager import PluginManager

hookimpl = pluggy.HookimplMarker("nodesite")


def _record() -> ContentRecord:
    return ContentRecord(
        file_absolute_path="/c/a.md",
        relative_path="a.md",
        frontmatter=Frontmatter(title="A"),
    )


class _First:
    @hookimpl
    def on_create_node(self, record: ContentRecord) -> dict[str, Any]:
        return {"slug": "first", "category_name": "one"}

    @hookimpl
    def register_redirects(self) -> dict[str, str]:
        return {"/a/": "/first/", "/b/": "/b2/"}


class _Second:
    @hookimpl
    def on_create_node(self, record: ContentRecord) -> dict[str, Any]:
        return {"slug": "second"}

    @hookimpl
    def register_redirects(self) -> dict[str, str]:
        return {"/a/": "/second/"}


class _Silent:
    @hookimpl
    def on_create_page(self, page: PageRecord) -> None:
        return None


class TestRegistration:
    def test_register_and_list(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_First(), name="first")
        assert pm.list_plugin_names() == ["first"]

    def test_discover_returns_names(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_First(), name="first")
        assert "first" in pm.discover_and_load()

    def test_hook_impl_detection(self) -> None:
        assert PluginManager._has_hook_impls(_First)
        assert not PluginManager._has_hook_impls(object)


class TestDispatch:
    def test_later_plugins_override_earlier(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_First(), name="first")
        pm.register_plugin(_Second(), name="second")
        assert pm.node_fields(_record()) == {"slug": "second", "category_name": "one"}
        assert pm.extra_redirects() == {"/a/": "/second/", "/b/": "/b2/"}

    def test_no_plugins(self) -> None:
        pm = PluginManager()
        assert pm.node_fields(_record()) == {}
        assert pm.extra_redirects() == {}

    def test_none_contributions_ignored(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_Silent(), name="silent")
        page = PageRecord(path="/a/", template=PageTemplate.GENERAL)
        assert pm.page_context(page) == {}
