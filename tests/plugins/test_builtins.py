"""Tests for the built-in content-fields and locale-messages plugins."""

from __future__ import annotations

from nodesite.config.models import PathsConfig
from nodesite.domain.content import build_record
from nodesite.domain.locales import LocaleMessageStore
from nodesite.domain.pages import PageRecord, PageTemplate
from nodesite.plugins.builtins.content_fields import ContentFieldsPlugin
from nodesite.plugins.builtins.locale_messages import LocaleMessagesPlugin
from nodesite.plugins.manager import PluginManager

STORE = LocaleMessageStore(
    "en",
    {"en": {"site": {"title": "Node.js"}}, "es": {"site": {"title": "Node.js ES"}}},
)


class TestContentFieldsPlugin:
    def test_derives_slug(self) -> None:
        record = build_record(
            file_absolute_path="/site/content/blog/2022-11-11-example.md",
            relative_path="blog/2022-11-11-example.md",
            content="---\ntitle: Example\ncategory: news\n---\nHello\n",
        )
        fields = ContentFieldsPlugin().on_create_node(record)
        assert fields is not None
        assert fields["slug"] == "/blog/news/2022/11/11/example"

    def test_custom_paths(self) -> None:
        record = build_record(
            file_absolute_path="/site/content/learn/a.md",
            relative_path="learn/a.md",
            content="---\ntitle: A\ncategory: learn\n---\n",
        )
        fields = ContentFieldsPlugin(PathsConfig(learn="/guides/")).on_create_node(record)
        assert fields is not None
        assert fields["slug"] == "/guides/a/"


class TestLocaleMessagesPlugin:
    def test_default_locale_injected(self) -> None:
        page = PageRecord(path="/a/", template=PageTemplate.GENERAL)
        additions = LocaleMessagesPlugin(STORE).on_create_page(page)
        assert additions == {"intlMessages": {"site": {"title": "Node.js"}}, "locale": "en"}

    def test_page_locale_kept(self) -> None:
        page = PageRecord(path="/a/", template=PageTemplate.GENERAL, context={"locale": "es"})
        additions = LocaleMessagesPlugin(STORE).on_create_page(page)
        assert additions is not None
        assert additions["locale"] == "es"
        assert additions["intlMessages"] == {"site": {"title": "Node.js ES"}}

    def test_unknown_locale_uses_default_bundle(self) -> None:
        page = PageRecord(path="/a/", template=PageTemplate.GENERAL, context={"locale": "de"})
        additions = LocaleMessagesPlugin(STORE).on_create_page(page)
        assert additions is not None
        assert additions["locale"] == "de"
        assert additions["intlMessages"] == {"site": {"title": "Node.js"}}

    def test_through_manager(self) -> None:
        pm = PluginManager()
        pm.register_plugin(LocaleMessagesPlugin(STORE), name="locale_messages")
        page = PageRecord(path="/a/", template=PageTemplate.GENERAL)
        assert pm.page_context(page)["locale"] == "en"

    def test_pages_get_independent_bundles(self) -> None:
        plugin = LocaleMessagesPlugin(STORE)
        first = plugin.on_create_page(PageRecord(path="/a/", template=PageTemplate.GENERAL))
        second = plugin.on_create_page(PageRecord(path="/b/", template=PageTemplate.GENERAL))
        assert first is not None and second is not None
        first["intlMessages"]["site"]["title"] = "changed"
        assert second["intlMessages"]["site"]["title"] == "Node.js"
        assert STORE.lookup("en")["site"]["title"] == "Node.js"
