"""Built-in plugin injecting locale messages into every page context.

Runs after each page is registered: sets ``locale`` (the page's own
locale, else the default) and ``intlMessages`` (the bundle for that
locale exactly as loaded, falling back to the default bundle).
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

import pluggy

if TYPE_CHECKING:
    from nodesite.domain.locales import LocaleMessageStore
    from nodesite.domain.pages import PageRecord

hookimpl = pluggy.HookimplMarker("nodesite")


class LocaleMessagesPlugin:
    """Locale message injection as an ``on_create_page`` hook."""

    def __init__(self, store: LocaleMessageStore) -> None:
        self._store = store

    @hookimpl
    def on_create_page(self, page: PageRecord) -> dict[str, Any] | None:
        locale = page.context.get("locale") or self._store.default_locale
        # each page owns its copy; the store stays read-only
        return {
            "intlMessages": copy.deepcopy(dict(self._store.lookup(locale))),
            "locale": locale,
        }
