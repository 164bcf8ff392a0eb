"""Site — the single dependency injected into every service.

Owns the resolved settings, the plugin manager (with built-ins
registered), and the lazily loaded static inputs: locale messages,
navigation descriptors, and the static redirect map. Each input is read
at most once per Site.
"""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING, Any

from nodesite.domain.locales import LocaleMessageStore
from nodesite.infrastructure.filesystem import (
    load_locale_bundles,
    load_redirect_map,
    load_yaml_mapping,
)
from nodesite.plugins.builtins.content_fields import ContentFieldsPlugin
from nodesite.plugins.builtins.locale_messages import LocaleMessagesPlugin
from nodesite.plugins.manager import PluginManager

if TYPE_CHECKING:
    from nodesite.config.models import PathsConfig
    from nodesite.config.settings import NodesiteSettings

logger = logging.getLogger(__name__)

LOCAL_PLUGIN_DIR = ".nodesite/plugins"
DATASET_CACHE_DIR = ".nodesite/datasets"


class Site:
    """Resolved inputs and plugins for one build."""

    def __init__(self, settings: NodesiteSettings, *, discover_plugins: bool = True) -> None:
        self.settings = settings
        self.root: Path = settings.site_root
        self.plugins = PluginManager()
        self._register_builtins()
        if discover_plugins:
            names = self.plugins.discover_and_load(local_dir=self.root / LOCAL_PLUGIN_DIR)
            logger.debug("Plugins: %s", ", ".join(names))

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def paths(self) -> PathsConfig:
        return self.settings.paths

    @property
    def content_dir(self) -> Path:
        return self.settings.resolve(self.settings.site.content_dir)

    @property
    def output_dir(self) -> Path:
        return self.settings.resolve(self.settings.site.output_dir)

    @property
    def dataset_dir(self) -> Path:
        return self.root / DATASET_CACHE_DIR

    @property
    def protected_paths(self) -> list[Path]:
        """Site inputs a published output directory must never contain."""
        site = self.settings.site
        paths = [
            self.root,
            self.content_dir,
            self.dataset_dir,
            self.settings.resolve(site.locales_dir),
            self.settings.resolve(site.learn_navigation),
            self.settings.resolve(site.api_navigation),
            self.settings.resolve(site.redirects_file),
        ]
        if self.settings.config_path is not None:
            paths.append(self.settings.config_path)
        return paths

    # ------------------------------------------------------------------
    # Static inputs (loaded once)
    # ------------------------------------------------------------------

    @cached_property
    def messages(self) -> LocaleMessageStore:
        i18n = self.settings.i18n
        bundles = load_locale_bundles(
            self.settings.resolve(self.settings.site.locales_dir), i18n.locales
        )
        return LocaleMessageStore(i18n.default_locale, bundles)

    @cached_property
    def learn_descriptor(self) -> dict[str, Any]:
        return load_yaml_mapping(self.settings.resolve(self.settings.site.learn_navigation))

    @cached_property
    def api_descriptor(self) -> dict[str, Any]:
        return load_yaml_mapping(self.settings.resolve(self.settings.site.api_navigation))

    @cached_property
    def static_redirects(self) -> dict[str, str]:
        return load_redirect_map(self.settings.resolve(self.settings.site.redirects_file))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _register_builtins(self) -> None:
        plugins_config = self.settings.plugins
        if plugins_config.content_fields.get("enabled", True):
            self.plugins.register_plugin(
                ContentFieldsPlugin(self.settings.paths), name="content_fields"
            )
        if plugins_config.locale_messages.get("enabled", True):
            self.plugins.register_plugin(_LazyLocalePlugin(self), name="locale_messages")


class _LazyLocalePlugin(LocaleMessagesPlugin):
    """LocaleMessagesPlugin that loads the store on first page creation.

    Keeps commands that never create pages from reading locale bundles.
    """

    def __init__(self, site: Site) -> None:
        self._site = site

    @property
    def _store(self) -> LocaleMessageStore:  # type: ignore[override]
        return self._site.messages
