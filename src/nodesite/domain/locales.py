"""Locale message store.

Built once per build from the configured locale list and passed
explicitly to whatever needs it. Lookups never fail: an unknown or
missing locale resolves to the default bundle.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any


class LocaleMessageStore:
    """Immutable ``locale -> message bundle`` mapping with default fallback."""

    def __init__(self, default_locale: str, bundles: Mapping[str, Mapping[str, Any]]) -> None:
        if default_locale not in bundles:
            msg = f"Default locale {default_locale!r} has no message bundle"
            raise ValueError(msg)
        self._default = default_locale
        self._bundles: Mapping[str, Mapping[str, Any]] = MappingProxyType(
            {code: MappingProxyType(dict(bundle)) for code, bundle in bundles.items()}
        )

    @property
    def default_locale(self) -> str:
        return self._default

    @property
    def locales(self) -> list[str]:
        """Known locale codes, in load order."""
        return list(self._bundles)

    def resolve(self, locale: str | None) -> str:
        """Return *locale* if known, else the default locale code."""
        if locale and locale in self._bundles:
            return locale
        return self._default

    def lookup(self, locale: str | None) -> Mapping[str, Any]:
        """Message bundle for *locale*, falling back to the default bundle."""
        return self._bundles[self.resolve(locale)]

    def __contains__(self, locale: object) -> bool:
        return locale in self._bundles

