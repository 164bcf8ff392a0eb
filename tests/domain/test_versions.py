"""Tests for version ordering."""

from __future__ import annotations

from nodesite.domain.versions import latest_version, sort_versions, version_key


class TestVersions:
    def test_numeric_ordering(self) -> None:
        assert version_key("v18.12.1") > version_key("v9.0.0")
        assert version_key("v10") > version_key("v9")

    def test_latest(self) -> None:
        assert latest_version(["v9", "v18", "v10.1"]) == "v18"

    def test_latest_of_nothing(self) -> None:
        assert latest_version([]) is None

    def test_sort_dedupes(self) -> None:
        assert sort_versions(["v18", "v9", "v18", "v0.10"]) == ["v0.10", "v9", "v18"]

    def test_prefix_optional(self) -> None:
        assert version_key("18.1") == version_key("v18.1")
