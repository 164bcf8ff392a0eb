"""Shared pytest fixtures for nodesite tests."""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import httpx
import pytest
from click.testing import CliRunner

from nodesite.config.settings import NodesiteSettings
from nodesite.infrastructure.datasets import make_dataset
from nodesite.infrastructure.site import Site
from nodesite.services.source import publish_dataset

# ---------------------------------------------------------------------------
# Site content
# ---------------------------------------------------------------------------

_CONTENT: dict[str, str] = {
    "about.md": "---\ntitle: About Node.js\n---\nAbout the project.\n",
    "learn/introduction-to-nodejs.md": (
        "---\ntitle: Introduction to Node.js\ncategory: learn\n---\n"
        "Node.js is an open-source and cross-platform JavaScript runtime.\n"
    ),
    "learn/how-to-install-nodejs.md": (
        "---\ntitle: How to install Node.js\ncategory: learn\n---\nUse a package manager.\n"
    ),
    "learn/orphan.md": "---\ntitle: An orphan page\ncategory: learn\n---\nNot listed.\n",
    "blog/2022-11-11-example.md": (
        "---\ntitle: Example\ncategory: news\nauthors: Alice,Bob\n---\n"
        + " ".join(["word"] * 450)
        + "\n"
    ),
    "blog/2023-01-05-newer.md": "---\ntitle: Newer post\ncategory: release\n---\nShort.\n",
    "api/v18/fs.md": "---\ntitle: fs\ncategory: api\nversion: v18\n---\nFile system.\n",
    "api/v20/fs.md": "---\ntitle: fs\ncategory: api\nversion: v20\n---\nFile system.\n",
    "api/v20/http.md": "---\ntitle: http\ncategory: api\nversion: v20\n---\nHTTP.\n",
}

_LEARN_YAML = """\
getting-started:
  category: getting-started
  items:
    - key: introduction-to-nodejs
    - title: How to install Node.js
"""

_API_YAML = """\
modules:
  - fs
  - http
"""

_CONFIG_TOML = """\
[i18n]
default_locale = "en"
locales = ["en", "es"]
"""

STATIC_REDIRECTS = {
    "/about/old/": "/about/",
    "/ext/": "https://example.com/x",
}


@pytest.fixture(autouse=True)
def _no_config_override(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's NODESITE_CONFIG from leaking into tests."""
    monkeypatch.delenv("NODESITE_CONFIG", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


def _write_site(root: Path) -> Path:
    for relative, text in _CONTENT.items():
        path = root / "content" / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    data_dir = root / "src" / "data"
    data_dir.mkdir(parents=True)
    (data_dir / "learn.yaml").write_text(_LEARN_YAML, encoding="utf-8")
    (data_dir / "apiTypes.yaml").write_text(_API_YAML, encoding="utf-8")

    locales = root / "src" / "i18n" / "locales"
    locales.mkdir(parents=True)
    (locales / "en.json").write_text(
        json.dumps({"site": {"title": "Node.js"}, "nav": {"learn": "Learn"}}), encoding="utf-8"
    )
    (locales / "es.json").write_text(
        json.dumps({"site": {"title": "Node.js ES"}}), encoding="utf-8"
    )

    (root / "redirects.json").write_text(json.dumps(STATIC_REDIRECTS), encoding="utf-8")
    (root / "nodesite.toml").write_text(_CONFIG_TOML, encoding="utf-8")
    return root


@pytest.fixture
def make_site_root() -> Callable[[Path], Path]:
    """Factory writing the test site layout under any directory."""
    return _write_site


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Temporary website checkout with content, descriptors, and locales.

    Single source of truth for the site layout used across test modules.
    """
    return _write_site(tmp_path / "site")


@pytest.fixture
def settings(site_root: Path) -> NodesiteSettings:
    return NodesiteSettings.from_cli(site_root=site_root)


@pytest.fixture
def site(settings: NodesiteSettings) -> Site:
    """Site over ``site_root`` with only the built-in plugins."""
    return Site(settings, discover_plugins=False)


# ---------------------------------------------------------------------------
# External datasets
# ---------------------------------------------------------------------------

TODAY = date(2024, 6, 1)

RELEASE_SCHEDULE: dict[str, Any] = {
    "v18": {
        "start": "2022-04-19",
        "lts": "2022-10-25",
        "maintenance": "2023-10-18",
        "end": "2025-04-30",
        "codename": "Hydrogen",
    },
    "v20": {
        "start": "2023-04-18",
        "lts": "2023-10-24",
        "maintenance": "2024-10-22",
        "end": "2026-04-30",
        "codename": "Iron",
    },
    "v22": {
        "start": "2024-04-24",
        "lts": "2024-10-29",
        "maintenance": "2025-10-21",
        "end": "2027-04-30",
        "codename": "Jod",
    },
    "v30": {"start": "2030-04-01"},
}

RELEASE_INDEX: list[dict[str, Any]] = [
    {"version": "v22.2.0"},
    {"version": "v22.1.0"},
    {"version": "v20.14.0"},
    {"version": "v18.20.3"},
]

SITE_JSON: dict[str, Any] = {
    "banners": {
        "index": {
            "startDate": "2024-05-01T00:00:00.000Z",
            "endDate": "2024-07-01T00:00:00.000Z",
            "text": "New security releases",
            "link": "https://nodejs.org/en/blog/vulnerability/",
        }
    }
}

NVM_RELEASE: dict[str, Any] = {"tag_name": "v0.39.7", "name": "v0.39.7"}

_ROUTES: dict[str, Any] = {
    "/nodejs/Release/main/schedule.json": RELEASE_SCHEDULE,
    "/dist/index.json": RELEASE_INDEX,
    "/site.json": SITE_JSON,
    "/repos/nvm-sh/nvm/releases/latest": NVM_RELEASE,
}


@pytest.fixture
def dataset_transport() -> Callable[..., httpx.MockTransport]:
    """Factory for a MockTransport serving the default dataset URLs.

    ``failing`` maps a URL path to the status code it should return.
    """

    def _make(failing: dict[str, int] | None = None) -> httpx.MockTransport:
        failures = failing or {}

        def handler(request: httpx.Request) -> httpx.Response:
            path = request.url.path
            if path in failures:
                return httpx.Response(failures[path], json={"message": "unavailable"})
            if path in _ROUTES:
                return httpx.Response(200, json=_ROUTES[path])
            return httpx.Response(404)

        return httpx.MockTransport(handler)

    return _make


@pytest.fixture
def cached_datasets(site: Site) -> Path:
    """Publish a minimal copy of every dataset into the site's cache."""
    publish_dataset(site.dataset_dir, make_dataset("NodeReleases", {"nodeReleasesData": []}))
    publish_dataset(site.dataset_dir, make_dataset("Banners", {"index": {}}))
    publish_dataset(site.dataset_dir, make_dataset("Nvm", {"version": "v0.39.7"}))
    return site.dataset_dir


@pytest.fixture
def today() -> date:
    """Reference date for release status: v18 maintenance, v20 active LTS, v22 current."""
    return TODAY
