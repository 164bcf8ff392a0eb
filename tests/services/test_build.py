"""Tests for BuildService: page emission, redirects, and publication."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date
from pathlib import Path

import httpx
import pluggy
import pytest

from nodesite.infrastructure.filesystem import read_json
from nodesite.infrastructure.site import Site
from nodesite.services.build import BuildService

hookimpl = pluggy.HookimplMarker("nodesite")

EXPECTED_PATHS = [
    "/learn/",
    "/learn/how-to-install-nodejs/",
    "/learn/introduction-to-nodejs/",
    "/learn/an-orphan-page/",
    "/blog/news/",
    "/blog/release/",
    "/api/v18/fs/",
    "/api/v20/fs/",
    "/api/v20/http/",
    "/blog/release/2023/01/05/newer",
    "/blog/news/2022/11/11/example",
    "about-nodejs",
]


def _plan(site: Site):
    from nodesite.services.ingest import IngestService

    return BuildService(site).plan(IngestService(site).load_records())


class TestPlanPages:
    def test_emission_order(self, site: Site) -> None:
        plan = _plan(site)
        assert [p.path for p in plan.pages] == EXPECTED_PATHS

    def test_templates(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        assert pages["/learn/"].template == "learn"
        assert pages["/blog/news/"].template == "blogCategory"
        assert pages["/api/v20/fs/"].template == "api"
        assert pages["/blog/news/2022/11/11/example"].template == "blog"
        assert pages["about-nodejs"].template == "general"

    def test_learn_landing_uses_first_navigation_page(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        landing = pages["/learn/"].context
        assert landing["title"] == "Introduction to Node.js"
        assert landing["previous"] is None
        assert landing["next"] == {
            "slug": "/learn/how-to-install-nodejs/",
            "title": "How to install Node.js",
        }

    def test_learn_navigation_and_pagination(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        install = pages["/learn/how-to-install-nodejs/"].context
        assert install["previous"]["slug"] == "/learn/introduction-to-nodejs/"
        assert install["next"] is None
        section = install["navigationData"]["getting-started"]
        assert section["category"] == "getting-started"
        assert [n["slug"] for n in section["data"]] == [
            "/learn/introduction-to-nodejs/",
            "/learn/how-to-install-nodejs/",
        ]

    def test_unlisted_learn_page_has_no_neighbours(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        orphan = pages["/learn/an-orphan-page/"].context
        assert orphan["previous"] is None
        assert orphan["next"] is None

    def test_api_pages_use_their_version_navigation(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        old = pages["/api/v18/fs/"].context
        assert old["version"] == "v18"
        assert old["latestVersion"] == "v20"
        assert [n["title"] for n in old["navigationData"]["modules"]["data"]] == ["fs"]
        new = pages["/api/v20/http/"].context
        assert [n["title"] for n in new["navigationData"]["modules"]["data"]] == ["fs", "http"]

    def test_blog_pagination_newest_first(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        newest = pages["/blog/release/2023/01/05/newer"].context
        assert newest["previous"] is None
        assert newest["next"]["slug"] == "/blog/news/2022/11/11/example"

    def test_category_page_context(self, site: Site) -> None:
        pages = {p.path: p for p in _plan(site).pages}
        assert pages["/blog/news/"].context["categoryName"] == "news"

    def test_every_page_has_locale_messages(self, site: Site) -> None:
        for page in _plan(site).pages:
            assert page.context["locale"] == "en"
            assert page.context["intlMessages"]["site"]["title"] == "Node.js"

    def test_duplicate_path_last_registration_wins(self, site: Site, site_root: Path) -> None:
        (site_root / "content" / "about-copy.md").write_text(
            "---\ntitle: About Node.js\ndescription: second\n---\n", encoding="utf-8"
        )
        pages = [p for p in _plan(site).pages if p.path == "about-nodejs"]
        assert len(pages) == 1
        assert pages[0].context["relativePath"] == "about.md"

    def test_strict_navigation(self, site_root: Path, cached_datasets: Path) -> None:
        from nodesite.config.settings import NodesiteSettings

        (site_root / "src" / "data" / "learn.yaml").write_text(
            "basics:\n  - missing-page\n", encoding="utf-8"
        )
        (site_root / "nodesite.toml").write_text(
            '[i18n]\nlocales = ["en", "es"]\n[navigation]\nstrict = true\n', encoding="utf-8"
        )
        site = Site(NodesiteSettings.from_cli(site_root=site_root), discover_plugins=False)
        result = BuildService(site).redirects()
        assert result.ok  # redirects never build learn navigation
        built = BuildService(site).build(skip_source=True)
        assert not built.ok
        assert built.error is not None
        assert built.error.code == "BUILD_FAILED"
        assert "missing-page" in built.error.message


class TestRedirects:
    def test_expanded_table(self, site: Site) -> None:
        result = BuildService(site).redirects()
        assert result.ok, result.error
        pairs = {r["fromPath"]: r["toPath"] for r in result.data["redirects"]}
        assert result.data["count"] == 30
        assert pairs["/about/old/"] == "/about/"
        assert pairs["/es/about/old/"] == "/es/about/"
        assert pairs["/en/ext/"] == "https://example.com/x"
        assert pairs["/api/"] == "/api/v20/documentation/"
        assert pairs["/api/v20/"] == "/api/v20/documentation/"
        assert pairs["/api/v18/fs/"] == "/api/v20/fs/"
        assert pairs["/api/v18/fs.html"] == "/api/v20/fs/"
        assert pairs["/api/http/"] == "/api/v20/http/"
        assert pairs["/es/api/http.html"] == "/es/api/v20/http/"

    def test_every_entry_is_permanent_200(self, site: Site) -> None:
        for entry in BuildService(site).redirects().data["redirects"]:
            assert entry["isPermanent"] is True
            assert entry["redirectInBrowser"] is True
            assert entry["statusCode"] == 200

    def test_locale_filter(self, site: Site) -> None:
        result = BuildService(site).redirects(locale="es")
        assert result.data["count"] == 10
        assert all(r["fromPath"].startswith("/es/") for r in result.data["redirects"])

    def test_plugin_redirects_override_static(self, site: Site) -> None:
        class Extra:
            @hookimpl
            def register_redirects(self):
                return {"/about/old/": "/about-nodejs/"}

        site.plugins.register_plugin(Extra(), name="extra")
        pairs = {
            r["fromPath"]: r["toPath"] for r in BuildService(site).redirects().data["redirects"]
        }
        assert pairs["/about/old/"] == "/about-nodejs/"

    def test_no_api_content(self, site: Site, site_root: Path) -> None:
        for path in (site_root / "content" / "api").rglob("*.md"):
            path.unlink()
        pairs = {r["fromPath"] for r in BuildService(site).redirects().data["redirects"]}
        assert "/api/" not in pairs
        assert len(pairs) == 6


class TestBuild:
    def test_publishes_manifests(self, site: Site, cached_datasets: Path) -> None:
        result = BuildService(site).build(skip_source=True)
        assert result.ok, result.error
        assert result.data["pages"] == 12
        assert result.data["redirects"] == 30
        assert result.data["latest_api_version"] == "v20"
        assert result.data["templates"] == {
            "api": 3,
            "blog": 2,
            "blogCategory": 2,
            "general": 1,
            "learn": 4,
        }

        out = site.output_dir
        pages = read_json(out / "pages.json")
        assert [p["path"] for p in pages] == EXPECTED_PATHS
        redirects = read_json(out / "redirects.json")
        assert redirects[0] == {
            "fromPath": "/about/old/",
            "toPath": "/about/",
            "isPermanent": True,
            "redirectInBrowser": True,
            "statusCode": 200,
        }
        assert read_json(out / "data" / "Nvm.json") == {"version": "v0.39.7"}

    def test_custom_output_dir(self, site: Site, cached_datasets: Path, tmp_path: Path) -> None:
        target = tmp_path / "dist"
        result = BuildService(site).build(skip_source=True, output_dir=target)
        assert result.ok
        assert (target / "pages.json").is_file()
        assert not site.output_dir.exists()

    def test_skip_source_without_cache_fails(self, site: Site) -> None:
        result = BuildService(site).build(skip_source=True)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "BUILD_FAILED"
        assert not site.output_dir.exists()

    def test_sources_then_builds(
        self,
        site: Site,
        dataset_transport: Callable[..., httpx.MockTransport],
        today: date,
    ) -> None:
        result = BuildService(site).build(transport=dataset_transport(), today=today)
        assert result.ok, result.error
        releases = read_json(site.output_dir / "data" / "NodeReleases.json")
        assert [r["version"] for r in releases["nodeReleasesData"]] == ["v18", "v20", "v22"]

    def test_source_failure_aborts_build(
        self,
        site: Site,
        dataset_transport: Callable[..., httpx.MockTransport],
        today: date,
    ) -> None:
        transport = dataset_transport({"/repos/nvm-sh/nvm/releases/latest": 500})
        result = BuildService(site).build(transport=transport, today=today)
        assert not result.ok
        assert result.op == "build"
        assert result.error is not None
        assert result.error.code == "SOURCE_FAILED"
        assert not site.output_dir.exists()

    def test_ingest_failure_keeps_previous_output(
        self, site: Site, site_root: Path, cached_datasets: Path
    ) -> None:
        assert BuildService(site).build(skip_source=True).ok
        before = (site.output_dir / "pages.json").read_text()

        (site_root / "content" / "blog" / "undated.md").write_text("---\ntitle: x\n---\n")
        result = BuildService(site).build(skip_source=True)
        assert not result.ok
        assert (site.output_dir / "pages.json").read_text() == before

    def test_empty_content_warns(self, tmp_path: Path) -> None:
        from nodesite.config.settings import NodesiteSettings
        from nodesite.infrastructure.datasets import make_dataset
        from nodesite.services.source import publish_dataset

        root = tmp_path / "empty"
        locales = root / "src" / "i18n" / "locales"
        locales.mkdir(parents=True)
        (locales / "en.json").write_text("{}")
        site = Site(NodesiteSettings.from_cli(site_root=root), discover_plugins=False)
        for kind in ("NodeReleases", "Banners", "Nvm"):
            publish_dataset(site.dataset_dir, make_dataset(kind, {}))

        result = BuildService(site).build(skip_source=True)
        assert result.ok
        assert result.data["pages"] == 0
        assert result.warnings and "No content found" in result.warnings[0]


class TestOutputSafety:
    @pytest.mark.parametrize("relative", [".", "content", "src", ".nodesite"])
    def test_refuses_output_over_site_inputs(
        self, site: Site, site_root: Path, cached_datasets: Path, relative: str
    ) -> None:
        result = BuildService(site).build(skip_source=True, output_dir=site_root / relative)
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "BUILD_FAILED"
        assert "Refusing to publish" in result.error.message
        assert (site_root / "content" / "about.md").is_file()
        assert (site_root / "nodesite.toml").is_file()
        assert (cached_datasets / "Nvm.json").is_file()

    def test_refuses_parent_of_site_root(
        self, site: Site, site_root: Path, cached_datasets: Path
    ) -> None:
        result = BuildService(site).build(skip_source=True, output_dir=site_root.parent)
        assert not result.ok
        assert (site_root / "content").is_dir()

    def test_unwritable_output_is_reported(
        self, site: Site, cached_datasets: Path, tmp_path: Path
    ) -> None:
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("x", encoding="utf-8")
        result = BuildService(site).build(skip_source=True, output_dir=blocker / "public")
        assert not result.ok
        assert result.error is not None
        assert result.error.code == "BUILD_FAILED"
        assert "Cannot publish" in result.error.message

    def test_checkout_under_blog_directory(
        self, make_site_root: Callable[[Path], Path], tmp_path: Path, today: date
    ) -> None:
        from nodesite.config.settings import NodesiteSettings
        from nodesite.infrastructure.datasets import make_dataset
        from nodesite.services.source import publish_dataset

        root = make_site_root(tmp_path / "blog" / "nodejs.dev")
        site = Site(NodesiteSettings.from_cli(site_root=root), discover_plugins=False)
        for kind in ("NodeReleases", "Banners", "Nvm"):
            publish_dataset(site.dataset_dir, make_dataset(kind, {}))

        result = BuildService(site).build(skip_source=True, today=today)
        assert result.ok, result.error
        assert result.data["templates"] == {
            "api": 3,
            "blog": 2,
            "blogCategory": 2,
            "general": 1,
            "learn": 4,
        }
