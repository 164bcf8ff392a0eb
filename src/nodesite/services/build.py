"""BuildService — turn sourced data and enriched content into a site.

Pipeline: SOURCE (or reuse cached datasets) -> INGEST -> NAVIGATION ->
REDIRECTS -> PAGES -> PUBLISH. Every phase must succeed; any failure
aborts the build and leaves the previous output directory untouched.

Page emission order:

1. learn landing page (first learn page in navigation order)
2. learn pages
3. blog category pages
4. API pages
5. blog pages
6. general pages

A path registered twice keeps the later registration.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any

from nodesite.domain.errors import NodesiteError, UnsafeOutputDir
from nodesite.domain.navigation import (
    NavigationTree,
    build_api_navigation,
    build_navigation,
    default_api_redirects,
    flatten_navigation,
    navigation_to_dict,
)
from nodesite.domain.pages import PageRegistry, PageTemplate, classify, pagination
from nodesite.domain.redirects import (
    RedirectEntry,
    RedirectTable,
    add_api_redirects,
    expand_redirects,
)
from nodesite.domain.versions import latest_version
from nodesite.infrastructure.filesystem import check_output_dir, staged_output, write_json
from nodesite.services.base import BaseService
from nodesite.services.ingest import IngestService
from nodesite.services.result import ServiceResult
from nodesite.services.source import SourceService, load_cached_datasets
from nodesite.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from pathlib import Path

    import httpx

    from nodesite.domain.content import ContentRecord
    from nodesite.infrastructure.datasets import ExternalDataset

logger = logging.getLogger(__name__)

PAGES_MANIFEST = "pages.json"
REDIRECTS_MANIFEST = "redirects.json"
DATA_DIR = "data"


@dataclass
class ContentGroups:
    """Enriched records split by page template."""

    learn: list[ContentRecord] = field(default_factory=list)
    api: list[ContentRecord] = field(default_factory=list)
    blog: list[ContentRecord] = field(default_factory=list)
    general: list[ContentRecord] = field(default_factory=list)


@dataclass(frozen=True)
class ApiPlan:
    """Per-version API navigation and the redirects onto the latest version."""

    navigation: dict[str, NavigationTree]
    latest: str | None
    redirect_pairs: list[tuple[str, str]]


@dataclass
class SitePlan:
    """Everything a build publishes, before it is written."""

    pages: PageRegistry
    redirects: list[RedirectEntry]
    latest_api_version: str | None


class BuildService(BaseService):
    """Page and redirect construction plus publication."""

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    @traced
    def build(
        self,
        *,
        skip_source: bool = False,
        output_dir: Path | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        today: date | None = None,
    ) -> ServiceResult:
        """Run the full pipeline and publish manifests to the output directory."""
        op = "build"
        warnings: list[str] = []

        target = (output_dir or self._site.output_dir).resolve()
        try:
            check_output_dir(target, self._site.protected_paths)
        except UnsafeOutputDir as exc:
            return ServiceResult.failure(
                op, "BUILD_FAILED", str(exc), output_dir=exc.output_dir
            )

        if not skip_source:
            sourced = SourceService(self._site).source(transport=transport, today=today)
            if not sourced.ok:
                return sourced.model_copy(update={"op": op})

        try:
            datasets = load_cached_datasets(self._site.dataset_dir)
            records = IngestService(self._site).load_records()
            plan = self.plan(records)
        except (NodesiteError, OSError, ValueError) as exc:
            logger.debug("Build failed", exc_info=True)
            return ServiceResult.failure(op, "BUILD_FAILED", str(exc))

        if not records:
            warnings.append(f"No content found under {self._site.content_dir}")

        try:
            with trace_span("publish") as span:
                self._publish(target, plan, datasets)
                if span is not None:
                    span.annotate("datasets", len(datasets))
        except OSError as exc:
            logger.debug("Publishing failed", exc_info=True)
            return ServiceResult.failure(
                op, "BUILD_FAILED", f"Cannot publish to {target}: {exc}"
            )

        templates = Counter(page.template.value for page in plan.pages)
        return ServiceResult(
            ok=True,
            op=op,
            data={
                "output_dir": str(target),
                "pages": len(plan.pages),
                "redirects": len(plan.redirects),
                "templates": dict(sorted(templates.items())),
                "latest_api_version": plan.latest_api_version,
                "datasets": {d.type: d.content_digest for d in datasets},
            },
            warnings=warnings,
        )

    @traced
    def redirects(self, *, locale: str | None = None) -> ServiceResult:
        """Compute the expanded redirect table without building pages."""
        op = "redirects"
        try:
            records = IngestService(self._site).load_records()
            groups = self.group(records)
            api = self.plan_api(groups.api)
            entries = self.build_redirects(api)
        except (NodesiteError, OSError, ValueError) as exc:
            return ServiceResult.failure(op, "BUILD_FAILED", str(exc))

        if locale is not None:
            prefix = f"/{locale}/"
            entries = [e for e in entries if e.from_path.startswith(prefix)]

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(entries),
                "redirects": [e.model_dump(by_alias=True) for e in entries],
            },
        )

    # ------------------------------------------------------------------
    # Planning (pure, no output written)
    # ------------------------------------------------------------------

    def group(self, records: list[ContentRecord]) -> ContentGroups:
        groups = ContentGroups()
        buckets = {
            PageTemplate.LEARN: groups.learn,
            PageTemplate.API: groups.api,
            PageTemplate.BLOG: groups.blog,
            PageTemplate.GENERAL: groups.general,
        }
        for record in records:
            buckets[classify(record, self._site.paths)].append(record)
        return groups

    def plan_api(self, api_records: list[ContentRecord]) -> ApiPlan:
        navigation = build_api_navigation(self._site.api_descriptor, api_records)
        latest = latest_version(navigation)
        pairs = default_api_redirects(api_records, latest) if latest else []
        return ApiPlan(navigation=navigation, latest=latest, redirect_pairs=pairs)

    def build_redirects(self, api: ApiPlan) -> list[RedirectEntry]:
        """Static map, then plugin redirects, then API redirects; expanded per locale."""
        table = RedirectTable()
        table.update(self._site.static_redirects)
        table.update(self._site.plugins.extra_redirects())
        add_api_redirects(
            table,
            api.redirect_pairs,
            latest=api.latest,
            paths=self._site.paths,
        )
        return expand_redirects(table, self._site.settings.i18n.locales)

    def plan(self, records: list[ContentRecord]) -> SitePlan:
        """Build navigation, redirects, and the page registry for *records*."""
        paths = self._site.paths
        groups = self.group(records)

        strict = self._site.settings.navigation.strict
        with trace_span("navigation", strict=strict) as span:
            learn_nav = build_navigation(
                self._site.learn_descriptor,
                groups.learn,
                strict=strict,
            )
            api = self.plan_api(groups.api)
            if span is not None:
                span.annotate("api_versions", len(api.navigation))

        with trace_span("redirects") as span:
            redirects = self.build_redirects(api)
            if span is not None:
                span.annotate("redirects", len(redirects))

        registry = PageRegistry(on_create=self._site.plugins.page_context)
        with trace_span("pages") as span:
            self._learn_pages(registry, groups.learn, learn_nav)
            self._blog_category_pages(registry, groups.blog)
            self._api_pages(registry, groups.api, api)
            self._blog_pages(registry, groups.blog)
            for record in groups.general:
                registry.create_page(record.slug, PageTemplate.GENERAL, record.to_context())
            if span is not None:
                span.annotate("pages", len(registry))

        logger.debug(
            "Planned %d pages and %d redirects under %s",
            len(registry),
            len(redirects),
            paths.learn,
        )
        return SitePlan(pages=registry, redirects=redirects, latest_api_version=api.latest)

    # ------------------------------------------------------------------
    # Page emission
    # ------------------------------------------------------------------

    def _learn_pages(
        self,
        registry: PageRegistry,
        records: list[ContentRecord],
        navigation: NavigationTree,
    ) -> None:
        navigation_data = navigation_to_dict(navigation)
        ordered = [(node.slug, node.title) for node in flatten_navigation(navigation)]
        pager = pagination(ordered)
        by_slug = {record.slug: record for record in records}

        def _context(record: ContentRecord) -> dict[str, Any]:
            neighbours = pager.get(record.slug, {"previous": None, "next": None})
            return {**record.to_context(), **neighbours, "navigationData": navigation_data}

        if ordered and ordered[0][0] in by_slug:
            first = by_slug[ordered[0][0]]
            registry.create_page(self._site.paths.learn, PageTemplate.LEARN, _context(first))

        for record in records:
            registry.create_page(record.slug, PageTemplate.LEARN, _context(record))

    def _blog_category_pages(self, registry: PageRegistry, records: list[ContentRecord]) -> None:
        categories = sorted(
            {r.fields.category_name for r in records if r.fields.category_name}
        )
        for name in categories:
            registry.create_page(
                f"{self._site.paths.blog}{name}/",
                PageTemplate.BLOG_CATEGORY,
                {"categoryName": name},
            )

    def _api_pages(self, registry: PageRegistry, records: list[ContentRecord], api: ApiPlan) -> None:
        navigation_data = {
            version: navigation_to_dict(tree) for version, tree in api.navigation.items()
        }
        for record in records:
            version = record.frontmatter.version
            registry.create_page(
                record.slug,
                PageTemplate.API,
                {
                    **record.to_context(),
                    "version": version,
                    "latestVersion": api.latest,
                    "navigationData": navigation_data.get(version or "", {}),
                },
            )

    def _blog_pages(self, registry: PageRegistry, records: list[ContentRecord]) -> None:
        newest_first = sorted(
            records,
            key=lambda r: (r.fields.date.isoformat() if r.fields.date else "", r.slug),
            reverse=True,
        )
        pager = pagination([(r.slug, r.title) for r in newest_first])
        for record in newest_first:
            registry.create_page(
                record.slug,
                PageTemplate.BLOG,
                {**record.to_context(), **pager[record.slug]},
            )

    # ------------------------------------------------------------------
    # Publication
    # ------------------------------------------------------------------

    @staticmethod
    def _publish(target: Path, plan: SitePlan, datasets: list[ExternalDataset]) -> None:
        with staged_output(target) as staging:
            write_json(staging / PAGES_MANIFEST, plan.pages.to_list())
            write_json(
                staging / REDIRECTS_MANIFEST,
                [entry.model_dump(by_alias=True) for entry in plan.redirects],
            )
            for dataset in datasets:
                write_json(staging / DATA_DIR / f"{dataset.type}.json", dataset.payload)
