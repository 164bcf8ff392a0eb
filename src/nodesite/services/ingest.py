"""IngestService — discover content files and enrich them into records.

Each record passes through every ``on_create_node`` hook exactly once.
Any failure (malformed blog filename, missing slug, unreadable file)
aborts ingestion; no partially enriched record set is returned.
"""

from __future__ import annotations

import logging
from pathlib import Path

from nodesite.domain.content import ContentRecord
from nodesite.domain.errors import MissingSlug, NodesiteError
from nodesite.infrastructure.filesystem import find_content_files, read_content_record
from nodesite.services.base import BaseService
from nodesite.services.result import ServiceResult
from nodesite.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class IngestService(BaseService):
    """Content discovery and field enrichment."""

    def load_records(self) -> list[ContentRecord]:
        """Discover and enrich every content file, in path order.

        Raises:
            NodesiteError: a record could not be enriched.
            OSError: a content file could not be read.
        """
        content_root = self._site.content_dir
        with trace_span("ingest") as span:
            records = [self.enrich(path) for path in find_content_files(content_root)]
            if span is not None:
                span.annotate("records", len(records))
        logger.debug("Ingested %d content records from %s", len(records), content_root)
        return records

    def enrich(self, path: Path, content_root: Path | None = None) -> ContentRecord:
        """Read one file and attach the fields contributed by plugins."""
        record = read_content_record(path, content_root or self._site.content_dir)
        fields = self._site.plugins.node_fields(record)
        enriched = record.with_fields(**fields)
        if not enriched.slug:
            raise MissingSlug(enriched.relative_path)
        return enriched

    @traced
    def ingest(self) -> ServiceResult:
        """Ingest all content and report the derived slugs."""
        op = "ingest"
        try:
            records = self.load_records()
        except (NodesiteError, OSError, ValueError) as exc:
            return ServiceResult.failure(op, "INGEST_FAILED", str(exc))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "count": len(records),
                "slugs": {r.relative_path: r.slug for r in records},
            },
        )

    @traced
    def describe(self, path: Path) -> ServiceResult:
        """Derive the fields of a single content file."""
        op = "slug"
        path = path.resolve()
        content_root = self._site.content_dir.resolve()
        if not path.is_relative_to(content_root):
            return ServiceResult.failure(
                op,
                "NOT_CONTENT",
                f"{path} is not under the content root {content_root}",
            )
        try:
            enriched = self.enrich(path, content_root)
        except (NodesiteError, OSError, ValueError) as exc:
            return ServiceResult.failure(op, "INGEST_FAILED", str(exc))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "path": enriched.relative_path,
                **enriched.fields.model_dump(mode="json", by_alias=True, exclude_none=True),
            },
        )
