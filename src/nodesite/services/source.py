"""SourceService — fetch the external datasets and publish them.

The three fetch jobs run concurrently in one ``asyncio.TaskGroup``:
all must succeed, the first failure cancels the others, and nothing is
written unless every dataset arrived. Published datasets are cached
under ``.nodesite/datasets/`` for later builds.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from datetime import date
from typing import TYPE_CHECKING

import httpx

from nodesite.domain.errors import DatasetFetchError, NodesiteError
from nodesite.infrastructure.datasets import (
    DATASET_TYPES,
    ExternalDataset,
    fetch_banners,
    fetch_node_releases,
    fetch_nvm,
)
from nodesite.infrastructure.filesystem import read_json, write_json
from nodesite.services.base import BaseService
from nodesite.services.result import ServiceResult
from nodesite.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from pathlib import Path

    from nodesite.config.models import SourcesConfig

logger = logging.getLogger(__name__)


async def _timed(name: str, job: Awaitable[ExternalDataset]) -> ExternalDataset:
    with trace_span(name) as span:
        dataset = await job
        if span is not None:
            span.annotate("digest", dataset.content_digest[:12])
        return dataset


async def fetch_all_datasets(
    client: httpx.AsyncClient,
    sources: SourcesConfig,
    *,
    today: date | None = None,
) -> list[ExternalDataset]:
    """Fetch every dataset concurrently; raise the first failure.

    Raises:
        DatasetFetchError: any job failed. Siblings are cancelled.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            releases = tg.create_task(
                _timed(
                    "Fetching Node release data",
                    fetch_node_releases(client, sources, today=today),
                )
            )
            banners = tg.create_task(
                _timed("Fetching Banners data", fetch_banners(client, sources))
            )
            nvm = tg.create_task(
                _timed("Fetching latest NVM version data", fetch_nvm(client, sources))
            )
    except ExceptionGroup as group:
        raise group.exceptions[0] from None

    return [releases.result(), banners.result(), nvm.result()]


def dataset_path(dataset_dir: Path, dataset_type: str) -> Path:
    return dataset_dir / f"{dataset_type}.json"


def publish_dataset(dataset_dir: Path, dataset: ExternalDataset) -> bool:
    """Write *dataset* unless the cached copy has the same digest.

    Returns True when the file was (re)written.
    """
    path = dataset_path(dataset_dir, dataset.type)
    if path.is_file():
        cached = ExternalDataset.model_validate(read_json(path))
        if cached.content_digest == dataset.content_digest:
            logger.debug("Dataset %s unchanged (%s)", dataset.type, dataset.content_digest[:12])
            return False
    write_json(path, dataset.model_dump(mode="json"))
    return True


def load_cached_datasets(dataset_dir: Path) -> list[ExternalDataset]:
    """Read every cached dataset.

    Raises:
        DatasetFetchError: a dataset has never been sourced.
    """
    datasets: list[ExternalDataset] = []
    for dataset_type in DATASET_TYPES:
        path = dataset_path(dataset_dir, dataset_type)
        if not path.is_file():
            msg = f"no cached copy at {path}; run 'nodesite source'"
            raise DatasetFetchError(dataset_type, msg)
        datasets.append(ExternalDataset.model_validate(read_json(path)))
    return datasets


class SourceService(BaseService):
    """Source external datasets into the site's dataset cache."""

    @traced
    def source(
        self,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        today: date | None = None,
    ) -> ServiceResult:
        """Fetch all datasets and publish them to the cache.

        Args:
            transport: Optional httpx transport (tests inject a MockTransport).
            today: Reference date for release status (defaults to today, UTC).
        """
        op = "source"
        sources = self._site.settings.sources

        async def _run() -> list[ExternalDataset]:
            async with httpx.AsyncClient(
                timeout=sources.timeout,
                transport=transport,
                follow_redirects=True,
            ) as client:
                return await fetch_all_datasets(client, sources, today=today)

        try:
            datasets = asyncio.run(_run())
        except NodesiteError as exc:
            logger.debug("Sourcing failed", exc_info=True)
            return ServiceResult.failure(op, "SOURCE_FAILED", str(exc))

        dataset_dir = self._site.dataset_dir
        written: list[str] = []
        unchanged: list[str] = []
        try:
            for dataset in datasets:
                if publish_dataset(dataset_dir, dataset):
                    written.append(dataset.type)
                else:
                    unchanged.append(dataset.type)
        except (OSError, ValueError) as exc:
            logger.debug("Publishing datasets failed", exc_info=True)
            return ServiceResult.failure(
                op, "SOURCE_FAILED", f"Cannot cache datasets in {dataset_dir}: {exc}"
            )

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "datasets": {d.type: d.content_digest for d in datasets},
                "written": written,
                "unchanged": unchanged,
            },
        )
