"""External datasets — fetch, normalise, and content-address.

Three independent jobs, each producing exactly one dataset:

- ``NodeReleases``: release schedule + dist index, one row per major version.
- ``Banners``: the promotional banner currently configured for the site.
- ``Nvm``: the latest nvm release tag.

Each dataset carries a sha256 digest over its canonical JSON payload so
reruns can detect unchanged data. Datasets are immutable and replaced
wholesale on the next fetch.
"""

from __future__ import annotations

import hashlib
import json
import logging
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any, Literal

import httpx
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from nodesite.domain.errors import DatasetFetchError
from nodesite.domain.versions import version_key

if TYPE_CHECKING:
    from nodesite.config.models import SourcesConfig

logger = logging.getLogger(__name__)

DatasetType = Literal["NodeReleases", "Banners", "Nvm"]

DATASET_TYPES: tuple[DatasetType, ...] = ("NodeReleases", "Banners", "Nvm")

_CAMEL = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class ExternalDataset(BaseModel):
    """A normalised, content-addressed dataset record."""

    model_config = {"frozen": True}

    id: str
    type: DatasetType
    media_type: str = "application/json"
    content: str
    content_digest: str
    payload: dict[str, Any]


class NodeRelease(BaseModel):
    """One Node.js major release line."""

    model_config = _CAMEL

    version: str
    full_version: str
    codename: str
    status: str
    is_lts: bool
    initial_release: str
    lts_start: str | None = None
    maintenance_start: str | None = None
    end_of_life: str | None = None


class BannersIndex(BaseModel):
    """Time-windowed banner shown on the landing page."""

    model_config = _CAMEL

    start_date: str | None = None
    end_date: str | None = None
    link: str | None = None
    text: str | None = None
    html: str | None = None


# ---------------------------------------------------------------------------
# Content addressing
# ---------------------------------------------------------------------------


def canonical_json(payload: Any) -> str:
    """Key-sorted, whitespace-free JSON used for digests."""
    return json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def content_digest(payload: Any) -> str:
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def dataset_id(dataset_type: str) -> str:
    """Stable node id for a dataset type."""
    return hashlib.sha256(f"nodesite:{dataset_type}".encode()).hexdigest()[:16]


def make_dataset(dataset_type: DatasetType, payload: dict[str, Any]) -> ExternalDataset:
    return ExternalDataset(
        id=dataset_id(dataset_type),
        type=dataset_type,
        content=canonical_json(payload),
        content_digest=content_digest(payload),
        payload=payload,
    )


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------


def release_status(schedule_entry: dict[str, Any], today: date) -> str:
    """Support status of a release line on *today*."""

    def _reached(key: str) -> bool:
        value = schedule_entry.get(key)
        return bool(value) and date.fromisoformat(value) <= today

    if not _reached("start"):
        return "Pending"
    if _reached("end"):
        return "End-of-life"
    if _reached("maintenance"):
        return "Maintenance LTS"
    if _reached("lts"):
        return "Active LTS"
    return "Current"


def normalize_releases(
    schedule: dict[str, Any],
    index: list[dict[str, Any]],
    *,
    today: date,
) -> dict[str, Any]:
    """Merge the release schedule with the dist index.

    Only release lines that have started are kept, ordered by major
    version. ``fullVersion`` is the newest published release of the line.
    """
    newest: dict[str, str] = {}
    versions: list[str] = []
    for entry in index:
        full = entry["version"]
        versions.append(full)
        major = full.split(".")[0]
        if major not in newest or version_key(full) > version_key(newest[major]):
            newest[major] = full

    releases: list[NodeRelease] = []
    for major, info in schedule.items():
        status = release_status(info, today)
        if status == "Pending":
            continue
        releases.append(
            NodeRelease(
                version=major,
                full_version=newest.get(major, f"{major}.0.0"),
                codename=str(info.get("codename") or major).lower(),
                status=status,
                is_lts=status == "Active LTS",
                initial_release=info["start"],
                lts_start=info.get("lts"),
                maintenance_start=info.get("maintenance"),
                end_of_life=info.get("end"),
            )
        )
    releases.sort(key=lambda r: version_key(r.version))

    return {
        "nodeReleasesData": [r.model_dump(by_alias=True) for r in releases],
        "nodeReleasesVersion": versions,
    }


def normalize_banners(site: dict[str, Any]) -> dict[str, Any]:
    """Extract ``banners.index`` from the site JSON."""
    raw = (site.get("banners") or {}).get("index") or {}
    banner = BannersIndex.model_validate(raw)
    return {"index": banner.model_dump(by_alias=True, exclude_none=True)}


def normalize_nvm(release: dict[str, Any]) -> dict[str, Any]:
    """Keep only the tag of the latest nvm release."""
    return {"version": release["tag_name"]}


# ---------------------------------------------------------------------------
# Fetchers
# ---------------------------------------------------------------------------


async def _get_json(client: httpx.AsyncClient, url: str, dataset: str) -> Any:
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as exc:
        raise DatasetFetchError(dataset, f"{url}: {exc}") from exc
    except ValueError as exc:
        raise DatasetFetchError(dataset, f"{url} returned invalid JSON") from exc


async def fetch_node_releases(
    client: httpx.AsyncClient,
    sources: SourcesConfig,
    *,
    today: date | None = None,
) -> ExternalDataset:
    schedule = await _get_json(client, sources.release_schedule_url, "NodeReleases")
    index = await _get_json(client, sources.release_index_url, "NodeReleases")
    try:
        payload = normalize_releases(schedule, index, today=today or datetime.now(UTC).date())
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise DatasetFetchError("NodeReleases", f"unexpected payload: {exc!r}") from exc
    return make_dataset("NodeReleases", payload)


async def fetch_banners(client: httpx.AsyncClient, sources: SourcesConfig) -> ExternalDataset:
    site = await _get_json(client, sources.banners_url, "Banners")
    try:
        payload = normalize_banners(site)
    except (TypeError, ValueError, AttributeError) as exc:
        raise DatasetFetchError("Banners", f"unexpected payload: {exc!r}") from exc
    return make_dataset("Banners", payload)


async def fetch_nvm(client: httpx.AsyncClient, sources: SourcesConfig) -> ExternalDataset:
    release = await _get_json(client, sources.nvm_url, "Nvm")
    try:
        payload = normalize_nvm(release)
    except (KeyError, TypeError) as exc:
        raise DatasetFetchError("Nvm", f"unexpected payload: {exc!r}") from exc
    return make_dataset("Nvm", payload)
