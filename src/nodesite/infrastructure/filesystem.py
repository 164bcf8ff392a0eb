"""Filesystem operations for site content, descriptors, and build output.

Pure parsing lives in :mod:`nodesite.domain.content` (correct dependency
direction: infrastructure -> domain). This module handles actual file
I/O, path resolution, and file discovery.

INVARIANT: a failed build never leaves a partial output directory.
Manifests are written to a staging directory that replaces the output
directory only once everything was written.
"""

from __future__ import annotations

import json
import logging
import shutil
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from nodesite.domain.content import ContentRecord, build_record
from nodesite.domain.errors import LocaleBundleError, NavigationError, UnsafeOutputDir

logger = logging.getLogger(__name__)

CONTENT_SUFFIXES = (".md", ".mdx")

# Directories to skip when discovering content files.
_SKIP_DIRS = frozenset({".git", "node_modules", ".cache", ".nodesite"})


# ---------------------------------------------------------------------------
# Content discovery
# ---------------------------------------------------------------------------


def find_content_files(content_root: Path) -> list[Path]:
    """Discover all Markdown/MDX files under *content_root*, sorted."""
    if not content_root.exists():
        return []

    results: list[Path] = []
    for path in content_root.rglob("*"):
        if not path.is_file():
            continue
        if any(part in _SKIP_DIRS for part in path.relative_to(content_root).parts):
            continue
        if path.suffix in CONTENT_SUFFIXES:
            results.append(path)

    return sorted(results)


def read_content_record(path: Path, content_root: Path) -> ContentRecord:
    """Read one content file into an un-enriched record."""
    content = path.read_text(encoding="utf-8")
    return build_record(
        file_absolute_path=path.resolve().as_posix(),
        relative_path=path.relative_to(content_root).as_posix(),
        content=content,
    )


# ---------------------------------------------------------------------------
# Descriptors and static data
# ---------------------------------------------------------------------------


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML navigation descriptor. A missing file is an empty tree."""
    if not path.is_file():
        logger.debug("Navigation descriptor not found: %s", path)
        return {}
    try:
        data = YAML(typ="safe", pure=True).load(path.read_text(encoding="utf-8"))
    except YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise NavigationError(msg) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"Navigation descriptor {path} must be a mapping of sections"
        raise NavigationError(msg)
    return data


def load_redirect_map(path: Path) -> dict[str, str]:
    """Load the hand-authored ``old-path -> new-path`` JSON map.

    A missing file means no static redirects.

    Raises:
        ValueError: the file is not a JSON object of strings.
    """
    if not path.is_file():
        return {}
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in data.items()
    ):
        msg = f"Redirect map {path} must be a JSON object of string -> string"
        raise ValueError(msg)
    return data


def load_locale_bundles(locales_dir: Path, codes: Sequence[str]) -> dict[str, dict[str, Any]]:
    """Load ``<locales_dir>/<code>.json`` for every configured locale.

    Raises:
        LocaleBundleError: a bundle is missing, unreadable, or not a JSON object.
    """
    bundles: dict[str, dict[str, Any]] = {}
    for code in codes:
        path = locales_dir / f"{code}.json"
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            msg = f"Cannot load messages for locale {code!r} from {path}: {exc}"
            raise LocaleBundleError(msg) from exc
        if not isinstance(data, dict):
            msg = f"Messages for locale {code!r} must be a JSON object: {path}"
            raise LocaleBundleError(msg)
        bundles[code] = data
    return bundles


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def write_json(path: Path, data: Any) -> None:
    """Write *data* as pretty JSON, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def check_output_dir(output_dir: Path, protected: Iterable[Path]) -> None:
    """Reject an output directory that is, or contains, a protected path.

    Publishing replaces the whole output directory, so it must never
    hold the site root, the content directory, or any other site input.

    Raises:
        UnsafeOutputDir: *output_dir* equals or contains a protected path.
    """
    target = output_dir.resolve()
    for path in protected:
        resolved = path.resolve()
        if resolved == target or resolved.is_relative_to(target):
            raise UnsafeOutputDir(str(target), str(resolved))


@contextmanager
def staged_output(output_dir: Path) -> Iterator[Path]:
    """Yield a staging directory that replaces *output_dir* on clean exit.

    On any exception the staging directory is removed and *output_dir*
    is left untouched.
    """
    staging = output_dir.with_name(f".{output_dir.name}.staging")
    if staging.exists():
        shutil.rmtree(staging)
    staging.mkdir(parents=True)
    try:
        yield staging
    except BaseException:
        shutil.rmtree(staging, ignore_errors=True)
        raise

    if output_dir.exists():
        shutil.rmtree(output_dir)
    staging.rename(output_dir)
