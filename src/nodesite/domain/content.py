"""Content records — frontmatter schema, derived fields, and parsing.

A :class:`ContentRecord` is one Markdown/MDX document as discovered on
disk. Derived fields (slug, date, reading time, authors, category name)
live in :class:`ContentFields` and are attached exactly once during
ingestion via ``model_copy``; records are frozen afterwards.

Pure parsing utilities (``parse_frontmatter``) live here so that the
dependency direction stays clean: infrastructure -> domain, never the
reverse.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from ruamel.yaml import YAML

_FRONTMATTER_DELIMITER = "---"


def _new_yaml() -> YAML:
    """Create a fresh safe YAML loader.

    A new instance per call keeps ruamel's stateful parser from leaking
    state across files.
    """
    return YAML(typ="safe", pure=True)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Frontmatter(BaseModel):
    """Frontmatter keys the build reads. Unknown keys are kept as extras."""

    model_config = {"frozen": True, "extra": "allow"}

    title: str | None = None
    description: str | None = None
    category: str | None = None
    version: str | None = None
    authors: str | None = None
    key: str | None = None
    section: str | None = None


class ReadingTime(BaseModel):
    """Reading-time estimate in the shape the presentation layer expects."""

    model_config = {"frozen": True}

    text: str
    minutes: float
    time: int
    words: int


class ContentFields(BaseModel):
    """Fields derived during ingestion."""

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    slug: str | None = None
    date: datetime | None = None
    reading_time: ReadingTime | None = None
    authors: list[str] | None = None
    category_name: str | None = None


class ContentRecord(BaseModel):
    """One Markdown/MDX document.

    Attributes:
        file_absolute_path: POSIX form of the file's absolute path.
        relative_path: Path relative to the content root.
        frontmatter: Parsed frontmatter.
        raw_body: Document body without the frontmatter block.
        fields: Derived fields; empty until ingestion enriches the record.
    """

    model_config = {"frozen": True}

    file_absolute_path: str
    relative_path: str
    frontmatter: Frontmatter = Field(default_factory=Frontmatter)
    raw_body: str = ""
    fields: ContentFields = Field(default_factory=ContentFields)

    @property
    def slug(self) -> str:
        """The derived slug. Empty string before ingestion."""
        return self.fields.slug or ""

    @property
    def title(self) -> str:
        return self.frontmatter.title or ""

    @property
    def nav_key(self) -> str:
        """Stable navigation key: explicit ``key`` frontmatter, else the file stem."""
        if self.frontmatter.key:
            return self.frontmatter.key
        return PurePosixPath(self.relative_path).stem

    def with_fields(self, **updates: Any) -> ContentRecord:
        """Return a copy with *updates* merged into :attr:`fields`."""
        merged = self.fields.model_copy(update=updates)
        return self.model_copy(update={"fields": merged})

    def to_context(self) -> dict[str, Any]:
        """Page-context view of the record (camelCase, JSON-safe)."""
        context: dict[str, Any] = {
            "slug": self.slug,
            "title": self.title,
            "relativePath": self.relative_path,
            "realPath": self.file_absolute_path,
            "frontmatter": self.frontmatter.model_dump(mode="json", exclude_none=True),
        }
        context.update(
            self.fields.model_dump(mode="json", by_alias=True, exclude_none=True)
        )
        return context


# ---------------------------------------------------------------------------
# Pure parsing utilities
# ---------------------------------------------------------------------------


def parse_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Parse YAML frontmatter and body from markdown content.

    Expects the file to start with ``---`` on the first line. The second
    ``---`` closes the YAML block. Everything after is the body.

    Handles both ``\\n`` and ``\\r\\n`` line endings.

    Returns:
        A ``(frontmatter_dict, body_text)`` tuple. If no valid
        frontmatter delimiters are found, returns ``({}, content)``.
    """
    normalized = content.replace("\r\n", "\n")
    lines = normalized.split("\n")
    if not lines or lines[0].strip() != _FRONTMATTER_DELIMITER:
        return {}, content

    end_idx: int | None = None
    for i, line in enumerate(lines[1:], start=1):
        if line.strip() == _FRONTMATTER_DELIMITER:
            end_idx = i
            break

    if end_idx is None:
        return {}, content

    yaml_block = "\n".join(lines[1:end_idx])
    body = "\n".join(lines[end_idx + 1 :])

    if body.startswith("\n"):
        body = body[1:]

    fm: dict[str, Any] = _new_yaml().load(yaml_block) or {}
    return fm, body


def build_record(
    *,
    file_absolute_path: str,
    relative_path: str,
    content: str,
) -> ContentRecord:
    """Build an un-enriched ContentRecord from raw file content.

    Scalar frontmatter values (e.g. ``version: 18``) are coerced to
    strings for the known string keys. An ``authors`` list is joined
    into the comma-separated form.
    """
    fm, body = parse_frontmatter(content)
    authors = fm.get("authors")
    if isinstance(authors, list):
        fm["authors"] = ",".join(str(name).strip() for name in authors)
    for key in ("title", "description", "category", "version", "authors", "key", "section"):
        value = fm.get(key)
        if value is not None and not isinstance(value, str):
            fm[key] = str(value)
    return ContentRecord(
        file_absolute_path=file_absolute_path,
        relative_path=relative_path,
        frontmatter=Frontmatter.model_validate(fm),
        raw_body=body,
    )
