"""Slug derivation and ingestion-time field enrichment.

Rules, applied in order:

1. File under the blog content directory: ``<blog>[<category>/]<YYYY>/<MM>/<DD>/<name>``,
   parsed from a ``YYYY-MM-DD-<name>.md`` filename. Date and reading
   time are attached as well.
2. ``category: learn``: ``<learn><slugify(title)>/``, replacing the blog slug.
3. ``category: api``: ``<api><version>/<title>/``, replacing the blog slug.
4. No slug yet: ``slugify(title)``.

A blog file keeps its date and reading time even when rule 2 or 3
replaces its slug.

INVARIANT: every enriched record carries exactly one non-empty slug.
"""

from __future__ import annotations

import math
import re
import unicodedata
from datetime import UTC, datetime
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any

from nodesite.domain.content import ReadingTime
from nodesite.domain.errors import MalformedBlogFilename, MissingSlug

if TYPE_CHECKING:
    from nodesite.config.models import PathsConfig
    from nodesite.domain.content import ContentRecord

BLOG_POST_FILENAME_REGEX = re.compile(r"([0-9]+)-([0-9]+)-([0-9]+)-(.+)\.md$")

WORDS_PER_MINUTE = 200

_WORD_RE = re.compile(r"\S+")


def slugify(title: str) -> str:
    """Turn a page title into a URL segment.

    Lowercases, folds accented characters to ASCII, spells out ``&``,
    drops remaining punctuation, and joins words with single dashes.

    Examples:
        >>> slugify("How to read environment variables from Node.js")
        'how-to-read-environment-variables-from-nodejs'
        >>> slugify("Héllo & Goodbye!")
        'hello-and-goodbye'
    """
    text = unicodedata.normalize("NFKD", title)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower().replace("&", " and ")
    text = re.sub(r"[^a-z0-9\s-]", "", text)
    text = re.sub(r"[\s-]+", "-", text)
    return text.strip("-")


def estimate_reading_time(text: str) -> ReadingTime:
    """Estimate reading time at 200 words per minute."""
    words = len(_WORD_RE.findall(text))
    minutes = words / WORDS_PER_MINUTE
    displayed = math.ceil(round(minutes, 2))
    return ReadingTime(
        text=f"{displayed} min read",
        minutes=minutes,
        time=round(minutes * 60 * 1000),
        words=words,
    )


def is_blog_file(relative_path: str, paths: PathsConfig) -> bool:
    """Whether *relative_path* (from the content root) lies under the blog directory.

    The blog URL root doubles as the content sub-directory: ``/blog/``
    matches ``blog/2022-11-11-post.md``.
    """
    blog_dir = paths.blog.strip("/")
    return bool(blog_dir) and PurePosixPath(relative_path).is_relative_to(blog_dir)


def derive_fields(record: ContentRecord, paths: PathsConfig) -> dict[str, Any]:
    """Compute the derived fields for *record*.

    Returns a dict of :class:`~nodesite.domain.content.ContentFields`
    updates. Keys are only present when the field applies.

    Raises:
        MalformedBlogFilename: blog file whose name does not carry a date.
        MissingSlug: no rule produced a slug.
    """
    fm = record.frontmatter
    fields: dict[str, Any] = {}

    if is_blog_file(record.relative_path, paths):
        fields.update(_blog_fields(record, paths))

    if fm.category == "learn" and fm.title:
        fields["slug"] = f"{paths.learn}{slugify(fm.title)}/"
    elif fm.category == "api" and fm.title and fm.version:
        fields["slug"] = f"{paths.api}{fm.version}/{fm.title}/"
    elif not fields.get("slug") and fm.title:
        fields["slug"] = slugify(fm.title)

    if not fields.get("slug"):
        raise MissingSlug(record.relative_path)

    if fm.authors:
        fields["authors"] = fm.authors.split(",")

    if fm.category:
        fields["category_name"] = fm.category

    return fields


def _blog_fields(record: ContentRecord, paths: PathsConfig) -> dict[str, Any]:
    match = BLOG_POST_FILENAME_REGEX.search(record.relative_path)
    if match is None:
        raise MalformedBlogFilename(record.relative_path)

    year, month, day, name = match.groups()
    try:
        date = datetime(int(year), int(month), int(day), tzinfo=UTC)
    except ValueError as exc:
        raise MalformedBlogFilename(record.relative_path) from exc

    slug = paths.blog
    if record.frontmatter.category:
        slug += f"{record.frontmatter.category}/"
    slug += f"{year}/{month}/{day}/{name}"

    return {
        "slug": slug,
        "date": date,
        "reading_time": estimate_reading_time(record.raw_body),
    }
