"""Exception hierarchy for build failures.

Every error here is fatal for the build run: services catch
:class:`NodesiteError` and turn it into a failed ServiceResult.
"""

from __future__ import annotations


class NodesiteError(Exception):
    """Base class for all nodesite build errors."""


class MalformedBlogFilename(NodesiteError):
    """A file under the blog root does not follow ``YYYY-MM-DD-<name>.md``."""

    def __init__(self, relative_path: str) -> None:
        self.relative_path = relative_path
        super().__init__(
            f"Blog post filename must match YYYY-MM-DD-<name>.md: {relative_path!r}"
        )


class MissingSlug(NodesiteError):
    """No slug rule produced a non-empty slug for a content record."""

    def __init__(self, relative_path: str) -> None:
        self.relative_path = relative_path
        super().__init__(f"Could not derive a slug for {relative_path!r} (missing title?)")


class NavigationError(NodesiteError):
    """A navigation descriptor is malformed or (in strict mode) references missing content."""


class LocaleBundleError(NodesiteError):
    """A configured locale has no readable message bundle."""


class DatasetFetchError(NodesiteError):
    """An external dataset could not be fetched or normalised."""

    def __init__(self, dataset: str, reason: str) -> None:
        self.dataset = dataset
        super().__init__(f"Failed to source {dataset}: {reason}")


class UnsafeOutputDir(NodesiteError):
    """The output directory would replace a site input when published."""

    def __init__(self, output_dir: str, protected: str) -> None:
        self.output_dir = output_dir
        self.protected = protected
        super().__init__(f"Refusing to publish into {output_dir}: it contains {protected}")
