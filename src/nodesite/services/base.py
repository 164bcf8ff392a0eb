"""BaseService — abstract foundation for all nodesite services.

Every service receives a :class:`Site` at construction time. The Site
provides settings, plugins, and the static inputs (locale messages,
navigation descriptors, redirect map).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from nodesite.infrastructure.site import Site


class BaseService:
    """Abstract base for all service-layer classes.

    Usage::

        class BuildService(BaseService):
            def build(self, ...) -> ServiceResult:
                paths = self._site.paths
                ...
    """

    def __init__(self, site: Site) -> None:
        self._site = site
