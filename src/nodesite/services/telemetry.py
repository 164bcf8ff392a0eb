"""Build timing: ``Span``, ``trace_span`` and ``@traced``.

With ``-v`` every service operation records a span tree: one root per
``@traced`` operation, one child per build phase (ingest, navigation,
redirects, pages, publish) and one per dataset fetch. The tree lands in
``ServiceResult.meta["telemetry"]`` and each finished span is logged.

Disabled, the cost is one ``ContextVar.get`` per call. Each asyncio
task sees its own current span, so concurrent fetches nest under the
span that started them.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from nodesite.services.result import ServiceResult

log = structlog.get_logger("nodesite.telemetry")

_enabled: ContextVar[bool] = ContextVar("_telemetry_enabled", default=False)
_current_span: ContextVar[Span | None] = ContextVar("_current_span", default=None)


@dataclass
class Span:
    """One timed phase with optional annotations (counts, digests)."""

    name: str
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            result["annotations"] = dict(self.annotations)
        if self.children:
            result["children"] = [child.to_dict() for child in self.children]
        return result


def _log_span(span: Span, *, ok: bool) -> None:
    log.debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        **span.annotations,
    )


@contextmanager
def trace_span(name: str, **annotations: Any) -> Generator[Span | None]:
    """Time a phase as a child of the current span.

    Yields None when telemetry is off or no ``@traced`` operation is
    running; callers annotate only a real span.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return

    child = Span(name=name, annotations=dict(annotations))
    parent.children.append(child)
    token = _current_span.set(child)
    ok = False
    try:
        yield child
        ok = True
    finally:
        child.end()
        _current_span.reset(token)
        _log_span(child, ok=ok)


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Time a service operation and attach its span tree to the result.

    A nested ``@traced`` call (``build`` running ``source``) gets its own
    tree in its own result.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        span = Span(name=func.__qualname__)
        token = _current_span.set(span)
        ok = False
        try:
            result = func(*args, **kwargs)
            ok = not isinstance(result, ServiceResult) or result.ok
        finally:
            span.end()
            _current_span.reset(token)
            _log_span(span, ok=ok)

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": span.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry(enabled: bool = True) -> None:
    """Switch span recording on (``-v``) or off."""
    _enabled.set(enabled)
