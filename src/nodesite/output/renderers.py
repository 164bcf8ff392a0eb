"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from nodesite.output.console import create_console, get_output, style_for_template

if TYPE_CHECKING:
    from rich.console import Console

    from nodesite.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    if result.op == "slug" and "slug" in result.data:
        return str(result.data["slug"])
    if result.op == "redirects":
        return "\n".join(
            f"{r['fromPath']} {r['toPath']}" for r in result.data.get("redirects", [])
        )
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK status line."""
    label = Text("OK", style="site.ok")
    op = Text(f"  {result.op}", style="site.op")
    console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="site.key")
    if key in ("path", "slug", "output_dir"):
        v = Text(str(value), style="site.path")
    elif isinstance(value, (dict, list)):
        v = Text(_json.dumps(value, separators=(",", ":")))
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print meta block including telemetry span tree (verbose only)."""
    if not result.meta:
        return

    console.print()
    console.print(Text("  meta:", style="dim"))

    for k, v in result.meta.items():
        if k == "telemetry":
            _render_telemetry_tree(console, v, indent=4)
        else:
            console.print(f"    {k}: {v}")


def _render_telemetry_tree(
    console: Console,
    span_data: dict[str, Any],
    indent: int = 4,
) -> None:
    """Render a hierarchical span tree with color-coded timing."""
    prefix = " " * indent
    name = span_data.get("name", "?")
    duration = span_data.get("duration_ms", 0.0)

    if duration > 1000:
        style = "bold red"
    elif duration > 100:
        style = "yellow"
    else:
        style = "dim"

    line = f"{prefix}[{style}]{duration:>8.2f}ms[/{style}]  {name}"
    annotations = span_data.get("annotations") or {}
    if annotations:
        line += "  (" + ", ".join(f"{k}={v}" for k, v in annotations.items()) + ")"

    console.print(line)

    for child in span_data.get("children", []):
        _render_telemetry_tree(console, child, indent=indent + 4)


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="site.error")
    op = Text(f"  {result.op}", style="site.op")
    sep = Text(" — ")
    console.print(label, op, sep, msg)

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(f"    {k}: {v}")


# ── Build renderers ───────────────────────────────────────────────────


def _render_build(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render build results: output location, counts, per-template table."""
    _status_line(console, result)
    d = result.data
    for key in ("output_dir", "pages", "redirects", "latest_api_version"):
        if key in d and d[key] is not None:
            _field(console, key, d[key])

    templates = d.get("templates") or {}
    if templates:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Template")
        table.add_column("Pages", justify="right")
        for template, count in templates.items():
            table.add_row(Text(template, style=style_for_template(template)), str(count))
        console.print(table)

    if verbose:
        datasets = d.get("datasets") or {}
        for name, digest in datasets.items():
            console.print(f"    {name}: [site.digest]{digest[:12]}[/site.digest]")
        _render_meta(console, result)


def _render_source(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render source results: one row per dataset."""
    _status_line(console, result)
    d = result.data
    written = set(d.get("written", []))

    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Dataset")
    table.add_column("Digest", style="site.digest", no_wrap=True)
    table.add_column("Status")
    for name, digest in (d.get("datasets") or {}).items():
        status = "written" if name in written else "unchanged"
        table.add_row(name, digest[:12], status)
    console.print(table)

    if verbose:
        _render_meta(console, result)


def _render_redirects(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the expanded redirect table."""
    _status_line(console, result)
    redirects = result.data.get("redirects", [])
    _field(console, "count", len(redirects))
    if redirects:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("From", style="site.path")
        table.add_column("To", style="site.target")
        if verbose:
            table.add_column("Status", justify="right")
        for entry in redirects:
            row = [str(entry.get("fromPath", "")), str(entry.get("toPath", ""))]
            if verbose:
                row.append(str(entry.get("statusCode", "")))
            table.add_row(*row)
        console.print(table)
    if verbose:
        _render_meta(console, result)


def _render_slug(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render the derived fields of one content file."""
    _status_line(console, result)
    d = result.data
    for key in ("path", "slug", "categoryName", "date", "authors"):
        if key in d:
            _field(console, key, d[key])
    reading = d.get("readingTime")
    if reading:
        _field(console, "readingTime", reading.get("text", ""))
    if verbose:
        _render_meta(console, result)


def _render_ingest(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render ingest results; the path/slug table only when verbose."""
    _status_line(console, result)
    d = result.data
    _field(console, "count", d.get("count", 0))
    if verbose:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("File", style="dim")
        table.add_column("Slug", style="site.path")
        for path, slug in (d.get("slugs") or {}).items():
            table.add_row(path, slug)
        console.print(table)
        _render_meta(console, result)


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    "build": _render_build,
    "source": _render_source,
    "redirects": _render_redirects,
    "slug": _render_slug,
    "ingest": _render_ingest,
}
