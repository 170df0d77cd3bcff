from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from rich.markup import escape

from dependents.config import settings
from dependents.core.models import ResultNode
from dependents.core.selection import select_for_display
from dependents.io.schemas import node_to_dict


MD_HEADER = "| # | Downloads | Traffic | Version | Package |\n|---|---|---|---|---|"


@dataclass(frozen=True)
class DisplayRow:
    depth: int
    index: str
    downloads: str
    traffic: str
    name: str
    version: str
    link: str


def format_downloads(downloads: int) -> str:
    if downloads >= 1_000_000_000:
        return f"{downloads / 1_000_000_000:.2f}B"
    if downloads >= 1_000_000:
        return f"{downloads / 1_000_000:.2f}M"
    if downloads >= 1_000:
        return f"{downloads / 1_000:.2f}k"
    return str(downloads)


def format_traffic(num_bytes: int) -> str:
    for factor, unit in ((1e15, "PB"), (1e12, "TB"), (1e9, "GB"), (1e6, "MB"), (1e3, "KB")):
        if num_bytes >= factor:
            return f"{num_bytes / factor:.2f} {unit}"
    return f"{num_bytes} bytes"


def package_link(name: str) -> str:
    return f"{settings.PACKAGE_LINK_BASE_URL}/{name}"


def build_rows(
    nodes: Sequence[ResultNode],
    excludes: Iterable[str] = (),
    number: Optional[int] = None,
    width: Optional[int] = None,
    nested: bool = True,
    depth: int = 0,
) -> List[DisplayRow]:
    """
    Flatten the visible part of a result tree into padded display rows.

    ``width`` cuts the top level only; deeper levels show the nodes that were
    expanded, or all of them below the last expanded level. Children follow
    their parent row when ``nested`` is set.
    """
    excludes = tuple(excludes)
    visible = select_for_display(nodes, excludes, number, width)
    if not visible:
        return []

    index_w = len(str(len(visible)))
    downloads_w = max(len(format_downloads(n.downloads)) for n in visible)
    traffic_w = max(len(format_traffic(n.traffic)) for n in visible)
    name_w = max(len(n.name) for n in visible)
    version_w = min(max(len(n.version) for n in visible), settings.MAX_VERSION_WIDTH)

    rows: List[DisplayRow] = []
    for i, n in enumerate(visible, start=1):
        rows.append(
            DisplayRow(
                depth=depth,
                index=str(i).ljust(index_w),
                downloads=format_downloads(n.downloads).rjust(downloads_w),
                # zero traffic stays blank
                traffic=(format_traffic(n.traffic) if n.traffic else "").rjust(traffic_w),
                name=n.name.ljust(name_w),
                version=n.version[:settings.MAX_VERSION_WIDTH].ljust(version_w),
                link=package_link(n.name),
            )
        )
        if nested and n.children:
            rows.extend(build_rows(n.children, excludes, number, None, nested, depth + 1))
    return rows


def _md_cell(value: str) -> str:
    return value.replace("|", "\\|")


def render_md(rows: Sequence[DisplayRow]) -> List[str]:
    lines = [MD_HEADER]
    for r in rows:
        if r.depth:
            continue
        name = r.name.rstrip()
        lines.append(
            f"| {_md_cell(r.index)} | {_md_cell(r.downloads)} | {_md_cell(r.traffic)} "
            f"| {_md_cell(r.version)} | [{_md_cell(name)}]({_md_cell(r.link)}) |"
        )
    return lines


def render_ci(rows: Sequence[DisplayRow]) -> List[str]:
    """Rich markup lines, children indented two spaces per level."""
    lines = []
    for r in rows:
        indent = "  " * r.depth
        lines.append(
            f"{indent}[green]#{escape(r.index)}[/] [magenta]{escape(r.downloads)}[/] ⬇️ , "
            f"[red]{escape(r.traffic)}[/] - [yellow]{escape(r.name)}[/] "
            f"[blue]{escape(r.version)}[/] {escape(r.link)}"
        )
    return lines


def _visible_dicts(
    nodes: Sequence[ResultNode],
    excludes: Iterable[str],
    number: Optional[int],
    width: Optional[int],
) -> List[dict]:
    out = []
    for n in select_for_display(nodes, excludes, number, width):
        d = node_to_dict(n)
        d["children"] = _visible_dicts(n.children, excludes, None, None)
        out.append(d)
    return out


def render_json(
    nodes: Sequence[ResultNode],
    excludes: Iterable[str] = (),
    number: Optional[int] = None,
    width: Optional[int] = None,
) -> str:
    """Serialized top-level rows, with the subtree each expanded node built."""
    return json.dumps(_visible_dicts(nodes, tuple(excludes), number, width), indent=2)
