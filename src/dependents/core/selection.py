from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from nodesemver import satisfies

from dependents.core.dto import DependentEdge
from dependents.core.models import ResultNode


def parse_excludes(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(part for part in raw.split(",") if part)


def is_excluded(name: str, excludes: Iterable[str]) -> bool:
    return any(ex in name for ex in excludes)


def exclude_filter(nodes: Sequence[ResultNode], excludes: Iterable[str]) -> List[ResultNode]:
    excludes = tuple(excludes)
    return [n for n in nodes if not is_excluded(n.name, excludes)]


def sort_by_downloads(nodes: List[ResultNode]) -> None:
    # list.sort is stable: ties keep fetch order
    nodes.sort(key=lambda n: n.downloads, reverse=True)


def select_for_recursion(
    nodes: Sequence[ResultNode],
    excludes: Iterable[str],
    width: int,
) -> List[ResultNode]:
    if width <= 0:
        return []
    return exclude_filter(nodes, excludes)[:width]


def select_for_display(
    nodes: Sequence[ResultNode],
    excludes: Iterable[str],
    number: Optional[int] = None,
    width: Optional[int] = None,
) -> List[ResultNode]:
    """
    Rows shown at one level: excludes dropped, then cut to ``number``.

    ``width`` is the recursion width and only passed for the top level when
    recursion is active. Without it, a level that had nodes expanded shows
    only those, so a tree re-read from a file is cut the same way.
    """
    out = exclude_filter(nodes, excludes)
    if width:
        out = out[:width]
    elif any(n.expanded for n in out):
        out = [n for n in out if n.expanded]
    if number is not None:
        out = out[:max(number, 0)]
    return out


def range_satisfied(version: str, declared_range: str) -> bool:
    if not declared_range or not declared_range.strip():
        return True
    # non-semver specs (git urls, tags, workspace:) never match
    try:
        return bool(satisfies(version, declared_range))
    except ValueError:
        return False


def filter_by_version(
    edges: Sequence[DependentEdge],
    requested_version: Optional[str],
    resolved_version: str,
) -> List[DependentEdge]:
    # no explicit version requested -> keep everything
    if not requested_version:
        return list(edges)
    return [e for e in edges if range_satisfied(resolved_version, e.declared_range)]
