from __future__ import annotations

from typing import List

from dependents.core.models import ResultNode
from dependents.core.selection import sort_by_downloads


def accumulate(node: ResultNode) -> int:
    """Downloads of ``node`` plus everything below it."""
    return node.downloads + sum(accumulate(child) for child in node.children)


def accumulate_results(nodes: List[ResultNode], unpacked_size: int) -> List[ResultNode]:
    """
    Roll each top-level subtree up into its root node, in place.

    Children are dropped afterwards and the list is re-sorted by the new
    totals. ``unpacked_size`` is the size of the reported package, the same
    multiplier used when the nodes were scored.
    """
    for node in nodes:
        node.downloads = accumulate(node)
        node.traffic = node.downloads * unpacked_size
        node.children = []

    sort_by_downloads(nodes)
    return nodes
