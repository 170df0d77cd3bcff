from __future__ import annotations

from typing import Any, Dict, List, Sequence

from dependents.core.errors import ResultFileError
from dependents.core.models import ResultNode


def node_to_dict(n: ResultNode) -> Dict[str, Any]:
    # camelCase keys: files written by earlier releases stay readable
    return {
        "name": n.name,
        "version": n.version,
        "downloads": n.downloads,
        "traffic": n.traffic,
        "isDevDependency": n.is_dev_dependency,
        "expanded": n.expanded,
        "children": [node_to_dict(c) for c in n.children],
    }


def nodes_to_list(nodes: Sequence[ResultNode]) -> List[Dict[str, Any]]:
    return [node_to_dict(n) for n in nodes]


def node_from_dict(d: Any) -> ResultNode:
    if not isinstance(d, dict) or not isinstance(d.get("name"), str):
        raise ResultFileError(f"Invalid result entry: {d!r}")
    try:
        downloads = int(d.get("downloads") or 0)
        traffic = int(d.get("traffic") or 0)
    except (TypeError, ValueError) as e:
        raise ResultFileError(f"Invalid counters for {d['name']}: {e}") from e

    children = d.get("children") or []
    if not isinstance(children, list):
        raise ResultFileError(f"Invalid children for {d['name']}")

    return ResultNode(
        name=d["name"],
        version=str(d.get("version") or ""),
        downloads=downloads,
        traffic=traffic,
        is_dev_dependency=bool(d.get("isDevDependency", False)),
        expanded=bool(d.get("expanded", False)),
        children=[node_from_dict(c) for c in children],
    )


def nodes_from_list(data: Any) -> List[ResultNode]:
    if not isinstance(data, list):
        raise ResultFileError("Result file must contain a JSON array")
    return [node_from_dict(d) for d in data]
