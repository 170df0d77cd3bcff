from __future__ import annotations

import json
from pathlib import Path
from typing import List, Sequence

from dependents.core.errors import ResultFileError
from dependents.core.models import ResultNode
from dependents.io.schemas import nodes_from_list, nodes_to_list


def write_results_json(nodes: Sequence[ResultNode], out_file: str) -> str:
    out_path = Path(out_file)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    with out_path.open("w", encoding="utf-8") as f:
        json.dump(nodes_to_list(nodes), f, indent=2)

    return str(out_path)


def read_results_json(in_file: str) -> List[ResultNode]:
    """
    Load a result file written by ``write_results_json``.

    Every failure (missing file, bad JSON, wrong shape) surfaces as
    ResultFileError.
    """
    try:
        with Path(in_file).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ResultFileError(f"Failed to read file {in_file}: {e}") from e

    return nodes_from_list(data)
