from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from dependents.core.dto import PackageMetadata


# Configuration model

@dataclass(frozen=True)
class ReportConfig:
    """
    User input / run configuration for a dependents report.
    """

    package: str
    number: Optional[int] = None        # None = unbounded
    output: str = "ci"
    exclude: Tuple[str, ...] = ()
    dev: bool = False
    list_only: bool = False
    depths: int = 0                     # 0 = no recursion
    recursive: int = 3                  # top-K expanded per level
    accumulate: bool = False
    quiet: bool = False
    file: Optional[str] = None

    @property
    def recursion_active(self) -> bool:
        return self.depths > 0 and self.recursive > 0


# Result models

@dataclass
class ResultNode:

    name: str
    version: str
    downloads: int = 0
    traffic: int = 0              # downloads * unpacked size of the parent package
    is_dev_dependency: bool = False
    expanded: bool = False        # picked for recursion; children hold its subtree
    children: List[ResultNode] = field(default_factory=list)


@dataclass
class Report:

    package: PackageMetadata
    results: List[ResultNode] = field(default_factory=list)
