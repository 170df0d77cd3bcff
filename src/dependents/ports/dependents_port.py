from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List
from dependents.core.dto import DependentEdge

class DependentsPort(ABC):
    """
    Abstract Class for the dependency-graph / download-statistics service.
    """

    # --- packages declaring a (dev-)dependency on `name` ---

    @abstractmethod
    async def fetch_dependents(self, name: str, dev: bool = False) -> List[DependentEdge]:
        raise NotImplementedError

    # --- monthly downloads; names without stats are absent ---

    @abstractmethod
    async def fetch_downloads(self, names: Iterable[str]) -> Dict[str, int]:
        raise NotImplementedError
