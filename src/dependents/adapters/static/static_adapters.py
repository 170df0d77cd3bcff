from dependents.ports.dependents_port import DependentsPort
from dependents.ports.registry_port import RegistryPort
from dependents.core.dto import DependentEdge, NotFound, PackageMetadata, Resolved
from dependents.core.errors import DependentsFetchError
from typing import Dict, List, Optional, Set

class StaticRegistryAdapter(RegistryPort):
    def __init__(self,
                 packages: Optional[Dict[str, PackageMetadata]] = None,
                 ):
        self._packages = packages or {}
        self.calls: List[tuple] = []

    async def resolve(self, name, version = "latest"):
        self.calls.append((name, version))
        meta = self._packages.get(name)
        if meta is None:
            return NotFound(404)
        return Resolved(meta)


class StaticDependentsAdapter(DependentsPort):
    def __init__(self,
                 dependents: Optional[Dict[str, List[DependentEdge]]] = None,
                 dev_dependents: Optional[Dict[str, List[DependentEdge]]] = None,
                 downloads: Optional[Dict[str, int]] = None,
                 failing: Optional[Set[str]] = None,
                 ):
        self._deps = dependents or {}
        self._dev = dev_dependents or {}
        self._downloads = downloads or {}
        self._failing = failing or set()
        self.dependents_calls: List[str] = []
        self.downloads_calls: List[List[str]] = []

    async def fetch_dependents(self, name, dev = False):
        self.dependents_calls.append(name)
        if name in self._failing:
            raise DependentsFetchError("HTTP error! Status: 500", status_code=500)
        source = self._dev if dev else self._deps
        return list(source.get(name, []))

    async def fetch_downloads(self, names):
        keys = list(names)
        self.downloads_calls.append(keys)
        return {k: self._downloads[k] for k in keys if k in self._downloads}
