from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from dependents.core.dto import DependentEdge, PackageIdentifier, PackageMetadata, Resolved
from dependents.core.errors import PackageResolutionError
from dependents.core.models import Report, ReportConfig, ResultNode
from dependents.core.package_spec import parse_package_spec
from dependents.core.selection import filter_by_version, select_for_recursion, sort_by_downloads
from dependents.ports.dependents_port import DependentsPort
from dependents.ports.registry_port import RegistryPort

logger = logging.getLogger(__name__)

ProgressFn = Callable[[str, Dict[str, Any]], None]


def _noop(event: str, data: Dict[str, Any]) -> None:
    return None


class DependentsService:
    """
    Builds a download-ranked dependents report for one package.

    - Root: resolve, fetch dependents, version filter, score, expand
    - Subtrees: same steps without version filter; unresolvable packages
      become empty child lists so the rest of the tree survives
    - Siblings at a level are expanded concurrently
    """

    def __init__(self, registry: RegistryPort, dependents: DependentsPort) -> None:
        self.registry = registry
        self.dependents = dependents

    # -------------------------
    # Root
    # -------------------------

    async def resolve_root(self, ident: PackageIdentifier) -> PackageMetadata:
        res = await self.registry.resolve(ident.name, ident.requested_version or "latest")
        if not isinstance(res, Resolved):
            raise PackageResolutionError(ident.name, res.reason)
        return res.metadata

    async def list_dependents(self, cfg: ReportConfig) -> List[DependentEdge]:
        """Version-filtered dependents of the root package, unscored."""
        ident = parse_package_spec(cfg.package)
        meta = await self.resolve_root(ident)
        edges = await self.dependents.fetch_dependents(ident.name, dev=cfg.dev)
        return filter_by_version(edges, ident.requested_version, meta.version)

    async def report(self, cfg: ReportConfig, on_progress: Optional[ProgressFn] = None) -> Report:
        emit = on_progress or _noop
        ident = parse_package_spec(cfg.package)

        meta = await self.resolve_root(ident)
        emit("package", {"package": meta})

        emit("fetch", {"phase": "dependents", "name": ident.name})
        edges = await self.dependents.fetch_dependents(ident.name, dev=cfg.dev)
        emit("fetch_done", {"phase": "dependents", "count": len(edges)})

        # only the root honours an explicit version constraint
        edges = filter_by_version(edges, ident.requested_version, meta.version)

        emit("fetch", {"phase": "downloads", "count": len(edges)})
        results = await self._score(edges, meta, cfg)
        emit("fetch_done", {"phase": "downloads", "count": len(results)})

        if cfg.recursion_active:
            await self._expand(results, cfg.depths, cfg, emit)

        emit("done", {"count": len(results)})
        return Report(package=meta, results=results)

    # -------------------------
    # Subtrees
    # -------------------------

    async def build_tree(
        self,
        name: str,
        remaining_depth: int,
        cfg: ReportConfig,
        on_progress: Optional[ProgressFn] = None,
    ) -> List[ResultNode]:
        emit = on_progress or _noop

        res = await self.registry.resolve(name)
        if not isinstance(res, Resolved):
            logger.info("skipping subtree of %s: %s", name, res.reason)
            emit("skip", {"name": name, "reason": res.reason})
            return []

        edges = await self.dependents.fetch_dependents(name, dev=cfg.dev)
        results = await self._score(edges, res.metadata, cfg)

        if cfg.recursive > 0 and remaining_depth > 0:
            await self._expand(results, remaining_depth, cfg, emit)
        return results

    async def _expand(
        self,
        nodes: List[ResultNode],
        remaining_depth: int,
        cfg: ReportConfig,
        emit: ProgressFn,
    ) -> None:
        selected = select_for_recursion(nodes, cfg.exclude, cfg.recursive)
        if not selected:
            return

        tasks = [
            asyncio.ensure_future(self.build_tree(n.name, remaining_depth - 1, cfg, emit))
            for n in selected
        ]
        try:
            # gather keeps the input order
            subtrees = await asyncio.gather(*tasks)
        except BaseException:
            # first failure wins; siblings must not outlive the shared client
            for t in tasks:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        for node, children in zip(selected, subtrees):
            node.expanded = True
            node.children = children

    # -------------------------
    # Helpers
    # -------------------------

    async def _score(
        self,
        edges: List[DependentEdge],
        target: PackageMetadata,
        cfg: ReportConfig,
    ) -> List[ResultNode]:
        stats = await self.dependents.fetch_downloads(dict.fromkeys(e.name for e in edges))

        results: List[ResultNode] = []
        for e in edges:
            downloads = int(stats.get(e.name) or 0)
            results.append(
                ResultNode(
                    name=e.name,
                    version=e.declared_range,
                    downloads=downloads,
                    traffic=downloads * target.unpacked_size,
                    is_dev_dependency=cfg.dev,
                )
            )

        sort_by_downloads(results)
        return results
