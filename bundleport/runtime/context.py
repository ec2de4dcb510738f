"""Per-run state of a bundle import.

Everything an import run mutates (worklist, visited identities, the two
target POMs and the import graph) lives in one ``ImportContext`` that the
importer passes through every step. Nothing is kept in module state.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Deque, Dict, Iterable, List, Optional, Set

import networkx as nx

from bundleport.maven.coordinates import Coordinate, Identity
from bundleport.maven.pom import Pom

logger = logging.getLogger("bundleport.runtime.context")


class NodeStatus(str, Enum):
    """Outcome recorded for an artifact in the import graph."""

    PENDING = "pending"
    IMPORTED = "imported"
    AGGREGATOR = "aggregator"
    SKIPPED = "skipped"
    UNRESOLVED = "unresolved"
    EXCLUDED = "excluded"


def node_id(identity: Identity) -> str:
    return f"{identity[0]}:{identity[1]}"


@dataclass
class ImportResult:
    """What an import run did.

    Attributes:
        root: Root coordinate of the run.
        graph: Import graph; nodes are ``group:artifact`` ids with ``version``
            and ``status`` attributes, edges are declared dependencies.
        processed: Coordinates in the order they were taken off the worklist.
        imported: Coordinates written to at least one POM.
        skipped: Artifacts that were resolved but are not bundles.
        unresolved: Artifacts whose POM could not be resolved.
        stopped_early: True when the run ended at the first bundle.
        persisted: POM files written at the end of the run.
    """

    root: Coordinate
    graph: nx.DiGraph = field(default_factory=nx.DiGraph)
    processed: List[Coordinate] = field(default_factory=list)
    imported: List[Coordinate] = field(default_factory=list)
    skipped: List[Coordinate] = field(default_factory=list)
    unresolved: List[Coordinate] = field(default_factory=list)
    stopped_early: bool = False
    persisted: List[Path] = field(default_factory=list)

    def status(self, identity: Identity) -> Optional[NodeStatus]:
        data = self.graph.nodes.get(node_id(identity))
        return data["status"] if data else None


@dataclass
class ImportContext:
    """Mutable state of a single import run."""

    root: Coordinate
    provision_pom: Optional[Pom]
    local_pom: Optional[Pom]
    worklist: Deque[Coordinate] = field(default_factory=deque)
    visited: Set[Identity] = field(default_factory=set)
    scheduled: Dict[Identity, Coordinate] = field(default_factory=dict)
    result: ImportResult = field(init=False)

    def __post_init__(self) -> None:
        self.result = ImportResult(root=self.root)

    @classmethod
    def start(
        cls,
        root: Coordinate,
        provision_pom: Optional[Pom],
        local_pom: Optional[Pom],
        exclusions: Iterable[Identity] = (),
    ) -> "ImportContext":
        """Seed a context: exclusions and the root are visited, the root is queued."""
        ctx = cls(root=root, provision_pom=provision_pom, local_pom=local_pom)
        for identity in exclusions:
            ctx.visited.add(identity)
            ctx.mark(identity, NodeStatus.EXCLUDED)
        ctx.visited.add(root.identity)
        ctx.scheduled[root.identity] = root
        ctx.worklist.append(root)
        ctx.mark(root.identity, NodeStatus.PENDING, root.version)
        return ctx

    @property
    def poms(self) -> List[Pom]:
        return [pom for pom in (self.provision_pom, self.local_pom) if pom is not None]

    def has_pending(self) -> bool:
        return bool(self.worklist)

    def next(self) -> Coordinate:
        coordinate = self.worklist.popleft()
        self.result.processed.append(coordinate)
        return coordinate

    def schedule(self, coordinate: Coordinate) -> bool:
        """Queue a coordinate unless its identity was already visited.

        Returns:
            bool: True if the coordinate was appended to the worklist.
        """
        identity = coordinate.identity
        if identity in self.visited:
            earlier = self.scheduled.get(identity)
            if earlier is not None and coordinate.version and earlier.version != coordinate.version:
                logger.warning(
                    "Version mismatch for %s: keeping %s, ignoring %s",
                    coordinate.ga,
                    earlier.version,
                    coordinate.version,
                )
            return False

        self.visited.add(identity)
        self.scheduled[identity] = coordinate
        self.worklist.append(coordinate)
        self.mark(identity, NodeStatus.PENDING, coordinate.version)
        return True

    def mark(self, identity: Identity, status: NodeStatus, version: Optional[str] = None) -> None:
        attrs = {"status": status}
        if version is not None:
            attrs["version"] = version
        self.result.graph.add_node(node_id(identity), **attrs)

    def link(self, parent: Coordinate, child: Coordinate, scope: str, effective_scope: str) -> None:
        graph = self.result.graph
        target = node_id(child.identity)
        if target not in graph:
            graph.add_node(target, status=NodeStatus.SKIPPED, version=child.version)
        graph.add_edge(
            node_id(parent.identity),
            target,
            scope=scope,
            effective_scope=effective_scope,
        )


__all__ = ["ImportContext", "ImportResult", "NodeStatus", "node_id"]
