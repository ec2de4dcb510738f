"""Directory and project-tree utilities.

Helpers for locating POMs in a multi-module project tree, computing the path
between two directories through their common ancestor, and creating the
intermediate module POMs needed to reach a new project directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Protocol, Set, TypeVar

from bundleport.maven.base import PomError
from bundleport.maven.pom import Pom, compound_id, create_pom, read_pom, split_pom_id

logger = logging.getLogger("bundleport.utils.dir_utils")


class ProjectNode(Protocol):
    """Node of a project tree that can be searched depth-first."""

    @property
    def identity(self) -> str:
        ...

    def matches(self, group_id: Optional[str], artifact_id: str) -> bool:
        ...

    def children(self) -> Iterable["ProjectNode"]:
        ...

    def parent(self) -> Optional["ProjectNode"]:
        ...


NodeT = TypeVar("NodeT", bound=ProjectNode)


class RelativePath(NamedTuple):
    """Route from a base directory to a target directory.

    Attributes:
        ascent: ``../`` repeated once per level climbed from the base.
        common_dir: Canonical common ancestor directory.
        descent: ``name/`` segments leading from the common directory to the target.
    """

    ascent: str
    common_dir: Path
    descent: str

    def segments(self) -> list[str]:
        return [segment for segment in self.descent.split("/") if segment]


def resolve_dir(path: Optional[Path | str], ignore_errors: bool = False) -> Path:
    """Resolve a directory to its canonical path; None means the current directory.

    Raises:
        OSError: If resolution fails and ignore_errors is False.
    """
    candidate = Path(path) if path is not None else Path(".")
    try:
        return candidate.resolve()
    except (OSError, RuntimeError):
        if not ignore_errors:
            raise
        return candidate.absolute()


def search_tree(start: NodeT, group_id: Optional[str], artifact_id: str) -> Optional[NodeT]:
    """Depth-first search of a project tree for a matching node.

    Descends into the first unvisited child of the current node and
    backtracks to the parent when no unvisited child remains, so the whole
    reachable tree is searched, not just the subtree under ``start``. The
    search ends once backtracking passes above the top node.
    """
    visited: Set[str] = {start.identity}
    node: Optional[NodeT] = start

    while node is not None:
        if node.matches(group_id, artifact_id):
            return node

        child = _next_unvisited(node, visited)
        if child is not None:
            node = child
            continue

        # no more modules, backtrack
        node = node.parent()  # type: ignore[assignment]
        if node is not None:
            visited.add(node.identity)

    return None


def _next_unvisited(node: NodeT, visited: Set[str]) -> Optional[NodeT]:
    for child in node.children():
        if child.identity not in visited:
            visited.add(child.identity)
            return child  # type: ignore[return-value]
    return None


def find_pom(base_dir: Path, pom_id: Optional[str]) -> Optional[Pom]:
    """Search the local project tree for a POM with the given id.

    Args:
        base_dir: Directory in the project tree to start from.
        pom_id: Either ``artifactId`` (or bundle symbolic name) or ``groupId:artifactId``.

    Returns:
        Optional[Pom]: The matching POM, None if not found.
    """
    if not pom_id:
        return None

    group_id, artifact_id = split_pom_id(pom_id)

    try:
        start = read_pom(resolve_dir(base_dir, ignore_errors=True))
    except PomError as exc:
        logger.warning("Cannot search project tree from %s: %s", base_dir, exc)
        return None

    if start is None:
        logger.debug("No POM in %s, skipping search for %s", base_dir, pom_id)
        return None

    found = search_tree(start, group_id, artifact_id)
    if found is not None:
        logger.debug("Found %s at %s", pom_id, found.file)
    return found


def calculate_relative_path(base_dir: Path, target_dir: Path) -> Optional[RelativePath]:
    """Calculate the route (through a common directory) from base to target.

    Depth is compared by path segment count: the deeper path moves up one
    level at a time until both meet.

    Returns:
        Optional[RelativePath]: The route, None when the directories share no root.
    """
    source = resolve_dir(base_dir, ignore_errors=True)
    target = resolve_dir(target_dir, ignore_errors=True)

    ascent: list[str] = []
    descent: list[str] = []

    while source != target:
        if len(source.parts) < len(target.parts):
            # target is deeper, so descend to it from above
            descent.insert(0, target.name + "/")
            next_target = target.parent
            if next_target == target:
                return None
            target = next_target
        else:
            ascent.append("../")
            next_source = source.parent
            if next_source == source:
                return None
            source = next_source

    return RelativePath("".join(ascent), target, "".join(descent))


def create_module_tree(base_dir: Path, target_dir: Path) -> Optional[Pom]:
    """Ensure every directory from the common ancestor to target has a POM.

    Missing POMs are created as ``pom`` packaged modules, linked both ways to
    their parent. Each parent and new child is written immediately.

    Returns:
        Optional[Pom]: The POM in the target directory, None when base and
        target share no common directory.

    Raises:
        PomError: If the common directory has no POM.
        OSError: If a POM cannot be written.
    """
    target = resolve_dir(target_dir, ignore_errors=True)

    # target directory already has a POM
    existing = read_pom(target)
    if existing is not None:
        return existing

    pivot = calculate_relative_path(base_dir, target)
    if pivot is None:
        logger.warning("Unable to find common directory for %s and %s", base_dir, target)
        return None

    parent_pom = read_pom(pivot.common_dir)
    if parent_pom is None:
        raise PomError(f"No POM found in common directory {pivot.common_dir}")

    child_pom = parent_pom
    here = pivot.common_dir
    for module in pivot.segments():
        here = here / module
        child_pom = read_pom(here)

        if child_pom is None:
            parent_pom.add_module(module, overwrite=True)
            parent_pom.write()

            group_id = compound_id(parent_pom.group_id, parent_pom.artifact_id)
            child_pom = create_pom(here, group_id, module)
            child_pom.set_parent(parent_pom, None, overwrite=True)
            child_pom.write()
            logger.info("Created module %s:%s in %s", group_id, module, here)

        parent_pom = child_pom

    return child_pom


__all__ = [
    "ProjectNode",
    "RelativePath",
    "calculate_relative_path",
    "create_module_tree",
    "find_pom",
    "resolve_dir",
    "search_tree",
]
