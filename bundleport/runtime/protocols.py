"""Capabilities consumed by the bundle importer.

The importer only talks to these protocols, so tests can swap in
deterministic in-memory fakes for repository access and jar inspection.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from bundleport.maven.coordinates import Coordinate, ResolvedArtifact
from bundleport.maven.pom import Pom


@runtime_checkable
class ArtifactResolver(Protocol):
    """Resolve coordinates into artifacts and fetch their files."""

    def resolve(self, coordinate: Coordinate) -> ResolvedArtifact:
        """Resolve the artifact's POM.

        Raises:
            ArtifactResolutionError: If the artifact cannot be resolved.
        """

    def fetch_file(self, coordinate: Coordinate, extension: str = "jar") -> Optional[Path]:
        """Return a local copy of an artifact file, None if unavailable."""


@runtime_checkable
class BundleOracle(Protocol):
    """Classify resolved artifacts as bundles."""

    def is_bundle(self, artifact: ResolvedArtifact) -> bool:
        """Return True for deployable bundles; must not raise."""


@runtime_checkable
class ProjectLocator(Protocol):
    """Find the local project (if any) that builds an artifact."""

    def __call__(self, coordinate: Coordinate) -> Optional[Pom]:
        ...


__all__ = ["ArtifactResolver", "BundleOracle", "ProjectLocator"]
