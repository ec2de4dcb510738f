"""Maven model, POM store and repository access."""

from bundleport.maven.base import (
    ArtifactResolutionError,
    ExistingElementError,
    FetchError,
    PomError,
    ProjectContextError,
    RecoverableError,
)
from bundleport.maven.coordinates import (
    Coordinate,
    DeclaredDependency,
    Identity,
    ResolvedArtifact,
    Scope,
    parse_identities,
    parse_identity,
)
from bundleport.maven.pom import Dependency, Pom, compound_id, create_pom, read_pom

__all__ = [
    "ArtifactResolutionError",
    "Coordinate",
    "DeclaredDependency",
    "Dependency",
    "ExistingElementError",
    "FetchError",
    "Identity",
    "Pom",
    "PomError",
    "ProjectContextError",
    "RecoverableError",
    "ResolvedArtifact",
    "Scope",
    "compound_id",
    "create_pom",
    "parse_identities",
    "parse_identity",
    "read_pom",
]
