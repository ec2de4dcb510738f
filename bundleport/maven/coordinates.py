"""Maven coordinate and artifact data model.

Coordinates are compared by their full ``group:artifact:version`` text, but
the import run deduplicates on the ``(group, artifact)`` identity only, so at
most one version of a given artifact is ever scheduled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

Identity = Tuple[str, str]

RELEASE_MARKERS = {"", "RELEASE", "LATEST"}


class Scope(str, Enum):
    """Maven dependency scopes."""

    COMPILE = "compile"
    RUNTIME = "runtime"
    TEST = "test"
    SYSTEM = "system"
    PROVIDED = "provided"
    IMPORT = "import"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Scope":
        """Parse a POM scope string; missing or unknown scopes mean compile."""
        if not value:
            return cls.COMPILE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.COMPILE

    def adjust(self, widen: bool) -> "Scope":
        """Apply scope widening.

        With widening enabled every scope except ``system`` and ``test`` is
        promoted to ``provided`` so that compile and runtime dependencies of
        an imported bundle become import candidates too.
        """
        if widen and self not in (Scope.SYSTEM, Scope.TEST):
            return Scope.PROVIDED
        return self


@dataclass(frozen=True)
class Coordinate:
    """Maven artifact coordinates (groupId, artifactId, version)."""

    group_id: str
    artifact_id: str
    version: str = ""

    @property
    def identity(self) -> Identity:
        return (self.group_id, self.artifact_id)

    @property
    def ga(self) -> str:
        return f"{self.group_id}:{self.artifact_id}"

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        """Parse ``group:artifact[:version]``.

        Raises:
            ValueError: If fewer than two fields are present.
        """
        fields = [part.strip() for part in text.strip().split(":")]
        if len(fields) < 2 or not fields[0] or not fields[1]:
            raise ValueError(f"Invalid coordinate '{text}', expected group:artifact[:version]")
        version = fields[2] if len(fields) > 2 else ""
        return cls(fields[0], fields[1], version)

    def with_version(self, version: str) -> "Coordinate":
        return Coordinate(self.group_id, self.artifact_id, version)

    def needs_release_version(self) -> bool:
        return self.version.strip().upper() in RELEASE_MARKERS

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version}"


@dataclass(frozen=True)
class DeclaredDependency:
    """A dependency declared by a resolved artifact's POM."""

    coordinate: Coordinate
    scope: Scope = Scope.COMPILE
    optional: bool = False
    type: str = "jar"

    def __str__(self) -> str:
        text = f"{self.coordinate}:{self.scope.value}"
        if self.optional:
            text += " (optional)"
        return text


@dataclass
class ResolvedArtifact:
    """An artifact whose POM has been resolved from a repository.

    Attributes:
        coordinate: Resolved coordinates (version interpolated).
        packaging: POM packaging; ``pom`` marks a dependency aggregator.
        dependencies: Declared dependencies, in POM order.
        local_dir: Directory of the matching project in the local tree.
        local_bundle: True when that local project builds a bundle.
        name: Display name used in log messages.
        generated: True when the POM was missing and a stub was synthesised.
    """

    coordinate: Coordinate
    packaging: str = "jar"
    dependencies: List[DeclaredDependency] = field(default_factory=list)
    local_dir: Optional[Path] = None
    local_bundle: bool = False
    name: Optional[str] = None
    generated: bool = False

    @property
    def is_aggregator(self) -> bool:
        return self.packaging == "pom"

    @property
    def display_name(self) -> str:
        return self.name or str(self.coordinate)


def parse_identity(token: str) -> Optional[Identity]:
    """Parse an exclusion token into an identity.

    ``group:artifact[:anything]`` keeps the first two fields; a bare token is
    assumed to use the same value for group and artifact.
    """
    token = token.strip()
    if not token:
        return None
    fields = token.split(":")
    if len(fields) > 1:
        return (fields[0].strip(), fields[1].strip())
    return (token, token)


def parse_identities(spec: Optional[str | Iterable[str]]) -> Set[Identity]:
    """Parse a comma-separated string (or iterable of tokens) into identities."""
    if not spec:
        return set()
    tokens: Iterable[str] = spec.split(",") if isinstance(spec, str) else spec
    identities: Set[Identity] = set()
    for token in tokens:
        for part in token.split(","):
            identity = parse_identity(part)
            if identity is not None:
                identities.add(identity)
    return identities


__all__ = [
    "Coordinate",
    "DeclaredDependency",
    "Identity",
    "ResolvedArtifact",
    "Scope",
    "parse_identities",
    "parse_identity",
]
