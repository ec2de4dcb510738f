"""Maven repository access.

Resolves artifact POMs (with parent inheritance, property interpolation and
dependency management) and fetches artifact files, preferring the local
repository and downloading from remote repositories into it when needed.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from packaging.version import InvalidVersion, Version

from bundleport.config import ImportConfig, RepositoryConfig
from bundleport.maven.base import (
    ArtifactResolutionError,
    BaseArtifactFetcher,
    FetchError,
    PomError,
)
from bundleport.maven.coordinates import (
    Coordinate,
    DeclaredDependency,
    Identity,
    ResolvedArtifact,
    Scope,
)
from bundleport.maven.pom import Dependency, Pom
from bundleport.utils.validation import validate_safe_path

logger = logging.getLogger("bundleport.maven.repository")

_PROPERTY_PATTERN = re.compile(r"\$\{([^}]+)\}")
_MAX_INTERPOLATION_PASSES = 8
METADATA_FILE = "maven-metadata.xml"
LOCAL_METADATA_FILE = "maven-metadata-local.xml"


@dataclass
class ArtifactMetadata:
    """Versioning information read from ``maven-metadata.xml``."""

    release: Optional[str] = None
    latest: Optional[str] = None
    versions: List[str] = field(default_factory=list)


class MavenRepository(BaseArtifactFetcher):
    """Resolve and fetch artifacts from a local repository backed by remotes."""

    NAME = "maven_repository"
    MAX_PARENT_DEPTH = 16

    def __init__(
        self,
        local_repository: Path,
        repositories: Sequence[Union[RepositoryConfig, str]] = (),
        offline: bool = False,
        timeout: int = 300,
    ) -> None:
        super().__init__(local_repository, timeout=timeout)
        self.repositories: List[RepositoryConfig] = [
            repo if isinstance(repo, RepositoryConfig) else RepositoryConfig(id=f"repo{i}", url=repo)
            for i, repo in enumerate(repositories)
        ]
        self.offline = offline

    @classmethod
    def from_config(cls, config: ImportConfig) -> "MavenRepository":
        return cls(
            local_repository=config.local_repository,
            repositories=config.repositories,
            offline=config.offline,
            timeout=config.download_timeout,
        )

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    @staticmethod
    def artifact_path(
        coordinate: Coordinate, extension: str = "jar", classifier: Optional[str] = None
    ) -> PurePosixPath:
        """Repository-relative path of an artifact file."""
        suffix = f"-{classifier}" if classifier else ""
        file_name = f"{coordinate.artifact_id}-{coordinate.version}{suffix}.{extension}"
        return PurePosixPath(
            *coordinate.group_id.split("."),
            coordinate.artifact_id,
            coordinate.version,
            file_name,
        )

    def fetch_file(self, coordinate: Coordinate, extension: str = "jar") -> Optional[Path]:
        """Return the local path of an artifact file, downloading it if needed."""
        if not coordinate.version:
            logger.debug("Cannot fetch %s without a version", coordinate.ga)
            return None
        try:
            return self._fetch(self.artifact_path(coordinate, extension))
        except FetchError as exc:
            logger.warning("Refusing to fetch %s: %s", coordinate, exc)
            return None

    def _fetch(self, relative: PurePosixPath, refresh: bool = False) -> Optional[Path]:
        if not validate_safe_path(Path(relative), self.cache_root):
            raise FetchError(f"{relative} escapes the local repository")

        local = self.cache_root / Path(relative)
        if local.is_file() and not refresh:
            return local
        if self.offline:
            return local if local.is_file() else None

        for repo in self.repositories:
            if self.download_file(f"{repo.url}/{relative.as_posix()}", local):
                return local
        return local if local.is_file() else None

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, coordinate: Coordinate) -> ResolvedArtifact:
        """Resolve an artifact's POM into a ResolvedArtifact.

        A POM that cannot be found anywhere is replaced by a generated jar
        stub with no dependencies, so the jar itself can still be inspected.

        Raises:
            ArtifactResolutionError: If the version is unusable or a POM is broken.
        """
        if not coordinate.version:
            raise ArtifactResolutionError(coordinate, "no version given")
        if coordinate.version[0] in "[(":
            raise ArtifactResolutionError(coordinate, "version ranges are not supported")

        pom_path = self.fetch_file(coordinate, "pom")
        if pom_path is None:
            logger.info("No POM found for %s, assuming jar packaging", coordinate)
            return ResolvedArtifact(coordinate=coordinate, packaging="jar", generated=True)

        try:
            pom = Pom.read(pom_path)
            lineage = self._lineage(pom)
        except PomError as exc:
            raise ArtifactResolutionError(coordinate, str(exc)) from exc

        properties = _effective_properties(lineage)
        managed = _managed_dependencies(lineage, properties)

        dependencies: List[DeclaredDependency] = []
        for dependency in _inherited_dependencies(lineage):
            declared = _declare(dependency, properties, managed)
            if declared is None:
                logger.debug("Ignoring incomplete dependency %s in %s", dependency, coordinate)
                continue
            dependencies.append(declared)

        return ResolvedArtifact(
            coordinate=coordinate,
            packaging=_interpolate(pom.packaging, properties),
            dependencies=dependencies,
            name=_interpolate(pom.name, properties) if pom.name else None,
        )

    def _lineage(self, pom: Pom) -> List[Pom]:
        """The POM followed by its ancestors, nearest first."""
        lineage = [pom]
        seen = {pom.coordinate}
        current = pom
        while len(lineage) < self.MAX_PARENT_DEPTH:
            parent_coordinate = current.parent_coordinate
            if parent_coordinate is None or parent_coordinate in seen:
                break
            parent_path = self.fetch_file(parent_coordinate, "pom")
            if parent_path is None:
                logger.warning("Parent POM %s not found, inheritance stops there", parent_coordinate)
                break
            current = Pom.read(parent_path)
            seen.add(parent_coordinate)
            lineage.append(current)
        return lineage

    # ------------------------------------------------------------------
    # Versions
    # ------------------------------------------------------------------

    def get_release_version(self, group_id: str, artifact_id: str) -> Optional[str]:
        """Find the latest release version from repository metadata.

        Returns:
            Optional[str]: The version, None when no metadata lists one.
        """
        candidates: List[str] = []
        for metadata in self._metadata(group_id, artifact_id):
            if metadata.release:
                candidates.append(metadata.release)
            elif metadata.latest:
                candidates.append(metadata.latest)
            elif metadata.versions:
                candidates.append(max(metadata.versions, key=_version_key))

        if not candidates:
            logger.warning("No release version found for %s:%s", group_id, artifact_id)
            return None
        release = max(candidates, key=_version_key)
        logger.info("Using release version %s of %s:%s", release, group_id, artifact_id)
        return release

    def _metadata(self, group_id: str, artifact_id: str) -> Iterable[ArtifactMetadata]:
        base = PurePosixPath(*group_id.split("."), artifact_id)
        paths: List[Path] = []

        local_metadata = self.cache_root / Path(base / LOCAL_METADATA_FILE)
        if local_metadata.is_file():
            paths.append(local_metadata)

        for repo in self.repositories:
            cached = base / f"maven-metadata-{repo.id}.xml"
            try:
                local = self._fetch_metadata(repo, base, cached)
            except FetchError as exc:
                logger.warning("Refusing to fetch metadata for %s:%s: %s", group_id, artifact_id, exc)
                continue
            if local is not None:
                paths.append(local)

        for path in paths:
            metadata = _read_metadata(path)
            if metadata is not None:
                yield metadata

    def _fetch_metadata(
        self, repo: RepositoryConfig, base: PurePosixPath, cached: PurePosixPath
    ) -> Optional[Path]:
        if not validate_safe_path(Path(cached), self.cache_root):
            raise FetchError(f"{cached} escapes the local repository")
        local = self.cache_root / Path(cached)
        if self.offline:
            return local if local.is_file() else None
        # metadata changes over time, so always refresh when online
        if self.download_file(f"{repo.url}/{(base / METADATA_FILE).as_posix()}", local):
            return local
        return local if local.is_file() else None


def _version_key(version: str) -> Tuple[int, Union[Version, str]]:
    try:
        return (1, Version(version))
    except InvalidVersion:
        return (0, version)


def _read_metadata(path: Path) -> Optional[ArtifactMetadata]:
    try:
        root = ET.parse(path).getroot()
    except (OSError, ET.ParseError) as exc:
        logger.warning("Ignoring unreadable metadata %s: %s", path, exc)
        return None

    ns = root.tag.split("}", 1)[0] + "}" if root.tag.startswith("{") else ""

    def text_of(elem: Optional[ET.Element]) -> Optional[str]:
        text = (elem.text or "").strip() if elem is not None else ""
        return text or None

    return ArtifactMetadata(
        release=text_of(root.find(f"{ns}versioning/{ns}release")),
        latest=text_of(root.find(f"{ns}versioning/{ns}latest")),
        versions=[
            text
            for text in map(text_of, root.findall(f"{ns}versioning/{ns}versions/{ns}version"))
            if text
        ],
    )


def _interpolate(value: Optional[str], properties: Dict[str, str]) -> str:
    """Replace ``${name}`` references; unknown references are left as-is."""
    text = value or ""
    for _ in range(_MAX_INTERPOLATION_PASSES):
        replaced = _PROPERTY_PATTERN.sub(
            lambda match: properties.get(match.group(1), match.group(0)), text
        )
        if replaced == text:
            break
        text = replaced
    return text


def _effective_properties(lineage: List[Pom]) -> Dict[str, str]:
    properties: Dict[str, str] = {}
    for pom in reversed(lineage):
        properties.update(pom.properties())

    pom = lineage[0]
    builtins = {
        "groupId": pom.group_id or "",
        "artifactId": pom.artifact_id or "",
        "version": pom.version or "",
    }
    for prefix in ("project", "pom"):
        for key, value in builtins.items():
            properties[f"{prefix}.{key}"] = value
        parent = pom.parent_coordinate
        if parent is not None:
            properties[f"{prefix}.parent.groupId"] = parent.group_id
            properties[f"{prefix}.parent.artifactId"] = parent.artifact_id
            properties[f"{prefix}.parent.version"] = parent.version
    return properties


def _managed_dependencies(
    lineage: List[Pom], properties: Dict[str, str]
) -> Dict[Identity, Dependency]:
    managed: Dict[Identity, Dependency] = {}
    for pom in reversed(lineage):
        for dependency in pom.managed_dependencies():
            key = (
                _interpolate(dependency.group_id, properties),
                _interpolate(dependency.artifact_id, properties),
            )
            managed[key] = dependency
    return managed


def _inherited_dependencies(lineage: List[Pom]) -> List[Dependency]:
    """Own dependencies first, then inherited ones not redeclared."""
    seen: set = set()
    merged: List[Dependency] = []
    for pom in lineage:
        for dependency in pom.dependencies():
            if dependency.identity in seen:
                continue
            seen.add(dependency.identity)
            merged.append(dependency)
    return merged


def _declare(
    dependency: Dependency,
    properties: Dict[str, str],
    managed: Dict[Identity, Dependency],
) -> Optional[DeclaredDependency]:
    group_id = _interpolate(dependency.group_id, properties)
    artifact_id = _interpolate(dependency.artifact_id, properties)
    if not group_id or not artifact_id:
        return None

    defaults = managed.get((group_id, artifact_id))
    version = dependency.version or (defaults.version if defaults else None)
    scope = dependency.scope or (defaults.scope if defaults else None)

    return DeclaredDependency(
        coordinate=Coordinate(group_id, artifact_id, _interpolate(version, properties)),
        scope=Scope.parse(_interpolate(scope, properties)),
        optional=dependency.optional,
        type=_interpolate(dependency.type, properties) or "jar",
    )


__all__ = ["ArtifactMetadata", "MavenRepository"]
