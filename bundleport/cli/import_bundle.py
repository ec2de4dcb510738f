"""CLI command importing a bundle (and its dependencies) into the project.

Imported bundles are added to the provisioning POM (found by its id anywhere
in the project tree) and, when the target directory is a bundle project, to
its POM as ``provided`` dependencies.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from bundleport.config import ImportConfig
from bundleport.maven.base import ArtifactResolutionError, ExistingElementError, PomError, ProjectContextError
from bundleport.maven.classifier import BundleClassifier
from bundleport.maven.coordinates import Coordinate
from bundleport.maven.pom import Pom, read_pom
from bundleport.maven.repository import MavenRepository
from bundleport.runtime.config_loader import load_import_config
from bundleport.runtime.importer import BundleImporter
from bundleport.runtime.report import render_summary, write_report
from bundleport.utils.dir_utils import find_pom, resolve_dir

logger = logging.getLogger("bundleport.cli.import_bundle")

# command-line switch -> ImportConfig field
_SWITCHES = {
    "transitive": "import_transitive",
    "optional": "import_optional",
    "widen_scope": "widen_scope",
    "test_metadata": "test_metadata",
    "deploy": "deploy",
    "overwrite": "overwrite",
    "offline": "offline",
    "provision_id": "provision_id",
    "local_repo": "local_repository",
}


def build_config(args) -> ImportConfig:
    """Load the configured settings and apply command-line overrides.

    Raises:
        ValueError: If the configuration cannot be parsed or is invalid.
    """
    config = load_import_config(getattr(args, "config", None))

    overrides: Dict[str, Any] = {}
    for option, field_name in _SWITCHES.items():
        value = getattr(args, option, None)
        if value is not None:
            overrides[field_name] = value

    repos = getattr(args, "repo", None)
    if repos:
        overrides["repositories"] = [
            {"id": f"repo{index}", "url": url} for index, url in enumerate(repos)
        ]

    if not overrides:
        return config
    return ImportConfig.from_dict({**config.to_dict(), **overrides})


def read_bundle_pom(here: Path) -> Optional[Pom]:
    """The POM in ``here`` if it builds a bundle."""
    try:
        pom = read_pom(here)
    except PomError as exc:
        logger.debug("Ignoring POM in %s: %s", here, exc)
        return None
    if pom is not None and pom.is_bundle_project():
        return pom
    return None


def locate_host_poms(target_dir: Path, provision_id: str) -> Tuple[Optional[Pom], Optional[Pom]]:
    """Find the POMs receiving imported bundles.

    Returns:
        Tuple of (provisioning POM, local bundle POM); either may be None.

    Raises:
        ProjectContextError: If neither POM exists.
    """
    provision_pom = find_pom(target_dir, provision_id)
    local_pom = read_bundle_pom(target_dir)

    if provision_pom is None and local_pom is None:
        raise ProjectContextError(
            "Cannot execute command. It requires a project with an existing pom.xml,"
            " but the build is not using one."
        )
    return provision_pom, local_pom


def populate_missing_fields(
    group_id: Optional[str],
    artifact_id: str,
    version: Optional[str],
    target_dir: Path,
    repository: MavenRepository,
) -> Coordinate:
    """Complete the root coordinate.

    Without a groupId the local project tree is searched for the artifact;
    failing that the groupId is assumed to equal the artifactId. A missing,
    ``RELEASE`` or ``LATEST`` version is looked up in repository metadata.

    Raises:
        ArtifactResolutionError: If no release version can be found.
    """
    coordinate = Coordinate(group_id or "", artifact_id, version or "")

    if not coordinate.group_id:
        local_pom = find_pom(target_dir, artifact_id)
        if local_pom is not None:
            # use the groupId from the POM
            coordinate = Coordinate(local_pom.group_id or artifact_id, artifact_id, coordinate.version)
            if coordinate.needs_release_version() and local_pom.version:
                coordinate = coordinate.with_version(local_pom.version)
        else:
            coordinate = Coordinate(artifact_id, artifact_id, coordinate.version)

    if coordinate.needs_release_version():
        release = repository.get_release_version(coordinate.group_id, coordinate.artifact_id)
        if release is None:
            raise ArtifactResolutionError(coordinate, "no release version found")
        coordinate = coordinate.with_version(release)

    return coordinate


def import_bundle_command(args) -> int:
    """Execute the import-bundle command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        config = build_config(args)
    except (ValueError, TypeError, OSError) as exc:
        logger.error("Invalid configuration: %s", exc)
        return 1

    target_dir = resolve_dir(getattr(args, "target_dir", None), ignore_errors=True)
    logger.info("Importing into project at %s", target_dir)

    try:
        provision_pom, local_pom = locate_host_poms(target_dir, config.provision_id)
    except ProjectContextError as exc:
        logger.error("%s", exc)
        return 1

    repository = MavenRepository.from_config(config)
    try:
        root = populate_missing_fields(
            getattr(args, "group_id", None),
            args.artifact_id,
            getattr(args, "version", None),
            target_dir,
            repository,
        )
    except ArtifactResolutionError as exc:
        logger.error("%s", exc)
        return 1

    importer = BundleImporter(
        resolver=repository,
        classifier=BundleClassifier(repository, test_metadata=config.test_metadata),
        config=config,
        locate_project=lambda coordinate: find_pom(target_dir, coordinate.ga),
    )

    try:
        result = importer.resolve_and_import(
            root, provision_pom, local_pom, getattr(args, "exclusions", None)
        )
    except ExistingElementError as exc:
        logger.error("Import aborted, no POM was updated: %s", exc)
        return 1

    report = getattr(args, "report", None)
    if report:
        try:
            write_report(result, Path(report))
        except OSError as exc:
            logger.warning("Unable to write import report %s: %s", report, exc)

    render_summary(result)
    return 0


__all__ = [
    "build_config",
    "import_bundle_command",
    "locate_host_poms",
    "populate_missing_fields",
    "read_bundle_pom",
]
