"""Transitive bundle import.

``BundleImporter`` walks the dependency graph of a root artifact breadth
first. Dependency POMs (``pom`` packaging) only contribute their
dependencies, bundles are written to the provisioning POM and/or the local
bundle POM, and every other artifact is skipped. Only ``provided``
dependencies (after optional scope widening) become new candidates, and each
``group:artifact`` identity is scheduled at most once per run.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Union

import requests

from bundleport.config import ImportConfig
from bundleport.maven.base import RecoverableError
from bundleport.maven.classifier import SystemBundleFilter
from bundleport.maven.coordinates import (
    Coordinate,
    ResolvedArtifact,
    Scope,
    parse_identities,
)
from bundleport.maven.pom import Dependency, Pom
from bundleport.runtime.context import ImportContext, ImportResult, NodeStatus
from bundleport.runtime.protocols import ArtifactResolver, BundleOracle, ProjectLocator

logger = logging.getLogger("bundleport.runtime.importer")

_SAFE_EXCEPTIONS = (RecoverableError, OSError, ValueError, requests.RequestException)

Exclusions = Optional[Union[str, Iterable[str]]]


class BundleImporter:
    """Import a bundle and (optionally) its provided dependencies into POMs.

    Args:
        resolver: Resolves coordinates into artifacts.
        classifier: Decides which artifacts are bundles.
        config: Import switches (transitive, optional, widen scope, deploy, overwrite).
        locate_project: Finds the local project building an artifact, if any.
        system_filter: Framework artifacts that are never followed.
    """

    def __init__(
        self,
        resolver: ArtifactResolver,
        classifier: BundleOracle,
        config: Optional[ImportConfig] = None,
        locate_project: Optional[ProjectLocator] = None,
        system_filter: Optional[SystemBundleFilter] = None,
    ) -> None:
        self.resolver = resolver
        self.classifier = classifier
        self.config = config or ImportConfig.default()
        self.locate_project = locate_project
        self.system_filter = system_filter or SystemBundleFilter(self.config.system_bundles)

    def resolve_and_import(
        self,
        root: Coordinate,
        provision_pom: Optional[Pom],
        local_pom: Optional[Pom],
        exclusions: Exclusions = None,
    ) -> ImportResult:
        """Run the import starting from ``root``.

        Args:
            root: Root coordinate; always treated as a bundle.
            provision_pom: Provisioning POM receiving non-local bundles.
            local_pom: Local bundle POM receiving ``provided`` dependencies.
            exclusions: Comma separated string or tokens, in addition to the
                configured exclusions.

        Returns:
            ImportResult: Processing order, outcomes and the import graph.

        Raises:
            ExistingElementError: If an entry exists and overwrite is disabled.
                Neither POM is written in that case.
        """
        excluded = parse_identities(self.config.exclusions) | parse_identities(exclusions)
        ctx = ImportContext.start(root, provision_pom, local_pom, sorted(excluded))

        while ctx.has_pending():
            coordinate = ctx.next()

            artifact = self._resolve(ctx, coordinate)
            if artifact is None:
                continue

            if artifact.is_aggregator:
                # dependency POM: follow its dependencies only
                ctx.mark(coordinate.identity, NodeStatus.AGGREGATOR)
                logger.info("Processing dependency POM %s", artifact.display_name)
            elif coordinate == ctx.root or self.classifier.is_bundle(artifact):
                self._import_bundle(ctx, artifact)

                if not self.config.import_transitive:
                    # stop at first bundle
                    ctx.result.stopped_early = True
                    break
            else:
                logger.info("Ignoring non-bundle dependency %s", artifact.display_name)
                ctx.mark(coordinate.identity, NodeStatus.SKIPPED)
                ctx.result.skipped.append(coordinate)
                continue

            self._process_dependencies(ctx, artifact)

        self._persist(ctx)
        return ctx.result

    def _resolve(self, ctx: ImportContext, coordinate: Coordinate) -> Optional[ResolvedArtifact]:
        try:
            artifact = self.resolver.resolve(coordinate)
        except _SAFE_EXCEPTIONS as exc:
            logger.warning("%s", exc)
            ctx.mark(coordinate.identity, NodeStatus.UNRESOLVED)
            ctx.result.unresolved.append(coordinate)
            return None

        local = self.locate_project(coordinate) if self.locate_project else None
        if local is not None:
            artifact.local_dir = local.basedir
            artifact.local_bundle = local.is_bundle_project()
            if artifact.generated:
                # repair the stub from the local project
                artifact.packaging = local.packaging
                artifact.name = local.id
        return artifact

    def _import_bundle(self, ctx: ImportContext, artifact: ResolvedArtifact) -> None:
        """Add the bundle to the provisioning POM and the local bundle POM, as appropriate."""
        optional = not self.config.deploy
        overwrite = self.config.overwrite

        # only non-local bundles are provisioned
        if ctx.provision_pom is not None and artifact.local_dir is None:
            logger.info("Importing %s to %s", artifact.display_name, ctx.provision_pom)
            self._write_entry(
                ctx.provision_pom,
                Dependency.from_coordinate(artifact.coordinate, optional=optional),
                overwrite,
            )

        if ctx.local_pom is not None:
            logger.info("Adding %s as dependency to %s", artifact.display_name, ctx.local_pom)
            self._write_entry(
                ctx.local_pom,
                Dependency.from_coordinate(
                    artifact.coordinate, scope=Scope.PROVIDED.value, optional=optional
                ),
                overwrite,
            )

        ctx.mark(artifact.coordinate.identity, NodeStatus.IMPORTED, artifact.coordinate.version)
        ctx.result.imported.append(artifact.coordinate)

    @staticmethod
    def _write_entry(pom: Pom, dependency: Dependency, overwrite: bool) -> None:
        existing = pom.find_dependency(dependency.identity)
        if existing is not None and overwrite and existing.version != dependency.version:
            logger.info("Replacing %s with %s in %s", existing, dependency, pom)
        pom.add_dependency(dependency, overwrite)

    def _process_dependencies(self, ctx: ImportContext, artifact: ResolvedArtifact) -> None:
        """Schedule the provided dependencies of an artifact as new candidates."""
        for dependency in artifact.dependencies:
            candidate = dependency.coordinate
            if candidate in self.system_filter:
                logger.debug("Skipping system bundle %s", candidate)
                continue

            scope = dependency.scope.adjust(self.config.widen_scope)
            ctx.link(artifact.coordinate, candidate, dependency.scope.value, scope.value)

            if dependency.optional and not self.config.import_optional:
                logger.info("Skipping optional dependency %s", dependency)
            elif scope is Scope.PROVIDED:
                if not ctx.schedule(candidate):
                    logger.debug("Already visited %s", candidate.ga)
            else:
                logger.info("Skipping dependency %s", dependency)

    @staticmethod
    def _persist(ctx: ImportContext) -> None:
        for pom in ctx.poms:
            if not pom.dirty:
                continue
            try:
                pom.write()
            except OSError as exc:
                logger.warning("Unable to update %s: %s", pom, exc)
                continue
            ctx.result.persisted.append(pom.file)


__all__ = ["BundleImporter"]
