"""Bundle classification and the system-bundle filter."""

from __future__ import annotations

import logging
import zipfile
from pathlib import Path
from typing import Callable, FrozenSet, Iterable, Optional

import requests

from bundleport.maven.base import BaseArtifactFetcher, RecoverableError
from bundleport.maven.coordinates import Coordinate, Identity, ResolvedArtifact, parse_identities
from bundleport.utils.archive_utils import has_bundle_manifest

logger = logging.getLogger("bundleport.maven.classifier")

# Failures while fetching or reading a jar that mean "not a bundle"
_SAFE_EXCEPTIONS = (
    OSError,
    RuntimeError,
    ValueError,
    zipfile.BadZipFile,
    requests.RequestException,
    RecoverableError,
)

# Packagings whose main artifact is a jar file
JAR_PACKAGINGS = frozenset({"bundle", "jar", "maven-plugin", "ejb"})

# OSGi frameworks and core API jars: provided by the runtime, never imported
DEFAULT_SYSTEM_BUNDLES: FrozenSet[Identity] = frozenset(
    {
        ("org.osgi", "osgi_R4_core"),
        ("org.osgi", "osgi_R4_compendium"),
        ("org.osgi", "org.osgi.core"),
        ("org.osgi", "org.osgi.compendium"),
        ("org.apache.felix", "org.osgi.core"),
        ("org.apache.felix", "org.osgi.compendium"),
        ("org.apache.felix", "org.osgi.foundation"),
        ("org.apache.felix", "org.apache.felix.framework"),
        ("org.apache.felix", "org.apache.felix.main"),
        ("org.eclipse", "osgi"),
        ("org.eclipse.osgi", "org.eclipse.osgi"),
        ("org.knopflerfish", "framework"),
        ("org.knopflerfish.osgi", "framework"),
    }
)


def packaging_extension(packaging: str) -> str:
    """Map a POM packaging to the extension of its main artifact file."""
    return "jar" if packaging in JAR_PACKAGINGS else packaging


class SystemBundleFilter:
    """Recognise framework artifacts that must never be imported."""

    def __init__(self, extra: Optional[Iterable[str]] = None) -> None:
        self._identities = set(DEFAULT_SYSTEM_BUNDLES) | parse_identities(list(extra or ()))

    def __contains__(self, coordinate: Coordinate) -> bool:
        return coordinate.identity in self._identities


class BundleClassifier:
    """Decide whether a resolved artifact is an OSGi bundle.

    An artifact is a bundle when it is a bundle project in the local tree, or
    (with metadata testing enabled) when its jar declares a
    ``Bundle-SymbolicName``. Any failure while fetching or reading the jar
    counts as "not a bundle".
    """

    def __init__(
        self,
        fetcher: BaseArtifactFetcher,
        test_metadata: bool = True,
        inspector: Callable[[Path], bool] = has_bundle_manifest,
    ) -> None:
        self.fetcher = fetcher
        self.test_metadata = test_metadata
        self.inspector = inspector

    def is_bundle(self, artifact: ResolvedArtifact) -> bool:
        if artifact.local_bundle:
            return True
        if not self.test_metadata:
            return False

        try:
            path = self.fetcher.fetch_file(
                artifact.coordinate, packaging_extension(artifact.packaging)
            )
            if path is None:
                logger.debug("No file to inspect for %s", artifact.coordinate)
                return False
            return bool(self.inspector(path))
        except _SAFE_EXCEPTIONS as exc:
            logger.debug("Unable to inspect %s: %s", artifact.coordinate, exc)
            return False


__all__ = [
    "BundleClassifier",
    "DEFAULT_SYSTEM_BUNDLES",
    "JAR_PACKAGINGS",
    "SystemBundleFilter",
    "packaging_extension",
]
