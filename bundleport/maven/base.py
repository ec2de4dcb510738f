"""Error hierarchy and shared fetch helpers for Maven artifact access."""

import logging
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests

from bundleport.maven.coordinates import Coordinate

logger = logging.getLogger("bundleport.maven.base")


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================

class RecoverableError(Exception):
    """Base class for recoverable errors.

    These errors indicate expected failure conditions that can be handled
    gracefully by skipping the current artifact and continuing the run.
    """
    pass


class ArtifactResolutionError(RecoverableError):
    """Artifact POM cannot be located or built - skip the artifact and continue."""

    def __init__(self, coordinate: Coordinate, reason: str) -> None:
        super().__init__(f"Problem resolving project {coordinate}: {reason}")
        self.coordinate = coordinate
        self.reason = reason


class PomError(RecoverableError):
    """A POM file is missing or malformed."""
    pass


class FetchError(RecoverableError):
    """Artifact download error - can skip current artifact and continue."""
    pass


class ExistingElementError(Exception):
    """Raised when a POM already holds an element that may not be overwritten."""

    def __init__(self, element: str) -> None:
        super().__init__(
            f"POM already contains {element}, use --overwrite to replace it"
        )
        self.element = element


class ProjectContextError(Exception):
    """Raised when the target directory has no usable project to import into."""
    pass


# =============================================================================
# Exception Categories for Graceful Handling
# =============================================================================

_EXTERNAL_ERRORS = (
    requests.RequestException,
    zipfile.BadZipFile,
)

_IO_ERRORS = (OSError,)

_SAFE_EXCEPTIONS = _EXTERNAL_ERRORS + _IO_ERRORS + (RecoverableError, ValueError)


class BaseArtifactFetcher(ABC):
    """Base class for artifact fetchers.

    Provides the HTTP download helper shared by repository implementations.
    """

    NAME: str = "base"

    def __init__(self, cache_root: Path, timeout: int = 300) -> None:
        """Initialize artifact fetcher.

        Args:
            cache_root: Directory that downloaded files are stored under.
            timeout: Per-request timeout in seconds.
        """
        self.cache_root = cache_root
        self.timeout = timeout
        logger.debug("Fetcher %s initialized (cache=%s)", self.NAME, cache_root)

    @abstractmethod
    def fetch_file(self, coordinate: Coordinate, extension: str = "jar") -> Optional[Path]:
        """Fetch an artifact file into the cache.

        Args:
            coordinate: Artifact coordinates.
            extension: File extension (``jar``, ``pom``, ...).

        Returns:
            Optional[Path]: Local file path, None if it could not be fetched.
        """
        raise NotImplementedError

    def download_file(self, url: str, target_path: Path) -> bool:
        """Download a file from URL.

        The file is streamed into a temporary sibling and renamed on success
        so a failed download never leaves a truncated artifact behind.

        Args:
            url: File URL.
            target_path: Target file path.

        Returns:
            bool: True if download succeeded, False otherwise.
        """
        partial = target_path.with_name(target_path.name + ".part")
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)

            logger.debug("Downloading file: %s", url)
            with requests.get(url, timeout=self.timeout, stream=True) as response:
                if response.status_code == 404:
                    logger.debug("Not found: %s", url)
                    return False
                response.raise_for_status()
                with partial.open("wb") as out:
                    for chunk in response.iter_content(chunk_size=8192):
                        out.write(chunk)
            partial.replace(target_path)
            logger.info("Downloaded %s", url)
            return True

        except requests.RequestException as e:
            logger.warning("Failed to download file %s: %s", url, e)
            return False
        except _SAFE_EXCEPTIONS as e:
            logger.warning("Failed to download file %s: %s", url, e)
            return False
        finally:
            if partial.exists():
                partial.unlink()


__all__ = [
    "ArtifactResolutionError",
    "BaseArtifactFetcher",
    "ExistingElementError",
    "FetchError",
    "PomError",
    "ProjectContextError",
    "RecoverableError",
]
