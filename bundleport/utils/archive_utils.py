"""Jar archive inspection utilities.

Reads the main attributes of ``META-INF/MANIFEST.MF`` so that artifacts can be
checked for OSGi bundle headers. Readers are tolerant: missing, corrupt or
non-archive files simply yield no attributes.
"""

import logging
import zipfile
from pathlib import Path
from typing import Dict

logger = logging.getLogger("bundleport.utils.archive_utils")

MANIFEST_ENTRY = "META-INF/MANIFEST.MF"
BUNDLE_SYMBOLIC_NAME = "Bundle-SymbolicName"


def parse_manifest(text: str) -> Dict[str, str]:
    """Parse the main section of a jar manifest.

    Continuation lines (starting with a single space) are joined onto the
    previous header; parsing stops at the first blank line, which ends the
    main section.

    Args:
        text: Manifest file content.

    Returns:
        Dict[str, str]: Main attributes keyed by header name.
    """
    attributes: Dict[str, str] = {}
    last_key = None

    for raw_line in text.splitlines():
        if not raw_line.strip():
            if attributes:
                break
            continue

        if raw_line.startswith(" ") and last_key is not None:
            attributes[last_key] += raw_line[1:]
            continue

        key, sep, value = raw_line.partition(":")
        if not sep:
            logger.debug("Ignoring malformed manifest line: %r", raw_line)
            last_key = None
            continue

        last_key = key.strip()
        attributes[last_key] = value.strip()

    return attributes


def read_jar_manifest(archive_path: Path) -> Dict[str, str]:
    """Read the main manifest attributes of a jar file.

    Args:
        archive_path: Path to the jar file.

    Returns:
        Dict[str, str]: Main attributes, empty when the file has no readable manifest.
    """
    try:
        with zipfile.ZipFile(archive_path, "r") as jar:
            try:
                data = jar.read(MANIFEST_ENTRY)
            except KeyError:
                logger.debug("No manifest in %s", archive_path)
                return {}
    except (zipfile.BadZipFile, OSError) as exc:
        logger.debug("Unable to read jarfile %s: %s", archive_path, exc)
        return {}

    return parse_manifest(data.decode("utf-8", errors="replace"))


def has_bundle_manifest(archive_path: Path) -> bool:
    """Check whether a jar carries OSGi bundle metadata.

    Args:
        archive_path: Path to the jar file.

    Returns:
        bool: True if the main manifest section declares a Bundle-SymbolicName.
    """
    symbolic_name = read_jar_manifest(archive_path).get(BUNDLE_SYMBOLIC_NAME, "")
    return bool(symbolic_name.strip())


__all__ = [
    "has_bundle_manifest",
    "parse_manifest",
    "read_jar_manifest",
]
