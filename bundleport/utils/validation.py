"""Input validation utilities for security and correctness."""

import logging
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger("bundleport.utils.validation")

# Allowed repository URL schemes
ALLOWED_SCHEMES = {"http", "https"}


def validate_url(url: str) -> bool:
    """Validate a repository URL.

    Checks:
    1. Scheme is allowed.
    2. Does not start with '-' (prevent argument injection).
    3. Has a network location.

    Args:
        url: URL string to validate.

    Returns:
        bool: True if valid, False otherwise.
    """
    if not url:
        return False

    if url.startswith("-"):
        logger.warning("URL starts with '-': %s", url)
        return False

    try:
        parsed = urlparse(url)
    except ValueError as e:
        logger.warning("Failed to parse URL %s: %s", url, e)
        return False

    if parsed.scheme not in ALLOWED_SCHEMES:
        logger.warning("URL scheme not allowed: %s", parsed.scheme or "<none>")
        return False

    if not parsed.netloc:
        logger.warning("URL has no host: %s", url)
        return False

    return True


def validate_safe_path(path: str | Path, base_dir: Path) -> bool:
    """Validate that a path resolves to a location inside the base directory.

    Prevents coordinates such as ``..:..:..`` from escaping the local
    repository.

    Args:
        path: Path to validate (string or Path object).
        base_dir: The trusted base directory.

    Returns:
        bool: True if safe, False otherwise.
    """
    try:
        base_dir = base_dir.resolve()
        target_path = (base_dir / path).resolve()
    except (OSError, RuntimeError) as e:
        logger.warning("Failed to validate path %s: %s", path, e)
        return False

    if not target_path.is_relative_to(base_dir):
        logger.warning("Path traversal detected: %s is not inside %s", target_path, base_dir)
        return False
    return True
