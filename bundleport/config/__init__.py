"""Configuration schema and validation for bundleport."""

from .schema import (
    MAVEN_CENTRAL,
    ImportConfig,
    RepositoryConfig,
)

__all__ = [
    "MAVEN_CENTRAL",
    "ImportConfig",
    "RepositoryConfig",
]
