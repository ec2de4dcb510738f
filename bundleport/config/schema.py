"""Configuration schema definitions using Pydantic for validation.

This module provides strongly-typed configuration for the bundle import
run. Using Pydantic ensures configuration errors are caught early with clear
error messages.
"""

from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator

from bundleport.utils.validation import validate_url

MAVEN_CENTRAL = "https://repo1.maven.org/maven2"


class RepositoryConfig(BaseModel):
    """A remote Maven repository.

    Attributes:
        id: Repository identifier, used in log messages.
        url: Repository base URL (http or https).
    """

    id: str = "central"
    url: str = MAVEN_CENTRAL

    model_config = {"extra": "forbid"}

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        """Validate that the repository URL uses http(s) and has a host."""
        if not validate_url(v):
            raise ValueError(f"Invalid repository URL '{v}'")
        return v.rstrip("/")


class ImportConfig(BaseModel):
    """Top-level configuration for a bundle import run.

    Attributes:
        import_transitive: Also import provided dependencies of imported bundles.
        import_optional: Also import optional dependencies.
        widen_scope: Treat compile and runtime dependencies as provided.
        test_metadata: Check artifacts for OSGi metadata before importing them.
        deploy: When False, imported entries are marked optional (not provisioned).
        overwrite: Replace existing entries instead of failing.
        provision_id: Id of the provisioning POM (artifactId or groupId:artifactId).
        exclusions: Artifacts (groupId:artifactId, or a bare id) never to import.
        system_bundles: Extra framework artifacts never considered for import.
        repositories: Remote repositories searched in order.
        local_repository: Local repository that downloads are stored in.
        offline: Only use the local repository.
        download_timeout: Per-request download timeout (seconds).
    """

    import_transitive: bool = False
    import_optional: bool = False
    widen_scope: bool = False
    test_metadata: bool = True
    deploy: bool = True
    overwrite: bool = True
    provision_id: str = "provision"
    exclusions: List[str] = Field(default_factory=list)
    system_bundles: List[str] = Field(default_factory=list)
    repositories: List[RepositoryConfig] = Field(
        default_factory=lambda: [RepositoryConfig()]
    )
    local_repository: Path = Field(
        default_factory=lambda: Path.home() / ".m2" / "repository"
    )
    offline: bool = False
    download_timeout: int = Field(default=300, ge=1, le=3600)

    @field_validator("system_bundles")
    @classmethod
    def validate_system_bundles(cls, v: List[str]) -> List[str]:
        """Validate that system bundle ids use groupId:artifactId form."""
        for entry in v:
            group_id, _, artifact_id = entry.partition(":")
            if not group_id.strip() or not artifact_id.strip():
                raise ValueError(
                    f"Invalid system bundle '{entry}', expected groupId:artifactId"
                )
        return v

    @field_validator("local_repository")
    @classmethod
    def expand_local_repository(cls, v: Path) -> Path:
        """Expand ``~`` in the local repository path."""
        return Path(v).expanduser()

    @classmethod
    def default(cls) -> "ImportConfig":
        """Return the built-in default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportConfig":
        """Create configuration from dictionary.

        Args:
            data: Configuration dictionary.

        Returns:
            ImportConfig instance.

        Raises:
            ValidationError: If configuration is invalid.
        """
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return self.model_dump()
