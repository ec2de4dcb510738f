"""Shared helpers for bundleport tests."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

import pytest


def pom_xml(
    group_id: Optional[str],
    artifact_id: str,
    version: Optional[str] = "1.0",
    packaging: Optional[str] = None,
    modules: Iterable[str] = (),
    parent: Optional[str] = None,
    body: str = "",
) -> str:
    """Render a small namespaced POM document."""
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<project xmlns="http://maven.apache.org/POM/4.0.0">',
        "  <modelVersion>4.0.0</modelVersion>",
    ]
    if parent:
        p_group, p_artifact, p_version = parent.split(":")
        lines.append(
            f"  <parent><groupId>{p_group}</groupId><artifactId>{p_artifact}</artifactId>"
            f"<version>{p_version}</version></parent>"
        )
    if group_id:
        lines.append(f"  <groupId>{group_id}</groupId>")
    lines.append(f"  <artifactId>{artifact_id}</artifactId>")
    if version:
        lines.append(f"  <version>{version}</version>")
    if packaging:
        lines.append(f"  <packaging>{packaging}</packaging>")
    modules = list(modules)
    if modules:
        lines.append("  <modules>")
        lines.extend(f"    <module>{module}</module>" for module in modules)
        lines.append("  </modules>")
    if body:
        lines.append(body)
    lines.append("</project>")
    return "\n".join(lines) + "\n"


def write_pom(directory: Path, *args, **kwargs) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "pom.xml"
    path.write_text(pom_xml(*args, **kwargs), encoding="utf-8")
    return path


@pytest.fixture
def make_pom():
    """Fixture form of ``write_pom`` for tests that prefer injection."""
    return write_pom
