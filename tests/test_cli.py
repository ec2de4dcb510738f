"""Tests for bundleport CLI entrypoints."""

from __future__ import annotations

import json
import sys
import zipfile
from pathlib import Path
from types import SimpleNamespace

import pytest

import bundleport.main as main
from bundleport.cli import import_bundle as import_module
from bundleport.maven.coordinates import Coordinate
from bundleport.maven.pom import Pom
from bundleport.maven.repository import MavenRepository


def test_main_dispatches_import_bundle(monkeypatch: pytest.MonkeyPatch) -> None:
    """Verify that `main` parses args and dispatches import_bundle_command."""

    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    captured: dict[str, object] = {}

    def fake_command(args) -> int:
        captured["args"] = args
        return 0

    monkeypatch.setattr(main, "import_bundle_command", fake_command)
    argv = [
        "bundleport",
        "import-bundle",
        "-a",
        "bar",
        "--no-deploy",
        "--transitive",
        "--repo",
        "https://a.example.org",
        "--repo",
        "https://b.example.org",
    ]
    monkeypatch.setattr(sys, "argv", argv)

    assert main.main() == 0
    parsed = captured["args"]
    assert parsed.artifact_id == "bar"
    assert parsed.group_id is None
    assert parsed.deploy is False
    assert parsed.transitive is True
    assert parsed.overwrite is None
    assert parsed.repo == ["https://a.example.org", "https://b.example.org"]


def test_main_requires_command(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    monkeypatch.setattr(sys, "argv", ["bundleport"])

    assert main.main() == 1
    assert "Bundleport" in capsys.readouterr().out


def command_args(tmp_path: Path, **overrides) -> SimpleNamespace:
    values = dict(
        group_id="org.example",
        artifact_id="bar",
        version="1.0",
        exclusions=None,
        provision_id=None,
        target_dir=str(tmp_path / "project"),
        transitive=None,
        optional=None,
        widen_scope=None,
        test_metadata=None,
        deploy=None,
        overwrite=None,
        config=None,
        local_repo=str(tmp_path / "repo"),
        repo=None,
        offline=True,
        report=None,
        log_file=None,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def test_build_config_applies_switch_overrides(tmp_path: Path) -> None:
    args = command_args(
        tmp_path,
        config='{"import_transitive": true, "deploy": true, "exclusions": ["x:y"]}',
        deploy=False,
        provision_id="org.example:provision",
        repo=["https://repo.example.org/maven2"],
    )

    config = import_module.build_config(args)

    assert config.import_transitive is True
    assert config.deploy is False
    assert config.exclusions == ["x:y"]
    assert config.provision_id == "org.example:provision"
    assert config.local_repository == tmp_path / "repo"
    assert [repo.url for repo in config.repositories] == ["https://repo.example.org/maven2"]


def test_command_fails_without_project_context(tmp_path: Path) -> None:
    (tmp_path / "project").mkdir()

    assert import_module.import_bundle_command(command_args(tmp_path)) == 1


def test_command_fails_on_invalid_config(tmp_path: Path) -> None:
    args = command_args(tmp_path, config='{"download_timeout": -1}')

    assert import_module.import_bundle_command(args) == 1


def test_command_fails_when_release_version_is_unknown(tmp_path: Path, make_pom) -> None:
    make_pom(tmp_path / "project", "org.example", "provision", packaging="pom")

    assert import_module.import_bundle_command(command_args(tmp_path, version=None)) == 1


def test_populate_missing_fields_uses_local_project(tmp_path: Path, make_pom) -> None:
    make_pom(tmp_path, "org.example", "root", packaging="pom", modules=["bar"])
    make_pom(tmp_path / "bar", "org.example.bundles", "bar", version="3.1")
    repository = MavenRepository(tmp_path / "repo", offline=True)

    coordinate = import_module.populate_missing_fields(None, "bar", "RELEASE", tmp_path, repository)
    assert coordinate == Coordinate("org.example.bundles", "bar", "3.1")

    explicit = import_module.populate_missing_fields(None, "bar", "2.0", tmp_path, repository)
    assert explicit == Coordinate("org.example.bundles", "bar", "2.0")

    assumed = import_module.populate_missing_fields(None, "other", "1.0", tmp_path, repository)
    assert assumed == Coordinate("other", "other", "1.0")


def test_read_bundle_pom_only_accepts_bundle_projects(tmp_path: Path, make_pom) -> None:
    make_pom(tmp_path / "plain", "org.example", "plain")
    make_pom(tmp_path / "bundle", "org.example", "bundle", packaging="bundle")

    assert import_module.read_bundle_pom(tmp_path / "plain") is None
    assert import_module.read_bundle_pom(tmp_path / "bundle").artifact_id == "bundle"


def test_import_bundle_end_to_end(tmp_path: Path, make_pom) -> None:
    project = tmp_path / "project"
    make_pom(project, "org.example", "root", packaging="pom", modules=["provision", "mine"])
    make_pom(project / "provision", "org.example", "provision", packaging="pom")
    make_pom(project / "mine", "org.example", "mine", packaging="bundle")

    repo = tmp_path / "repo"
    bar_dir = repo / "org" / "example" / "bar" / "1.0"
    bar_dir.mkdir(parents=True)
    (bar_dir / "bar-1.0.pom").write_text(
        """<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <groupId>org.example</groupId>
  <artifactId>bar</artifactId>
  <version>1.0</version>
  <dependencies>
    <dependency>
      <groupId>org.osgi</groupId>
      <artifactId>org.osgi.core</artifactId>
      <version>4.0</version>
      <scope>provided</scope>
    </dependency>
  </dependencies>
</project>
""",
        encoding="utf-8",
    )
    with zipfile.ZipFile(bar_dir / "bar-1.0.jar", "w") as jar:
        jar.writestr("META-INF/MANIFEST.MF", "Manifest-Version: 1.0\nBundle-SymbolicName: bar\n")

    report = tmp_path / "out" / "import.json"
    args = command_args(tmp_path, target_dir=str(project / "mine"), report=str(report))

    assert import_module.import_bundle_command(args) == 0

    provisioned = Pom.read(project / "provision").dependencies()
    local = Pom.read(project / "mine").dependencies()
    assert [(d.artifact_id, d.version, d.scope) for d in provisioned] == [("bar", "1.0", None)]
    assert [(d.artifact_id, d.version, d.scope) for d in local] == [("bar", "1.0", "provided")]

    data = json.loads(report.read_text(encoding="utf-8"))
    nodes = {node["id"]: node for node in data["nodes"]}
    assert nodes["org.example:bar"]["status"] == "imported"
    assert data["imported"] == ["org.example:bar:1.0"]


def test_collision_exits_with_error(tmp_path: Path, make_pom) -> None:
    project = tmp_path / "project"
    make_pom(
        project,
        "org.example",
        "provision",
        packaging="pom",
        body=(
            "  <dependencies><dependency><groupId>org.example</groupId>"
            "<artifactId>bar</artifactId><version>0.9</version></dependency></dependencies>"
        ),
    )
    before = (project / "pom.xml").read_text(encoding="utf-8")

    args = command_args(tmp_path, overwrite=False)

    assert import_module.import_bundle_command(args) == 1
    assert (project / "pom.xml").read_text(encoding="utf-8") == before
