"""POM reading and editing tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from bundleport.maven.base import ExistingElementError, PomError
from bundleport.maven.coordinates import Coordinate
from bundleport.maven.pom import Dependency, Pom, compound_id, create_pom, read_pom, split_pom_id


def test_read_identity_with_parent_fallback(tmp_path: Path, make_pom) -> None:
    make_pom(tmp_path, None, "child", version=None, parent="org.example:parent:2.0")

    pom = Pom.read(tmp_path)

    assert pom.group_id == "org.example"
    assert pom.version == "2.0"
    assert pom.packaging == "jar"
    assert pom.id == "org.example:child:2.0"
    assert pom.parent_coordinate == Coordinate("org.example", "parent", "2.0")


def test_read_rejects_broken_files(tmp_path: Path) -> None:
    (tmp_path / "pom.xml").write_text("<project><artifactId>x</project>", encoding="utf-8")
    other = tmp_path / "other"
    other.mkdir()
    (other / "pom.xml").write_text("<settings/>", encoding="utf-8")

    with pytest.raises(PomError):
        Pom.read(tmp_path)
    with pytest.raises(PomError):
        Pom.read(other)
    assert read_pom(tmp_path / "missing") is None


def test_bundle_project_detection(tmp_path: Path, make_pom) -> None:
    make_pom(tmp_path / "a", "org.example", "a", packaging="bundle")
    make_pom(tmp_path / "b", "org.example", "b")
    (tmp_path / "b" / "osgi.bnd").write_text("Import-Package: *\n", encoding="utf-8")
    make_pom(tmp_path / "c", "org.example", "c")

    assert Pom.read(tmp_path / "a").is_bundle_project()
    assert Pom.read(tmp_path / "b").is_bundle_project()
    assert not Pom.read(tmp_path / "c").is_bundle_project()


def test_matches_artifact_or_symbolic_name(tmp_path: Path, make_pom) -> None:
    make_pom(
        tmp_path,
        "org.example",
        "bar-bundle",
        body="  <properties><bundle.symbolicName>org.example.bar</bundle.symbolicName></properties>",
    )
    pom = Pom.read(tmp_path)

    assert pom.matches(None, "bar-bundle")
    assert pom.matches("org.example", "org.example.bar")
    assert not pom.matches("org.other", "bar-bundle")
    assert not pom.matches(None, "bar")


def test_add_dependency_appends_replaces_and_detects_collisions(tmp_path: Path, make_pom) -> None:
    make_pom(
        tmp_path,
        "org.example",
        "host",
        body=(
            "  <!-- keep me -->\n"
            "  <dependencies>\n"
            "    <dependency><groupId>org.example</groupId><artifactId>a</artifactId>"
            "<version>1.0</version></dependency>\n"
            "  </dependencies>"
        ),
    )
    pom = Pom.read(tmp_path)

    pom.add_dependency(Dependency("org.example", "b", "1.0", scope="provided"), overwrite=False)
    with pytest.raises(ExistingElementError):
        pom.add_dependency(Dependency("org.example", "a", "2.0"), overwrite=False)
    pom.add_dependency(Dependency("org.example", "a", "3.0", optional=True), overwrite=True)
    assert pom.dirty
    pom.write()

    text = (tmp_path / "pom.xml").read_text(encoding="utf-8")
    assert "keep me" in text
    assert 'xmlns="http://maven.apache.org/POM/4.0.0"' in text
    assert "ns0:" not in text

    deps = Pom.read(tmp_path).dependencies()
    assert [(d.artifact_id, d.version) for d in deps] == [("a", "3.0"), ("b", "1.0")]
    assert deps[0].optional is True
    assert deps[1].scope == "provided"


def test_find_dependency(tmp_path: Path) -> None:
    pom = create_pom(tmp_path, "org.example", "host", "1.0")
    pom.add_dependency(Dependency("org.example", "a", "1.0"), overwrite=False)

    assert pom.find_dependency(("org.example", "a")).version == "1.0"
    assert pom.find_dependency(("org.example", "b")) is None


def test_modules_and_parent_links(tmp_path: Path) -> None:
    parent = create_pom(tmp_path, "org.example", "root", "1.0")
    parent.add_module("app", overwrite=False)
    parent.add_module("app", overwrite=True)
    with pytest.raises(ExistingElementError):
        parent.add_module("app", overwrite=False)
    parent.write()

    child = create_pom(tmp_path / "app", "org.example.root", "app")
    child.set_parent(parent, "../pom.xml", overwrite=False)
    with pytest.raises(ExistingElementError):
        child.set_parent(parent, None, overwrite=False)
    child.write()

    reread_parent = Pom.read(tmp_path)
    reread_child = Pom.read(tmp_path / "app")
    assert reread_parent.modules == ["app"]
    assert reread_child.parent_coordinate == Coordinate("org.example", "root", "1.0")
    assert reread_child.version == "1.0"
    assert reread_child.packaging == "pom"
    assert [module.id for module in reread_parent.children()] == ["org.example.root:app:1.0"]
    assert reread_child.parent().id == reread_parent.id


def test_create_pom_is_not_written_until_asked(tmp_path: Path) -> None:
    pom = create_pom(tmp_path, "org.example", "lazy")

    assert pom.dirty
    assert not (tmp_path / "pom.xml").exists()
    pom.write()
    assert not pom.dirty
    assert Pom.read(tmp_path).artifact_id == "lazy"


@pytest.mark.parametrize(
    ("group_id", "artifact_id", "expected"),
    [
        ("org.example", "app", "org.example.app"),
        ("org.example", "org.example", "org.example"),
        ("org.example", "org.example.app", "org.example.app"),
        ("org.example.app", "app", "org.example.app"),
        ("", "app", "app"),
    ],
)
def test_compound_id(group_id: str, artifact_id: str, expected: str) -> None:
    assert compound_id(group_id, artifact_id) == expected


def test_split_pom_id() -> None:
    assert split_pom_id("org.example:app") == ("org.example", "app")
    assert split_pom_id("app") == (None, "app")
    assert split_pom_id(":app") == (None, ":app")


def test_read_repository_pom_file(tmp_path: Path, make_pom) -> None:
    version_dir = tmp_path / "org" / "example" / "bar" / "1.0"
    version_dir.mkdir(parents=True)
    pom_file = version_dir / "bar-1.0.pom"
    make_pom(tmp_path / "src", "org.example", "bar", packaging="bundle").rename(pom_file)

    pom = Pom.read(pom_file)

    assert pom.file == pom_file.resolve()
    assert pom.id == "org.example:bar:1.0"
    assert read_pom(pom_file).packaging == "bundle"
    assert read_pom(version_dir / "baz-1.0.pom") is None


FOUR_SPACE_POM = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
    <modelVersion>4.0.0</modelVersion>
    <groupId>org.example</groupId>
    <artifactId>host</artifactId>
    <version>1.0</version>
    <dependencies>
        <dependency>
            <groupId>org.example</groupId>
            <artifactId>a</artifactId>
            <version>1.0</version>
        </dependency>
    </dependencies>
</project>
"""


def test_write_keeps_existing_layout(tmp_path: Path) -> None:
    (tmp_path / "pom.xml").write_text(FOUR_SPACE_POM, encoding="utf-8")
    pom = Pom.read(tmp_path)

    pom.add_dependency(Dependency("org.example", "b", "2.0", scope="provided"), overwrite=False)
    pom.add_module("sub", overwrite=False)
    pom.write()

    text = (tmp_path / "pom.xml").read_text(encoding="utf-8")
    assert (
        "        <dependency>\n"
        "            <groupId>org.example</groupId>\n"
        "            <artifactId>a</artifactId>\n"
        "            <version>1.0</version>\n"
        "        </dependency>\n"
        "        <dependency>\n"
        "            <groupId>org.example</groupId>\n"
        "            <artifactId>b</artifactId>\n"
        "            <version>2.0</version>\n"
        "            <scope>provided</scope>\n"
        "        </dependency>\n"
        "    </dependencies>\n"
        "    <modules>\n"
        "        <module>sub</module>\n"
        "    </modules>\n"
        "</project>"
    ) in text
    assert "\n  <" not in text
