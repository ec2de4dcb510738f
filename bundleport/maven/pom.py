"""Maven POM reading, editing and writing.

``Pom`` wraps an ``xml.etree`` document so that edits (dependencies, modules,
parent links) keep the rest of the file intact. It doubles as the project
descriptor used by the project-tree locator and as the dependency manifest
that imported bundles are recorded in.
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from bundleport.maven.base import ExistingElementError, PomError
from bundleport.maven.coordinates import Coordinate, Identity

logger = logging.getLogger("bundleport.maven.pom")

POM_FILE = "pom.xml"
# repository POMs are named artifact-version.pom
POM_SUFFIXES = (".xml", ".pom")
DEFAULT_INDENT = "  "
BND_FILE = "osgi.bnd"
POM_NAMESPACE = "http://maven.apache.org/POM/4.0.0"
XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
SYMBOLIC_NAME_PROPERTY = "bundle.symbolicName"

ET.register_namespace("", POM_NAMESPACE)
ET.register_namespace("xsi", XSI_NAMESPACE)


@dataclass
class Dependency:
    """A ``<dependency>`` entry as written in a POM (values not interpolated)."""

    group_id: str
    artifact_id: str
    version: Optional[str] = None
    scope: Optional[str] = None
    optional: bool = False
    type: Optional[str] = None
    classifier: Optional[str] = None

    @property
    def identity(self) -> Identity:
        return (self.group_id, self.artifact_id)

    @classmethod
    def from_coordinate(
        cls, coordinate: Coordinate, scope: Optional[str] = None, optional: bool = False
    ) -> "Dependency":
        return cls(
            group_id=coordinate.group_id,
            artifact_id=coordinate.artifact_id,
            version=coordinate.version or None,
            scope=scope,
            optional=optional,
        )

    def __str__(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version or ''}"


class Pom:
    """Editable Maven project model backed by a ``pom.xml`` file."""

    def __init__(self, path: Path, tree: ET.ElementTree) -> None:
        self._path = path
        self._tree = tree
        self._root = tree.getroot()
        self._ns = _detect_namespace(self._root)
        self._dirty = False

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def read(cls, here: Path) -> "Pom":
        """Read a POM file, or the ``pom.xml`` inside a directory.

        Raises:
            PomError: If the file is missing or is not a Maven project.
        """
        path = _pom_path(here)
        if not path.is_file():
            raise PomError(f"No POM found at {path}")
        parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
        try:
            tree = ET.parse(path, parser=parser)
        except (OSError, ET.ParseError) as exc:
            raise PomError(f"Unable to parse {path}: {exc}") from exc
        if _local_name(tree.getroot().tag) != "project":
            raise PomError(f"{path} is not a Maven project descriptor")
        return cls(path.resolve(), tree)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def file(self) -> Path:
        return self._path

    @property
    def basedir(self) -> Path:
        return self._path.parent

    @property
    def group_id(self) -> Optional[str]:
        return self._text("groupId") or self._text("parent/groupId")

    @property
    def artifact_id(self) -> Optional[str]:
        return self._text("artifactId")

    @property
    def version(self) -> Optional[str]:
        return self._text("version") or self._text("parent/version")

    @property
    def packaging(self) -> str:
        return self._text("packaging") or "jar"

    @property
    def name(self) -> Optional[str]:
        return self._text("name")

    @property
    def id(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version or ''}"

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.group_id or "", self.artifact_id or "", self.version or "")

    @property
    def parent_coordinate(self) -> Optional[Coordinate]:
        group_id = self._text("parent/groupId")
        artifact_id = self._text("parent/artifactId")
        if not group_id or not artifact_id:
            return None
        return Coordinate(group_id, artifact_id, self._text("parent/version") or "")

    @property
    def bundle_symbolic_name(self) -> Optional[str]:
        return self.properties().get(SYMBOLIC_NAME_PROPERTY)

    def is_bundle_project(self) -> bool:
        """A project builds a bundle if it uses bundle packaging or has BND instructions."""
        return self.packaging == "bundle" or (self.basedir / BND_FILE).is_file()

    @property
    def dirty(self) -> bool:
        return self._dirty

    # ------------------------------------------------------------------
    # Project tree navigation
    # ------------------------------------------------------------------

    @property
    def modules(self) -> List[str]:
        modules_elem = self._find("modules")
        if modules_elem is None:
            return []
        return [
            (module.text or "").strip()
            for module in modules_elem.findall(self._tag("module"))
            if (module.text or "").strip()
        ]

    def module_pom(self, module: str) -> Optional["Pom"]:
        """Read the POM for a named module, None when it is missing or broken."""
        try:
            return read_pom(self.basedir / module)
        except PomError as exc:
            logger.warning("Skipping module %s of %s: %s", module, self, exc)
            return None

    def containing_pom(self) -> Optional["Pom"]:
        """The POM in the parent directory, if any."""
        parent_dir = self.basedir.parent
        if parent_dir == self.basedir:
            return None
        try:
            return read_pom(parent_dir)
        except PomError as exc:
            logger.debug("Ignoring containing POM of %s: %s", self, exc)
            return None

    @property
    def identity(self) -> str:
        return self.id

    def children(self) -> Iterator["Pom"]:
        for module in self.modules:
            module_pom = self.module_pom(module)
            if module_pom is not None:
                yield module_pom

    def parent(self) -> Optional["Pom"]:
        return self.containing_pom()

    def matches(self, group_id: Optional[str], artifact_id: str) -> bool:
        """True if this project has the artifact (or symbolic name) and optional group."""
        if artifact_id not in (self.artifact_id, self.bundle_symbolic_name):
            return False
        return group_id is None or group_id == self.group_id

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def properties(self) -> Dict[str, str]:
        props_elem = self._find("properties")
        if props_elem is None:
            return {}
        props: Dict[str, str] = {}
        for child in props_elem:
            if not isinstance(child.tag, str):
                continue
            props[_local_name(child.tag)] = (child.text or "").strip()
        return props

    def dependencies(self) -> List[Dependency]:
        return [_dependency_from(elem, self._ns) for elem in self._dependency_elements()]

    def managed_dependencies(self) -> List[Dependency]:
        section = self._find("dependencyManagement/dependencies")
        if section is None:
            return []
        return [
            _dependency_from(elem, self._ns)
            for elem in section.findall(self._tag("dependency"))
        ]

    def find_dependency(self, identity: Identity) -> Optional[Dependency]:
        for dependency in self.dependencies():
            if dependency.identity == identity:
                return dependency
        return None

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def add_dependency(self, dependency: Dependency, overwrite: bool) -> None:
        """Add a dependency entry, replacing an existing one with the same identity.

        Raises:
            ExistingElementError: If the entry exists and overwrite is False.
        """
        section = self._find("dependencies")
        if section is None:
            section = self._insert(self._root, ET.Element(self._tag("dependencies")), 1)

        new_elem = self._dependency_element(dependency)
        for index, elem in enumerate(list(section)):
            if not isinstance(elem.tag, str) or _local_name(elem.tag) != "dependency":
                continue
            if _dependency_from(elem, self._ns).identity != dependency.identity:
                continue
            if not overwrite:
                raise ExistingElementError(f"dependency {dependency.group_id}:{dependency.artifact_id}")
            ET.indent(new_elem, space=self._indent_unit(), level=2)
            new_elem.tail = elem.tail
            section[index] = new_elem
            self._dirty = True
            return

        self._insert(section, new_elem, 2)
        self._dirty = True

    def add_module(self, module: str, overwrite: bool) -> None:
        """Add a ``<module>`` entry.

        Raises:
            ExistingElementError: If the module exists and overwrite is False.
        """
        if module in self.modules:
            if not overwrite:
                raise ExistingElementError(f"module {module}")
            return
        modules_elem = self._find("modules")
        if modules_elem is None:
            modules_elem = self._insert(self._root, ET.Element(self._tag("modules")), 1)
        module_elem = ET.Element(self._tag("module"))
        module_elem.text = module
        self._insert(modules_elem, module_elem, 2)
        self._dirty = True

    def set_parent(self, parent: "Pom", relative_path: Optional[str], overwrite: bool) -> None:
        """Link this POM to a parent POM.

        Raises:
            ExistingElementError: If a parent is already set and overwrite is False.
        """
        existing = self._find("parent")
        if existing is not None:
            if not overwrite:
                raise ExistingElementError("parent")
            self._root.remove(existing)

        parent_elem = ET.Element(self._tag("parent"))
        ET.SubElement(parent_elem, self._tag("groupId")).text = parent.group_id
        ET.SubElement(parent_elem, self._tag("artifactId")).text = parent.artifact_id
        if parent.version:
            ET.SubElement(parent_elem, self._tag("version")).text = parent.version
        if relative_path:
            ET.SubElement(parent_elem, self._tag("relativePath")).text = relative_path

        # parent goes straight after modelVersion
        index = 0
        for position, child in enumerate(list(self._root)):
            if isinstance(child.tag, str) and _local_name(child.tag) == "modelVersion":
                index = position + 1
                break
        self._insert(self._root, parent_elem, 1, index)
        self._dirty = True

    def write(self) -> None:
        """Write the POM back to disk.

        Raises:
            OSError: If the file cannot be written.
        """
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._tree.write(self._path, encoding="UTF-8", xml_declaration=True)
        self._dirty = False
        logger.debug("Wrote %s", self._path)

    # ------------------------------------------------------------------
    # XML helpers
    # ------------------------------------------------------------------

    def _indent_unit(self) -> str:
        """Indentation step used by the document, taken from the first child of the root."""
        text = self._root.text or ""
        if "\n" in text:
            unit = text.rsplit("\n", 1)[1]
            if unit and not unit.strip():
                return unit
        return DEFAULT_INDENT

    def _insert(
        self, parent: ET.Element, elem: ET.Element, depth: int, index: Optional[int] = None
    ) -> ET.Element:
        """Insert ``elem`` at ``depth`` below the root, indenting only the new element."""
        unit = self._indent_unit()
        ET.indent(elem, space=unit, level=depth)
        indent = "\n" + unit * depth
        children = list(parent)
        if index is None or index >= len(children):
            if children:
                elem.tail = children[-1].tail
                children[-1].tail = indent
            else:
                parent.text = indent
                elem.tail = "\n" + unit * (depth - 1)
            parent.append(elem)
        else:
            elem.tail = indent
            parent.insert(index, elem)
        return elem

    def _tag(self, name: str) -> str:
        return f"{{{self._ns}}}{name}" if self._ns else name

    def _path_expr(self, path: str) -> str:
        return "/".join(self._tag(part) for part in path.split("/"))

    def _find(self, path: str) -> Optional[ET.Element]:
        return self._root.find(self._path_expr(path))

    def _text(self, path: str) -> Optional[str]:
        elem = self._find(path)
        if elem is not None and elem.text and elem.text.strip():
            return elem.text.strip()
        return None

    def _dependency_elements(self) -> List[ET.Element]:
        section = self._find("dependencies")
        if section is None:
            return []
        return section.findall(self._tag("dependency"))

    def _dependency_element(self, dependency: Dependency) -> ET.Element:
        elem = ET.Element(self._tag("dependency"))
        ET.SubElement(elem, self._tag("groupId")).text = dependency.group_id
        ET.SubElement(elem, self._tag("artifactId")).text = dependency.artifact_id
        if dependency.version:
            ET.SubElement(elem, self._tag("version")).text = dependency.version
        if dependency.type and dependency.type != "jar":
            ET.SubElement(elem, self._tag("type")).text = dependency.type
        if dependency.classifier:
            ET.SubElement(elem, self._tag("classifier")).text = dependency.classifier
        if dependency.scope:
            ET.SubElement(elem, self._tag("scope")).text = dependency.scope
        if dependency.optional:
            ET.SubElement(elem, self._tag("optional")).text = "true"
        return elem

    def __repr__(self) -> str:
        return f"Pom({self.id}, {self._path})"

    def __str__(self) -> str:
        return str(self._path)


def read_pom(here: Path) -> Optional[Pom]:
    """Read the POM at a path, returning None when there is none.

    Raises:
        PomError: If a POM exists but cannot be parsed.
    """
    if not _pom_path(here).is_file():
        return None
    return Pom.read(here)


def create_pom(
    here: Path,
    group_id: str,
    artifact_id: str,
    version: Optional[str] = None,
    packaging: str = "pom",
) -> Pom:
    """Create a minimal in-memory POM; call ``write`` to persist it."""
    path = _pom_path(here)
    root = ET.Element(f"{{{POM_NAMESPACE}}}project")
    root.set(
        f"{{{XSI_NAMESPACE}}}schemaLocation",
        f"{POM_NAMESPACE} http://maven.apache.org/maven-v4_0_0.xsd",
    )
    ET.SubElement(root, f"{{{POM_NAMESPACE}}}modelVersion").text = "4.0.0"
    ET.SubElement(root, f"{{{POM_NAMESPACE}}}groupId").text = group_id
    ET.SubElement(root, f"{{{POM_NAMESPACE}}}artifactId").text = artifact_id
    if version:
        ET.SubElement(root, f"{{{POM_NAMESPACE}}}version").text = version
    ET.SubElement(root, f"{{{POM_NAMESPACE}}}packaging").text = packaging
    ET.SubElement(root, f"{{{POM_NAMESPACE}}}name").text = f"{group_id}.{artifact_id} ({packaging})"
    ET.indent(root, space=DEFAULT_INDENT)
    pom = Pom(path.resolve(), ET.ElementTree(root))
    pom._dirty = True
    return pom


def compound_id(group_id: Optional[str], artifact_id: Optional[str]) -> str:
    """Combine a groupId and artifactId into a child groupId.

    Overlapping names are merged rather than repeated, so ``org.example`` and
    ``org.example.app`` give ``org.example.app``.
    """
    group_id = group_id or ""
    artifact_id = artifact_id or ""
    if not group_id:
        return artifact_id
    if not artifact_id:
        return group_id
    if artifact_id == group_id or artifact_id.startswith(group_id + "."):
        return artifact_id
    if group_id.endswith("." + artifact_id):
        return group_id
    return f"{group_id}.{artifact_id}"


def _pom_path(here: Path) -> Path:
    here = Path(here)
    if here.is_file():
        return here
    if here.is_dir() or here.suffix not in POM_SUFFIXES:
        return here / POM_FILE
    return here


def _local_name(tag: str) -> str:
    return tag.split("}", 1)[1] if tag.startswith("{") else tag


def _detect_namespace(root: ET.Element) -> str:
    if isinstance(root.tag, str) and root.tag.startswith("{"):
        return root.tag.split("}")[0][1:]
    return ""


def _child_text(elem: ET.Element, name: str, ns: str) -> Optional[str]:
    child = elem.find(f"{{{ns}}}{name}" if ns else name)
    if child is not None and child.text and child.text.strip():
        return child.text.strip()
    return None


def _dependency_from(elem: ET.Element, ns: str) -> Dependency:
    optional = (_child_text(elem, "optional", ns) or "false").lower() == "true"
    return Dependency(
        group_id=_child_text(elem, "groupId", ns) or "",
        artifact_id=_child_text(elem, "artifactId", ns) or "",
        version=_child_text(elem, "version", ns),
        scope=_child_text(elem, "scope", ns),
        optional=optional,
        type=_child_text(elem, "type", ns),
        classifier=_child_text(elem, "classifier", ns),
    )


def split_pom_id(pom_id: str) -> Tuple[Optional[str], str]:
    """Split ``group:artifact`` (or a bare artifact) at the first colon."""
    marker = pom_id.find(":")
    if marker > 0:
        return pom_id[:marker], pom_id[marker + 1:]
    return None, pom_id


__all__ = [
    "Dependency",
    "Pom",
    "compound_id",
    "create_pom",
    "read_pom",
    "split_pom_id",
]
