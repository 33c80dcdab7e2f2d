"""Package model.

A Package bundles one main library, an optional test-support library and an
optional unittest executable, plus the ordered set of sub-packages it
declares. Artifacts reference each other through their `dependencies` list;
the referenced artifact is owned by its own package.

Packages are mutable while a factory wires them and frozen once handed to the
generation pipeline.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple


from .errors import FrozenPackage, InvalidName, MissingArtifactKind, PackageConflict, DependencyCycle

logger = logging.getLogger(__name__)


class ArtifactKind(str, Enum):
    MAIN_LIBRARY = "main-library"
    TEST_LIBRARY = "test-library"
    TEST_EXECUTABLE = "test-executable"

    @property
    def is_library(self) -> bool:
        return self is not ArtifactKind.TEST_EXECUTABLE


def normalize_path(path: str) -> str:
    """Namespace paths are written with "\\" in old manifests; store them with "/"."""
    path = (path or "").strip().replace("\\", "/")
    while "//" in path:
        path = path.replace("//", "/")
    return path.strip("/")


# Same pattern as the plan schema's "name" definition.
NAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def check_name(name: str, what: str) -> str:
    if not isinstance(name, str) or not NAME_RE.fullmatch(name):
        raise InvalidName(f"Invalid {what} name {name!r}.", subject=str(name))
    return name


@dataclass(eq=False)
class Artifact:
    name: str
    kind: ArtifactKind
    path: str = ""
    package: str = ""                 # owning package name, set by Package.add_*
    dependencies: List["Artifact"] = field(default_factory=list)
    source_dirs: List[str] = field(default_factory=list)
    include_dirs: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)
    frozen: bool = False

    def __post_init__(self):
        check_name(self.name, "artifact")
        self.kind = ArtifactKind(self.kind)
        self.path = normalize_path(self.path)

    @property
    def ident(self) -> str:
        return f"{self.package or '?'}/{self.name}"

    def ensure_mutable(self) -> None:
        if self.frozen:
            raise FrozenPackage(f"Artifact '{self.ident}' is frozen.", subject=self.ident)

    def signature(self) -> Tuple:
        return (
            self.name,
            self.kind.value,
            self.path,
            self.package,
            tuple(d.ident for d in self.dependencies),
            tuple(self.source_dirs),
            tuple(self.include_dirs),
            tuple(self.defines),
        )

    def __repr__(self) -> str:
        deps = ", ".join(d.ident for d in self.dependencies)
        return f"Artifact({self.ident!r}, {self.kind.value}, deps=[{deps}])"


_SLOTS: Dict[ArtifactKind, str] = {
    ArtifactKind.MAIN_LIBRARY: "main_lib",
    ArtifactKind.TEST_LIBRARY: "test_lib",
    ArtifactKind.TEST_EXECUTABLE: "unittest",
}


@dataclass(eq=False)
class Package:
    name: str
    path: str = ""
    packages: List["Package"] = field(default_factory=list)
    main_lib: Optional[Artifact] = None
    test_lib: Optional[Artifact] = None
    unittest: Optional[Artifact] = None
    frozen: bool = False

    def __post_init__(self):
        check_name(self.name, "package")
        self.path = normalize_path(self.path)

    def _ensure_mutable(self) -> None:
        if self.frozen:
            raise FrozenPackage(f"Package '{self.name}' is frozen.", subject=self.name)

    # -------- sub-packages --------
    def add_package(self, pkg: "Package") -> None:
        self._ensure_mutable()
        if pkg is self or pkg.name == self.name:
            raise DependencyCycle(f"Package '{self.name}' cannot declare itself.", subject=self.name)
        for existing in self.packages:
            if existing is pkg:
                return
            if existing.name == pkg.name:
                raise PackageConflict(
                    f"Package '{self.name}' already declares a different package named '{pkg.name}'.",
                    subject=pkg.name,
                )
        self.packages.append(pkg)

    def find_package(self, name: str) -> Optional["Package"]:
        for p in self.packages:
            if p.name == name:
                return p
        return None

    # -------- artifacts --------
    def _add(self, kind: ArtifactKind, artifact: Artifact) -> Artifact:
        self._ensure_mutable()
        if artifact.kind is not kind:
            raise ValueError(f"Expected a {kind.value} artifact, got {artifact.kind.value} ('{artifact.name}')")
        slot = _SLOTS[kind]
        if getattr(self, slot) is not None:
            raise PackageConflict(
                f"Package '{self.name}' already has a {kind.value} ('{getattr(self, slot).name}').",
                subject=self.name,
            )
        if artifact.package and artifact.package != self.name:
            raise PackageConflict(
                f"Artifact '{artifact.name}' already belongs to package '{artifact.package}'.",
                subject=artifact.ident,
            )
        artifact.package = self.name
        setattr(self, slot, artifact)
        logger.debug("package %s: added %s %s", self.name, kind.value, artifact.name)
        return artifact

    def add_main_lib(self, lib: Artifact) -> Artifact:
        return self._add(ArtifactKind.MAIN_LIBRARY, lib)

    def add_test_lib(self, lib: Artifact) -> Artifact:
        return self._add(ArtifactKind.TEST_LIBRARY, lib)

    def add_unittest(self, exe: Artifact) -> Artifact:
        return self._add(ArtifactKind.TEST_EXECUTABLE, exe)

    def _get(self, kind: ArtifactKind) -> Artifact:
        art = getattr(self, _SLOTS[kind])
        if art is None:
            raise MissingArtifactKind(
                f"Package '{self.name}' does not provide a {kind.value}.",
                subject=self.name,
            )
        return art

    def get_main_lib(self) -> Artifact:
        return self._get(ArtifactKind.MAIN_LIBRARY)

    def get_test_lib(self) -> Artifact:
        return self._get(ArtifactKind.TEST_LIBRARY)

    def get_unittest(self) -> Artifact:
        return self._get(ArtifactKind.TEST_EXECUTABLE)

    def artifacts(self) -> List[Artifact]:
        return [a for a in (self.main_lib, self.test_lib, self.unittest) if a is not None]

    # -------- structure --------
    def signature(self) -> Tuple:
        return (
            self.name,
            self.path,
            tuple(p.name for p in self.packages),
            tuple(a.signature() for a in self.artifacts()),
        )

    def structurally_equal(self, other: "Package") -> bool:
        return self.signature() == other.signature()

    def walk(self) -> List["Package"]:
        """All packages reachable from here, dependencies before dependents."""
        order: List[Package] = []
        seen = set()

        def visit(p: Package):
            if id(p) in seen:
                return
            seen.add(id(p))
            for sub in p.packages:
                visit(sub)
            order.append(p)

        visit(self)
        return order

    def freeze(self) -> None:
        for p in self.walk():
            p.frozen = True
            for a in p.artifacts():
                a.frozen = True
