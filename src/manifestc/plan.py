"""Package graph -> generator input document.

The plan is a neutral JSON description of the linked graph. It is what a
generator consumes to emit native project files:

    {
      "plan_version": "1.0",
      "root": "callocator",
      "packages": [ {name, path, packages, artifacts: [...]}, ... ],
      "link_order": ["cunittest/cunittest", "cbase/cbase", ...]
    }

Packages are listed dependencies first. `link_order` is a depth-first
post-order over artifact edges, so every artifact appears after everything it
links against.
"""

from __future__ import annotations
import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List

import jsonschema

from .errors import DependencyCycle, DuplicateDependency, PackageConflict, SelfDependency
from .model import Artifact, Package

PLAN_VERSION = "1.0"
SCHEMA_PATH = Path(__file__).resolve().parent / "schemas" / "package_plan.schema.json"


@lru_cache(maxsize=1)
def load_schema() -> Dict[str, Any]:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def validate_plan(doc: Dict[str, Any]) -> None:
    """Raises jsonschema.ValidationError when `doc` is not a valid plan."""
    jsonschema.validate(instance=doc, schema=load_schema())


def _check_edges(art: Artifact) -> None:
    seen = set()
    for d in art.dependencies:
        if d is art:
            raise SelfDependency(f"Artifact '{art.ident}' depends on itself.", subject=art.ident)
        if id(d) in seen:
            raise DuplicateDependency(f"Artifact '{art.ident}' lists '{d.ident}' twice.", subject=art.ident)
        seen.add(id(d))


def _link_order(root: Package, known: Dict[str, Package]) -> List[str]:
    WHITE, GREY, BLACK = 0, 1, 2
    color: Dict[int, int] = {}
    order: List[str] = []
    stack: List[str] = []
    emitted = set()

    def visit(art: Artifact):
        c = color.get(id(art), WHITE)
        if c == BLACK:
            return
        if c == GREY:
            chain = stack[stack.index(art.ident):] + [art.ident]
            raise DependencyCycle("Artifact cycle: " + " -> ".join(chain), subject=art.ident)
        if art.package not in known:
            raise PackageConflict(
                f"Artifact '{art.ident}' belongs to a package that is not declared in the graph of '{root.name}'.",
                subject=art.ident,
            )
        _check_edges(art)
        color[id(art)] = GREY
        stack.append(art.ident)
        for d in art.dependencies:
            visit(d)
        stack.pop()
        color[id(art)] = BLACK
        if art.ident not in emitted:
            emitted.add(art.ident)
            order.append(art.ident)

    for pkg in known.values():
        for art in pkg.artifacts():
            visit(art)
    return order


def _artifact_doc(art: Artifact) -> Dict[str, Any]:
    return {
        "name": art.name,
        "kind": art.kind.value,
        "path": art.path,
        "source_dirs": list(art.source_dirs),
        "include_dirs": list(art.include_dirs),
        "defines": list(art.defines),
        "dependencies": [d.ident for d in art.dependencies],
    }


def collect_packages(root: Package) -> Dict[str, Package]:
    """Unique packages of the graph by name; same-name packages must be structurally equal."""
    known: Dict[str, Package] = {}
    for pkg in root.walk():
        other = known.get(pkg.name)
        if other is None:
            known[pkg.name] = pkg
        elif not other.structurally_equal(pkg):
            raise PackageConflict(f"Two different packages named '{pkg.name}' in one graph.", subject=pkg.name)
    return known


def build_plan(root: Package) -> Dict[str, Any]:
    known = collect_packages(root)
    packages = []
    for pkg in known.values():
        pkg.get_main_lib()   # every package has exactly one main library
        packages.append({
            "name": pkg.name,
            "path": pkg.path,
            "packages": [p.name for p in pkg.packages],
            "artifacts": [_artifact_doc(a) for a in pkg.artifacts()],
        })
    return {
        "plan_version": PLAN_VERSION,
        "root": root.name,
        "packages": packages,
        "link_order": _link_order(root, known),
    }
