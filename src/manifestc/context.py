"""Build context and package factories.

A package factory is a plain function taking the BuildContext and returning
its fully wired Package. Dependencies are obtained through `ctx.require`,
which builds every package name once per context and refuses cycles:

    @package_factory("callocator")
    def get_package(ctx: BuildContext) -> Package:
        cbase = ctx.require(cbase_pkg.get_package)
        ...
"""

from __future__ import annotations
import importlib
import logging
from typing import Callable, Dict, List, Optional

from .errors import DependencyCycle, PackageConflict
from .model import Package

logger = logging.getLogger(__name__)

PackageFactory = Callable[["BuildContext"], Package]


def package_factory(name: str) -> Callable[[PackageFactory], PackageFactory]:
    def deco(fn: PackageFactory) -> PackageFactory:
        fn.package_name = name
        return fn
    return deco


def factory_key(factory: PackageFactory) -> str:
    name = getattr(factory, "package_name", None)
    if name:
        return name
    return f"{factory.__module__}.{factory.__qualname__}"


class BuildContext:
    """Per-run package memo. Single-threaded: factories run via plain recursion."""

    def __init__(self):
        self._packages: Dict[str, Package] = {}
        self._keys: Dict[str, str] = {}        # factory key -> package name
        self._building: List[str] = []

    def __contains__(self, name: str) -> bool:
        return name in self._packages

    def get(self, name: str) -> Optional[Package]:
        return self._packages.get(name)

    def packages(self) -> List[Package]:
        return list(self._packages.values())

    def require(self, factory: PackageFactory) -> Package:
        key = factory_key(factory)
        done = self._keys.get(key)
        if done is not None:
            logger.debug("require %s: already built", key)
            return self._packages[done]
        if key in self._building:
            chain = self._building[self._building.index(key):] + [key]
            raise DependencyCycle("Dependency cycle: " + " -> ".join(chain), subject=key)

        self._building.append(key)
        logger.debug("building package %s", key)
        try:
            pkg = factory(self)
        finally:
            self._building.pop()

        declared = getattr(factory, "package_name", None)
        if declared and pkg.name != declared:
            raise PackageConflict(
                f"Factory for '{declared}' returned a package named '{pkg.name}'.",
                subject=declared,
            )
        pkg = self.register(pkg)
        self._keys[key] = pkg.name
        return pkg

    def register(self, pkg: Package) -> Package:
        existing = self._packages.get(pkg.name)
        if existing is None:
            self._packages[pkg.name] = pkg
            return pkg
        if existing is not pkg and not existing.structurally_equal(pkg):
            raise PackageConflict(
                f"Package '{pkg.name}' was registered twice with different structure.",
                subject=pkg.name,
            )
        return existing


def build_package(factory: PackageFactory, ctx: Optional[BuildContext] = None) -> Package:
    """Build `factory`'s package and, first, everything it depends on."""
    return (ctx or BuildContext()).require(factory)


class PackageRegistry:
    """Maps package names to their factories."""

    def __init__(self):
        self._by_name: Dict[str, PackageFactory] = {}

    def register(self, factory: PackageFactory, name: Optional[str] = None) -> PackageFactory:
        name = name or getattr(factory, "package_name", None)
        if not name:
            raise ValueError("Factory has no package name; use @package_factory or pass name=")
        self._by_name[name] = factory
        return factory

    def names(self) -> List[str]:
        return sorted(self._by_name)

    def factory_for(self, name: str) -> Optional[PackageFactory]:
        return self._by_name.get(name)

    def resolve(self, ref: str) -> PackageFactory:
        """Registered name, or a `module:function` reference to import."""
        factory = self._by_name.get(ref)
        if factory is not None:
            return factory
        if ":" not in ref:
            raise KeyError(f"Unknown package '{ref}'. Known: {', '.join(self.names()) or '-'}")
        mod_name, _, attr = ref.partition(":")
        mod = importlib.import_module(mod_name)
        factory = getattr(mod, attr, None)
        if factory is None or not callable(factory):
            raise KeyError(f"'{ref}' is not a package factory")
        return factory


# -------- default wiring --------
def register_default(reg: PackageRegistry) -> PackageRegistry:
    from .packages import cbase, callocator, cunittest

    reg.register(cunittest.get_package)
    reg.register(cbase.get_package)
    reg.register(callocator.get_package)
    return reg
