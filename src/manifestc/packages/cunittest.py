from __future__ import annotations

from ..context import BuildContext, package_factory
from ..model import Package
from ..projects import setup_cpp_lib_project

PATH = "github.com\\jurgen-kluft\\cunittest"


@package_factory("cunittest")
def get_package(ctx: BuildContext) -> Package:
    pkg = Package("cunittest", PATH)
    pkg.add_main_lib(setup_cpp_lib_project("cunittest", PATH))
    return pkg
