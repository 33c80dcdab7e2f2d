from __future__ import annotations

from ..context import BuildContext, package_factory
from ..linker import link
from ..model import Package
from ..projects import setup_cpp_lib_project, setup_cpp_test_project
from . import cbase

PATH = "github.com\\jurgen-kluft\\callocator"


@package_factory("callocator")
def get_package(ctx: BuildContext) -> Package:
    cbase_pkg = ctx.require(cbase.get_package)

    pkg = Package("callocator", PATH)
    pkg.add_package(cbase_pkg)

    mainlib = setup_cpp_lib_project("callocator", PATH)
    link(mainlib, cbase_pkg.get_main_lib())

    maintest = setup_cpp_test_project("callocator_test", PATH)
    link(maintest, mainlib, cbase_pkg.get_test_lib())

    pkg.add_main_lib(mainlib)
    pkg.add_unittest(maintest)
    return pkg
