from __future__ import annotations

from ..context import BuildContext, package_factory
from ..linker import link
from ..model import Package
from ..projects import setup_cpp_lib_project, setup_cpp_test_lib_project, setup_cpp_test_project
from . import cunittest

PATH = "github.com\\jurgen-kluft\\cbase"


@package_factory("cbase")
def get_package(ctx: BuildContext) -> Package:
    unittest_pkg = ctx.require(cunittest.get_package)

    pkg = Package("cbase", PATH)
    pkg.add_package(unittest_pkg)

    mainlib = setup_cpp_lib_project("cbase", PATH)

    # test-support library, shared with packages that test on top of cbase
    testlib = setup_cpp_test_lib_project("cbase_test", PATH)
    link(testlib, unittest_pkg.get_main_lib(), mainlib)

    maintest = setup_cpp_test_project("cbase_unittest", PATH)
    link(maintest, unittest_pkg.get_main_lib(), mainlib, testlib)

    pkg.add_main_lib(mainlib)
    pkg.add_test_lib(testlib)
    pkg.add_unittest(maintest)
    return pkg
